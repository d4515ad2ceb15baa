import logging
import subprocess
from pathlib import Path
from typing import List, Optional

import requests
from rich.console import Console

from .constants import EXIT_FAILURE
from .models import StackSettings
from .services.command_runner import CommandRunner
from .services.descriptor import DescriptorService
from .services.docker_runtime import DockerRuntimeService
from .services.download import DownloadService
from .services.log_sink import LogSinkService
from .services.stop import StopService
from .services.supervisor import BackgroundLauncher, SupervisorService, supervisor_command
from .services.update import UpdateService
from .services.vcs import GitService

console = Console()
logger = logging.getLogger("stackpilot")


class StackPilot:
    """Wires the services for one start, stop or update invocation."""

    def __init__(self, settings: StackSettings, config_path: Optional[Path] = None):
        self.settings = settings
        self.config_path = config_path
        self.workdir = Path(settings.workdir).resolve()

        self.command_runner = CommandRunner(
            logger=logger, cwd=self.workdir, default_timeout=settings.command_timeout
        )
        self.descriptor_service = DescriptorService(
            descriptor_path=settings.descriptor_path,
            backup_path=settings.backup_path,
            candidate_path=settings.candidate_path,
            logger=logger,
        )
        self.docker_runtime_service = DockerRuntimeService(
            logger=logger,
            console=console,
            run_cmd=self._run_cmd,
            compose_file=settings.descriptor_name,
            subprocess_module=subprocess,
        )
        self.stop_service = StopService(
            descriptor_service=self.descriptor_service,
            docker_runtime_service=self.docker_runtime_service,
            logger=logger,
            console=console,
            display_name=settings.display_name,
        )
        self.log_sink: Optional[LogSinkService] = None

    def _run_cmd(
        self,
        cmd: List[str],
        check: bool = True,
        capture_output: bool = False,
    ) -> subprocess.CompletedProcess:
        return self.command_runner.run(cmd, check=check, capture_output=capture_output)

    def _open_log(self, log_file: Path, new_session: bool):
        level = logging.DEBUG if self.settings.verbose else logging.INFO
        logger.setLevel(level)
        self.log_sink = LogSinkService(log_file)
        reason = self.log_sink.rotate(new_session=new_session)
        self.log_sink.attach(logger, level=level)
        if reason:
            logger.debug(reason)

    def _close_log(self):
        if self.log_sink is not None:
            self.log_sink.detach(logger)

    def build_supervisor(self) -> SupervisorService:
        return SupervisorService(
            docker_runtime_service=self.docker_runtime_service,
            descriptor_service=self.descriptor_service,
            shutdown_callback=self.stop_service.stop,
            logger=logger,
            console=console,
            display_name=self.settings.display_name,
            readiness_timeout=self.settings.readiness_timeout,
            readiness_interval=self.settings.readiness_interval,
            health_interval=self.settings.health_interval,
        )

    def build_updater(self) -> UpdateService:
        download_service = DownloadService(
            logger=logger,
            console=console,
            requests_module=requests,
            timeout=self.settings.download_timeout,
            allow_insecure_http=self.settings.allow_insecure_http,
            retry_count=self.settings.retry_count,
            retry_backoff_seconds=self.settings.retry_backoff_seconds,
        )
        launcher = BackgroundLauncher(
            workdir=self.workdir,
            command=supervisor_command(self.settings, self.config_path),
            logger=logger,
        )
        return UpdateService(
            settings=self.settings,
            descriptor_service=self.descriptor_service,
            download_service=download_service,
            git_service=GitService(self.workdir, self._run_cmd, logger),
            stop_service=self.stop_service,
            launcher=launcher,
            logger=logger,
            console=console,
        )

    def start(self) -> int:
        self._open_log(self.settings.stack_log_file, new_session=True)
        try:
            logger.info("%s auto-start script initiated from %s", self.settings.display_name, self.workdir)
            return self.build_supervisor().run()
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {exc}")
            logger.exception("Unexpected error")
            return EXIT_FAILURE
        finally:
            self._close_log()

    def stop(self) -> int:
        self._open_log(self.settings.stack_log_file, new_session=False)
        try:
            logger.info("%s stop script initiated from %s", self.settings.display_name, self.workdir)
            return self.stop_service.stop()
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {exc}")
            logger.exception("Unexpected error")
            return EXIT_FAILURE
        finally:
            self._close_log()

    def update(self) -> int:
        self._open_log(self.settings.update_log_file, new_session=False)
        try:
            return self.build_updater().run()
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {exc}")
            logger.exception("Unexpected error")
            return EXIT_FAILURE
        finally:
            self._close_log()
