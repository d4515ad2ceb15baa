"""Resident supervisor for the service stack."""

import os
import signal
import subprocess
import sys
import threading
from pathlib import Path
from typing import Callable, List, Optional

from stackpilot.constants import EXIT_FAILURE, EXIT_SUCCESS
from stackpilot.errors import StackError
from stackpilot.errors_catalog import actionable_error
from stackpilot.models import StackSettings


class SupervisorService:
    """Starts the stack and stays resident until SIGTERM/SIGINT.

    Signal handlers only record the request. The idle loop observes it and
    then runs the shutdown callback exactly once before returning.
    """

    HANDLED_SIGNALS = (signal.SIGTERM, signal.SIGINT)

    def __init__(
        self,
        docker_runtime_service,
        descriptor_service,
        shutdown_callback: Callable[[], int],
        logger,
        console,
        display_name: str,
        readiness_timeout: float,
        readiness_interval: float,
        health_interval: float,
        signal_module=signal,
    ):
        self.docker_runtime_service = docker_runtime_service
        self.descriptor_service = descriptor_service
        self.shutdown_callback = shutdown_callback
        self.logger = logger
        self.console = console
        self.display_name = display_name
        self.readiness_timeout = readiness_timeout
        self.readiness_interval = readiness_interval
        self.health_interval = health_interval
        self.signal = signal_module

        self.stop_requested = threading.Event()
        self.received_signal: Optional[int] = None
        self._shutdown_lock = threading.Lock()
        self._shutdown_result: Optional[int] = None

    def install_signal_handlers(self):
        for signum in self.HANDLED_SIGNALS:
            self.signal.signal(signum, self.handle_signal)

    def handle_signal(self, signum, _frame):
        if self.received_signal is None:
            self.received_signal = signum
        self.stop_requested.set()

    def shutdown(self) -> int:
        with self._shutdown_lock:
            if self._shutdown_result is not None:
                return self._shutdown_result

            self.logger.info("Received shutdown signal, stopping %s services...", self.display_name)
            try:
                result = self.shutdown_callback()
            except Exception:
                self.logger.exception("Unexpected error while stopping services")
                result = EXIT_FAILURE

            if result == EXIT_SUCCESS:
                self.logger.info("%s services stopped successfully", self.display_name)
            else:
                self.logger.error("Error stopping %s services", self.display_name)
            self._shutdown_result = result
            return result

    def _wait(self, seconds: float):
        self.stop_requested.wait(seconds)

    def check_health(self):
        try:
            running = self.docker_runtime_service.running_services()
        except StackError as exc:
            self.logger.warning("Could not query running services: %s", exc)
            return
        if not running:
            self.logger.warning(
                "Warning: Some %s services may have stopped unexpectedly", self.display_name
            )

    def idle(self):
        self.logger.info("Script running, waiting for shutdown signal...")
        while not self.stop_requested.wait(self.health_interval):
            self.check_health()

    def run(self) -> int:
        self.install_signal_handlers()

        try:
            ready = self.docker_runtime_service.wait_until_ready(
                timeout=self.readiness_timeout,
                interval=self.readiness_interval,
                sleep=self._wait,
                cancelled=self.stop_requested.is_set,
            )
            if not ready:
                self.shutdown()
                return EXIT_SUCCESS

            self.descriptor_service.ensure_exists()

            self.logger.info("Starting %s services...", self.display_name)
            self.console.print(f"[blue]Starting {self.display_name} services...[/blue]")
            if not self.docker_runtime_service.compose_up():
                raise StackError(
                    actionable_error(
                        "stack_start_failed",
                        display_name=self.display_name,
                        directory=str(self.descriptor_service.descriptor_path.parent),
                    )
                )
            self.logger.info("%s services started successfully", self.display_name)
            self.console.print(f"[green]{self.display_name} services started.[/green]")

            self.idle()
        except StackError as exc:
            self.console.print(f"[bold red]Error:[/bold red] {exc}")
            self.logger.error(str(exc))
            return EXIT_FAILURE

        self.shutdown()
        return EXIT_SUCCESS


class BackgroundLauncher:
    """Spawns the supervisor as a detached process that outlives its parent."""

    def __init__(self, workdir: Path, command: List[str], logger, subprocess_module=subprocess):
        self.workdir = Path(workdir)
        self.command = command
        self.logger = logger
        self.subprocess = subprocess_module

    def launch(self):
        self.logger.debug("Launching in background: %s", " ".join(self.command))
        try:
            return self.subprocess.Popen(
                self.command,
                cwd=str(self.workdir),
                stdin=self.subprocess.DEVNULL,
                stdout=self.subprocess.DEVNULL,
                stderr=self.subprocess.DEVNULL,
                start_new_session=(os.name == "posix"),
            )
        except OSError as exc:
            raise StackError(f"Failed to start services: {exc}") from exc


def supervisor_command(settings: StackSettings, config_path: Optional[Path] = None) -> List[str]:
    """Build the `start` invocation that reproduces the caller's effective settings."""
    workdir = Path(settings.workdir).resolve()
    command = [sys.executable, "-m", "stackpilot", "start", "--workdir", str(workdir)]
    if config_path is not None:
        command += ["--config", str(config_path)]
    if settings.log_dir is not None:
        command += ["--log-dir", str(Path(settings.log_dir).resolve())]
    command += ["--readiness-timeout", f"{settings.readiness_timeout:g}"]
    if settings.verbose:
        command.append("--verbose")
    return command
