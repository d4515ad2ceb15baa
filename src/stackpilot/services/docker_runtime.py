"""Docker runtime services for stackpilot."""

import subprocess
import time
from typing import Callable, List, Optional

from stackpilot.errors import ReadinessTimeoutError, StackError
from stackpilot.errors_catalog import actionable_error


class DockerRuntimeService:
    """Manages docker-compose detection, readiness and stack lifecycle."""

    def __init__(
        self,
        logger,
        console,
        run_cmd: Callable,
        compose_file: Optional[str] = None,
        subprocess_module=subprocess,
    ):
        self.logger = logger
        self.console = console
        self.run_cmd = run_cmd
        self.compose_file = compose_file
        self.subprocess = subprocess_module
        self._compose_cmd: Optional[List[str]] = None

    @property
    def compose_cmd(self) -> List[str]:
        if self._compose_cmd is None:
            self._compose_cmd = self.get_docker_compose_cmd()
        return self._compose_cmd

    def get_docker_compose_cmd(self) -> List[str]:
        try:
            self.subprocess.run(["docker", "compose", "version"], check=True, capture_output=True)
            return ["docker", "compose"]
        except (self.subprocess.CalledProcessError, FileNotFoundError):
            try:
                self.subprocess.run(["docker-compose", "--version"], check=True, capture_output=True)
                return ["docker-compose"]
            except (self.subprocess.CalledProcessError, FileNotFoundError):
                raise StackError(
                    "Docker Compose is not available. Install Docker Compose v2 (`docker compose`) "
                    "or v1 (`docker-compose`) and try again."
                )

    def _compose(self, *args: str) -> List[str]:
        file_args = ["-f", self.compose_file] if self.compose_file else []
        return self.compose_cmd + file_args + list(args)

    def is_runtime_ready(self) -> bool:
        try:
            result = self.run_cmd(["docker", "version"], check=False, capture_output=True)
        except StackError as exc:
            self.logger.debug("Docker check failed: %s", exc)
            return False
        return result.returncode == 0

    def wait_until_ready(
        self,
        timeout: float,
        interval: float,
        sleep: Callable[[float], object] = time.sleep,
        cancelled: Callable[[], bool] = lambda: False,
    ) -> bool:
        """Poll the runtime until it answers.

        Returns False when ``cancelled`` reports a pending shutdown, True when
        the runtime is ready. Raises ReadinessTimeoutError once the waited
        time reaches ``timeout``.
        """
        self.logger.info("Waiting for Docker to be ready...")
        waited = 0.0
        while not self.is_runtime_ready():
            if cancelled():
                self.logger.info("Shutdown requested while waiting for Docker.")
                return False
            if waited >= timeout:
                raise ReadinessTimeoutError(actionable_error("runtime_timeout", seconds=f"{timeout:g}"))

            self.logger.info(
                "Docker not ready yet, waiting... (%g/%g seconds)", waited, timeout
            )
            sleep(interval)
            waited += interval
            if cancelled():
                self.logger.info("Shutdown requested while waiting for Docker.")
                return False

        self.logger.info("Docker is ready!")
        self.console.print("[green]Docker is ready.[/green]")
        return True

    def compose_up(self) -> bool:
        result = self.run_cmd(self._compose("up", "-d"), check=False, capture_output=True)
        if result.returncode != 0:
            self.logger.error("Compose up failed (%s): %s", result.returncode, (result.stderr or "").strip())
        return result.returncode == 0

    def compose_down(self) -> bool:
        result = self.run_cmd(self._compose("down"), check=False, capture_output=True)
        if result.returncode != 0:
            self.logger.error("Compose down failed (%s): %s", result.returncode, (result.stderr or "").strip())
        return result.returncode == 0

    def running_services(self) -> List[str]:
        result = self.run_cmd(
            self._compose("ps", "--services", "--filter", "status=running"),
            check=False,
            capture_output=True,
        )
        if result.returncode != 0:
            return []
        return [line.strip() for line in (result.stdout or "").splitlines() if line.strip()]
