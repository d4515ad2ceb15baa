"""Stack teardown procedure."""

from stackpilot.constants import EXIT_FAILURE, EXIT_SUCCESS
from stackpilot.errors import StackError


class StopService:
    """Runs ``compose down`` once and reports the result as an exit code."""

    def __init__(self, descriptor_service, docker_runtime_service, logger, console, display_name: str):
        self.descriptor_service = descriptor_service
        self.docker_runtime_service = docker_runtime_service
        self.logger = logger
        self.console = console
        self.display_name = display_name

    def stop(self) -> int:
        try:
            self.descriptor_service.ensure_exists()
            self.logger.info("Stopping %s services...", self.display_name)
            stopped = self.docker_runtime_service.compose_down()
        except StackError as exc:
            self.console.print(f"[bold red]Error:[/bold red] {exc}")
            self.logger.error(str(exc))
            return EXIT_FAILURE

        if stopped:
            self.logger.info("%s services stopped successfully", self.display_name)
            return EXIT_SUCCESS

        self.logger.error("Error stopping %s services", self.display_name)
        return EXIT_FAILURE
