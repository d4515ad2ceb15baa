"""Self-update of the deployment descriptor from its upstream release feed."""

import time
from typing import Callable, Dict, Optional

from stackpilot.constants import EXIT_FAILURE, EXIT_SUCCESS
from stackpilot.errors import StackError
from stackpilot.models import Outcome, StepResult, UpdateReport, UpdateStep
from stackpilot.services.vcs import build_commit_message

STEP_ORDER = (
    UpdateStep.PRECONDITIONS,
    UpdateStep.FETCH,
    UpdateStep.DIFF,
    UpdateStep.STOP,
    UpdateStep.SWAP,
    UpdateStep.RESTART,
    UpdateStep.CLEANUP,
    UpdateStep.COMMIT,
    UpdateStep.PUSH,
)


class UpdateService:
    """Runs fetch, diff, stop, swap, restart and commit as one linear pass.

    Each step returns a StepResult. NO_CHANGE and FATAL end the run; WARNING
    is logged and the run continues. A failed restart is always a failing
    run, even when the rollback restart comes back up.
    """

    def __init__(
        self,
        settings,
        descriptor_service,
        download_service,
        git_service,
        stop_service,
        launcher,
        logger,
        console,
    ):
        self.settings = settings
        self.descriptor_service = descriptor_service
        self.download_service = download_service
        self.git_service = git_service
        self.stop_service = stop_service
        self.launcher = launcher
        self.logger = logger
        self.console = console
        self.report = UpdateReport()
        self.current_step: Optional[UpdateStep] = None

    @property
    def handlers(self) -> Dict[UpdateStep, Callable[[], StepResult]]:
        return {
            UpdateStep.PRECONDITIONS: self.check_preconditions,
            UpdateStep.FETCH: self.fetch_candidate,
            UpdateStep.DIFF: self.compare_candidate,
            UpdateStep.STOP: self.stop_services,
            UpdateStep.SWAP: self.swap_descriptor,
            UpdateStep.RESTART: self.restart_services,
            UpdateStep.CLEANUP: self.remove_backup,
            UpdateStep.COMMIT: self.commit_descriptor,
            UpdateStep.PUSH: self.push_commit,
        }

    def _run_step(self, step: UpdateStep) -> StepResult:
        self.current_step = step
        self.logger.debug("Step started: %s", step.value)
        try:
            result = self.handlers[step]()
        except StackError as exc:
            self.logger.error(str(exc))
            result = StepResult(step, Outcome.FATAL, str(exc))
        except Exception as exc:
            self.logger.exception("Unexpected error during %s", step.value)
            result = StepResult(step, Outcome.FATAL, str(exc))

        self.report.results.append(result)
        self.logger.debug("Step finished: %s (%s)", step.value, result.outcome.value)
        self.current_step = None
        return result

    def run(self) -> int:
        display_name = self.settings.display_name
        self.report = UpdateReport()
        self.logger.info("=== %s Update Script Started ===", display_name)

        try:
            for step in STEP_ORDER:
                result = self._run_step(step)
                if result.outcome == Outcome.NO_CHANGE:
                    self.logger.info("No update required")
                    self.console.print("[green]No update required.[/green]")
                    self.report.exit_code = EXIT_SUCCESS
                    return self.report.exit_code
                if result.outcome == Outcome.FATAL:
                    self.console.print(f"[bold red]Error:[/bold red] {result.message}")
                    self.report.exit_code = EXIT_FAILURE
                    return self.report.exit_code
        except KeyboardInterrupt:
            self.console.print("[bold red]Operation cancelled by user.[/bold red]")
            self.logger.warning(
                "Update cancelled by user during step '%s'. Check %s and %s.",
                self.current_step.value if self.current_step else "run",
                self.settings.descriptor_path,
                self.settings.backup_path,
            )
            self.report.exit_code = EXIT_FAILURE
            return self.report.exit_code

        self.logger.info("=== %s Update Script Completed Successfully ===", display_name)
        self.console.print(f"[green]{display_name} descriptor updated.[/green]")
        self.report.exit_code = EXIT_SUCCESS
        return self.report.exit_code

    def check_preconditions(self) -> StepResult:
        self.git_service.ensure_work_tree()
        self.descriptor_service.ensure_exists()
        return StepResult(UpdateStep.PRECONDITIONS, Outcome.SUCCESS)

    def fetch_candidate(self) -> StepResult:
        self.logger.info("Downloading latest docker-compose file from upstream...")
        self.download_service.download_file(
            self.settings.upstream_url,
            self.descriptor_service.candidate_path,
            description=f"Downloading {self.settings.descriptor_name}...",
        )
        self.logger.info("Download successful")
        return StepResult(UpdateStep.FETCH, Outcome.SUCCESS)

    def compare_candidate(self) -> StepResult:
        if self.descriptor_service.candidate_matches_current():
            self.logger.info("No update needed - files are identical")
            self.descriptor_service.discard_candidate()
            return StepResult(UpdateStep.DIFF, Outcome.NO_CHANGE, "No update needed")

        self.logger.info("Update needed - files differ")
        self.logger.debug("Descriptor changes:\n%s", self.descriptor_service.unified_diff())
        self.logger.info("Update required - proceeding with update process")
        return StepResult(UpdateStep.DIFF, Outcome.SUCCESS)

    def stop_services(self) -> StepResult:
        self.logger.info("Stopping %s services...", self.settings.display_name)
        if self.stop_service.stop() == EXIT_SUCCESS:
            self.logger.info("Services stopped successfully")
            return StepResult(UpdateStep.STOP, Outcome.SUCCESS)

        self.logger.warning("Warning: Error stopping services, continuing with update...")
        return StepResult(UpdateStep.STOP, Outcome.WARNING, "Error stopping services")

    def swap_descriptor(self) -> StepResult:
        name = self.settings.descriptor_name
        self.logger.info("Backing up current %s...", name)
        backed_up = self.descriptor_service.backup()

        self.logger.info("Updating %s...", name)
        try:
            self.descriptor_service.install_candidate()
        except StackError as exc:
            self.logger.error("Error: %s", exc)
            self.descriptor_service.restore_backup()
            self.descriptor_service.discard_candidate()
            return StepResult(UpdateStep.SWAP, Outcome.FATAL, f"Failed to update {name}")

        self.logger.info("%s updated successfully", name)
        if not backed_up:
            return StepResult(UpdateStep.SWAP, Outcome.WARNING, "Failed to create backup")
        return StepResult(UpdateStep.SWAP, Outcome.SUCCESS)

    def start_services(self) -> bool:
        self.logger.info("Starting %s services in the background...", self.settings.display_name)
        try:
            process = self.launcher.launch()
        except StackError as exc:
            self.logger.error("Error: %s", exc)
            return False

        time.sleep(self.settings.settle_seconds)
        if process.poll() is None:
            self.logger.info("Services started successfully (PID: %s)", process.pid)
            return True

        self.logger.error("Error: supervisor exited unexpectedly (exit code %s)", process.returncode)
        return False

    def restart_services(self) -> StepResult:
        if self.start_services():
            return StepResult(UpdateStep.RESTART, Outcome.SUCCESS)

        self.logger.error("Failed to start services with new %s", self.settings.descriptor_name)
        if self.descriptor_service.has_backup():
            self.logger.info("Attempting to restore backup and restart services...")
            if self.descriptor_service.restore_backup():
                self.start_services()
        return StepResult(
            UpdateStep.RESTART,
            Outcome.FATAL,
            f"Failed to start services with new {self.settings.descriptor_name}",
        )

    def remove_backup(self) -> StepResult:
        self.descriptor_service.remove_backup()
        return StepResult(UpdateStep.CLEANUP, Outcome.SUCCESS)

    def commit_descriptor(self) -> StepResult:
        self.logger.info("Committing updated %s to git...", self.settings.descriptor_name)
        version = self.descriptor_service.extract_version(self.settings.image_repository)
        message = build_commit_message(self.settings.display_name, version, self.settings.upstream_url)
        self.git_service.commit_file(self.settings.descriptor_name, message)
        self.logger.info("Changes committed successfully")
        return StepResult(UpdateStep.COMMIT, Outcome.SUCCESS, version or "")

    def push_commit(self) -> StepResult:
        tracking_branch = self.git_service.tracking_branch()
        if not tracking_branch:
            self.logger.info("No remote tracking branch found, skipping push")
            return StepResult(UpdateStep.PUSH, Outcome.SUCCESS, "skipped")

        self.logger.info("Pushing changes to remote tracking branch: %s", tracking_branch)
        if self.git_service.push():
            self.logger.info("Changes pushed successfully")
            return StepResult(UpdateStep.PUSH, Outcome.SUCCESS)

        self.logger.warning("Warning: Failed to push changes to remote")
        return StepResult(UpdateStep.PUSH, Outcome.WARNING, "Failed to push changes to remote")
