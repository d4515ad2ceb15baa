"""Git integration for recording descriptor updates."""

from pathlib import Path
from typing import Callable, Optional

from stackpilot.errors import PreconditionError, StackError
from stackpilot.errors_catalog import actionable_error


class GitService:
    """Thin wrapper over the git CLI, run inside the stack directory."""

    def __init__(self, workdir: Path, run_cmd: Callable, logger):
        self.workdir = Path(workdir)
        self.run_cmd = run_cmd
        self.logger = logger

    def ensure_work_tree(self):
        try:
            result = self.run_cmd(["git", "rev-parse", "--git-dir"], check=False, capture_output=True)
        except StackError as exc:
            raise PreconditionError(f"git is not available: {exc}") from exc
        if result.returncode != 0:
            raise PreconditionError(actionable_error("not_a_git_repo", directory=str(self.workdir)))

    def commit_file(self, relative_path: str, message: str):
        try:
            self.run_cmd(["git", "add", relative_path], capture_output=True)
            self.run_cmd(["git", "commit", "-m", message], capture_output=True)
        except StackError as exc:
            raise StackError(
                actionable_error("commit_failed", reason=str(exc), name=relative_path)
            ) from exc

    def tracking_branch(self) -> Optional[str]:
        result = self.run_cmd(
            ["git", "rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{u}"],
            check=False,
            capture_output=True,
        )
        if result.returncode != 0:
            return None
        return (result.stdout or "").strip() or None

    def push(self) -> bool:
        result = self.run_cmd(["git", "push"], check=False, capture_output=True)
        if result.returncode != 0:
            self.logger.debug("git push output: %s", (result.stderr or "").strip())
        return result.returncode == 0


def build_commit_message(display_name: str, version: Optional[str], source_url: str) -> str:
    message = f"Update {display_name} docker-compose to latest version"
    if version:
        message = f"{message}\n\nUpdated to version: {version}\nDownloaded from: {source_url}"
    return message
