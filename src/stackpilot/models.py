"""Shared domain models for stackpilot."""

import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

from stackpilot.constants import (
    BACKUP_SUFFIX,
    CANDIDATE_SUFFIX,
    COMMAND_TIMEOUT_SECONDS,
    DEFAULT_DESCRIPTOR_NAME,
    DEFAULT_DISPLAY_NAME,
    DEFAULT_IMAGE_REPOSITORY,
    DEFAULT_PROJECT_NAME,
    DEFAULT_UPSTREAM_URL,
    DOWNLOAD_TIMEOUT_SECONDS,
    EXIT_FAILURE,
    HEALTH_INTERVAL_SECONDS,
    READINESS_INTERVAL_SECONDS,
    READINESS_TIMEOUT_SECONDS,
    SETTLE_SECONDS,
)


def default_log_dir() -> Path:
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Logs"
    return Path.home() / ".local" / "state" / "stackpilot" / "logs"


@dataclass(frozen=True)
class StackSettings:
    """Tunables for one invocation, resolved from defaults, config and CLI."""

    workdir: Path
    project_name: str = DEFAULT_PROJECT_NAME
    display_name: str = DEFAULT_DISPLAY_NAME
    descriptor_name: str = DEFAULT_DESCRIPTOR_NAME
    upstream_url: str = DEFAULT_UPSTREAM_URL
    image_repository: str = DEFAULT_IMAGE_REPOSITORY
    log_dir: Optional[Path] = None
    readiness_timeout: float = READINESS_TIMEOUT_SECONDS
    readiness_interval: float = READINESS_INTERVAL_SECONDS
    health_interval: float = HEALTH_INTERVAL_SECONDS
    settle_seconds: float = SETTLE_SECONDS
    download_timeout: float = DOWNLOAD_TIMEOUT_SECONDS
    command_timeout: float = COMMAND_TIMEOUT_SECONDS
    retry_count: int = 0
    retry_backoff_seconds: float = 2.0
    allow_insecure_http: bool = False
    verbose: bool = False

    @property
    def descriptor_path(self) -> Path:
        return self.workdir / self.descriptor_name

    @property
    def backup_path(self) -> Path:
        return self.workdir / f"{self.descriptor_name}{BACKUP_SUFFIX}"

    @property
    def candidate_path(self) -> Path:
        return self.workdir / f".{self.descriptor_name}{CANDIDATE_SUFFIX}"

    @property
    def stack_log_file(self) -> Path:
        return (self.log_dir or default_log_dir()) / f"{self.project_name}-docker-compose.log"

    @property
    def update_log_file(self) -> Path:
        return (self.log_dir or default_log_dir()) / f"{self.project_name}-update.log"


class UpdateStep(str, Enum):
    PRECONDITIONS = "preconditions"
    FETCH = "fetch"
    DIFF = "diff"
    STOP = "stop"
    SWAP = "swap"
    RESTART = "restart"
    CLEANUP = "cleanup"
    COMMIT = "commit"
    PUSH = "push"


class Outcome(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    NO_CHANGE = "no_change"
    FATAL = "fatal"


@dataclass(frozen=True)
class StepResult:
    step: UpdateStep
    outcome: Outcome
    message: str = ""


@dataclass
class UpdateReport:
    """Ordered step results of one update run."""

    results: List[StepResult] = field(default_factory=list)
    exit_code: int = EXIT_FAILURE

    def outcome_of(self, step: UpdateStep) -> Optional[Outcome]:
        for result in self.results:
            if result.step == step:
                return result.outcome
        return None

    @property
    def steps(self) -> List[UpdateStep]:
        return [result.step for result in self.results]
