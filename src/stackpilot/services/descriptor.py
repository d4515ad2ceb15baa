"""Deployment descriptor storage: current, backup and candidate files."""

import difflib
import os
import re
import shutil
from pathlib import Path
from typing import List, Optional

from stackpilot.errors import MutationError, PreconditionError
from stackpilot.errors_catalog import actionable_error


class DescriptorService:
    """Owns the descriptor file and its two transient siblings.

    At most one backup generation exists. Every mutation goes through
    ``os.replace`` so the canonical path always holds a complete file.
    """

    def __init__(self, descriptor_path: Path, backup_path: Path, candidate_path: Path, logger):
        self.descriptor_path = Path(descriptor_path)
        self.backup_path = Path(backup_path)
        self.candidate_path = Path(candidate_path)
        self.logger = logger

    def ensure_exists(self):
        if not self.descriptor_path.is_file():
            raise PreconditionError(
                actionable_error(
                    "descriptor_not_found",
                    name=self.descriptor_path.name,
                    directory=str(self.descriptor_path.parent),
                )
            )

    @staticmethod
    def _normalized_lines(path: Path) -> List[bytes]:
        data = path.read_bytes()
        lines = data.split(b"\n")
        if data.endswith(b"\n"):
            lines.pop()
        return [b"".join(line.split()) for line in lines]

    def candidate_matches_current(self) -> bool:
        """Compare current and candidate ignoring whitespace inside lines."""
        if not self.candidate_path.is_file():
            raise MutationError("Downloaded file not found")
        return self._normalized_lines(self.descriptor_path) == self._normalized_lines(
            self.candidate_path
        )

    def unified_diff(self) -> str:
        current = self.descriptor_path.read_text(encoding="utf-8", errors="replace").splitlines()
        candidate = self.candidate_path.read_text(encoding="utf-8", errors="replace").splitlines()
        return "\n".join(
            difflib.unified_diff(
                current,
                candidate,
                fromfile=self.descriptor_path.name,
                tofile=self.candidate_path.name,
                lineterm="",
            )
        )

    def discard_candidate(self):
        try:
            self.candidate_path.unlink()
        except FileNotFoundError:
            pass

    def backup(self) -> bool:
        try:
            shutil.copy2(self.descriptor_path, self.backup_path)
        except OSError as exc:
            self.logger.warning("Warning: Failed to create backup: %s", exc)
            return False
        self.logger.info("Backup created successfully")
        return True

    def has_backup(self) -> bool:
        return self.backup_path.is_file()

    def install_candidate(self):
        try:
            os.replace(self.candidate_path, self.descriptor_path)
        except OSError as exc:
            raise MutationError(f"Failed to update {self.descriptor_path.name}: {exc}") from exc

    def restore_backup(self) -> bool:
        if not self.has_backup():
            return False
        try:
            os.replace(self.backup_path, self.descriptor_path)
        except OSError as exc:
            self.logger.error("Could not restore backup file: %s", exc)
            return False
        self.logger.info("Restored backup file")
        return True

    def remove_backup(self):
        try:
            self.backup_path.unlink()
        except FileNotFoundError:
            pass

    def extract_version(self, image_repository: str) -> Optional[str]:
        pattern = re.compile(rf"image.*{re.escape(image_repository)}:(.*)")
        try:
            text = self.descriptor_path.read_text(encoding="utf-8", errors="replace")
        except OSError:
            return None
        for line in text.splitlines():
            match = pattern.search(line)
            if match:
                token = re.match(r"\s*([^\s#'\"]*)", match.group(1)).group(1)
                return token or None
        return None
