"""Log file rotation and file handler wiring for stackpilot."""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional

from stackpilot.constants import LOG_ROTATE_BYTES, ROTATED_LOG_SUFFIX

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


class LogSinkService:
    """Keeps one prior log generation and appends timestamped records."""

    def __init__(self, log_file: Path, threshold_bytes: int = LOG_ROTATE_BYTES):
        self.log_file = Path(log_file)
        self.threshold_bytes = threshold_bytes
        self.handler: Optional[logging.Handler] = None

    @property
    def rotated_file(self) -> Path:
        return self.log_file.with_name(self.log_file.name + ROTATED_LOG_SUFFIX)

    def rotate(self, new_session: bool) -> Optional[str]:
        """Move the current log aside and return the reason, if rotated.

        A file over the size threshold is always rotated. Otherwise it is
        rotated only when ``new_session`` is set.
        """
        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        if not self.log_file.exists():
            return None

        size = self.log_file.stat().st_size
        if size > self.threshold_bytes:
            reason = f"Log file rotated due to size ({size} bytes)"
        elif new_session:
            reason = f"New session started, previous log saved as {ROTATED_LOG_SUFFIX}"
        else:
            return None

        if self.rotated_file.exists():
            self.rotated_file.unlink()
        os.replace(self.log_file, self.rotated_file)

        with open(self.log_file, "w", encoding="utf-8") as file_obj:
            file_obj.write(f"{datetime.now().strftime('%Y-%m-%d %H:%M:%S')}: {reason}\n")
        return reason

    def attach(self, logger: logging.Logger, level: int = logging.INFO) -> logging.Handler:
        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(self.log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)
        self.handler = file_handler
        return file_handler

    def detach(self, logger: logging.Logger):
        if self.handler is None:
            return
        logger.removeHandler(self.handler)
        self.handler.close()
        self.handler = None
