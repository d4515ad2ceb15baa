"""Download service for the upstream deployment descriptor."""

import os
import time
from pathlib import Path
from urllib.parse import urlparse

from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)

from stackpilot.errors import StackError
from stackpilot.errors_catalog import actionable_error


class DownloadService:
    """Fetches a remote file into a local path, never leaving partial output."""

    def __init__(
        self,
        logger,
        console,
        requests_module,
        timeout: float = 60.0,
        allow_insecure_http: bool = False,
        retry_count: int = 0,
        retry_backoff_seconds: float = 0.0,
    ):
        self.logger = logger
        self.console = console
        self.requests = requests_module
        self.timeout = timeout
        self.allow_insecure_http = allow_insecure_http
        self.retry_count = retry_count
        self.retry_backoff_seconds = retry_backoff_seconds

    def enforce_https_policy(self, url: str, label: str):
        scheme = urlparse(url).scheme.lower()
        if scheme == "https":
            return
        if scheme == "http" and self.allow_insecure_http:
            self.logger.warning("Insecure HTTP enabled for %s: %s", label, url)
            return
        if scheme == "http":
            raise StackError(actionable_error("insecure_http", label=label))
        raise StackError(f"Unsupported URL scheme for {label}: {url}")

    def download_file(self, url: str, dest_path: Path, description: str = "Downloading..."):
        dest_path = Path(dest_path)
        self.enforce_https_policy(url, description)
        self.logger.info("Downloading %s to %s", url, dest_path)

        max_attempts = max(1, self.retry_count + 1)
        for attempt in range(1, max_attempts + 1):
            try:
                self._fetch(url, dest_path, description)
                return
            except self.requests.RequestException as exc:
                self._discard(dest_path)
                if attempt < max_attempts:
                    self.logger.warning(
                        "Download failed on attempt %s/%s. Retrying in %.1fs: %s",
                        attempt,
                        max_attempts,
                        self.retry_backoff_seconds,
                        exc,
                    )
                    time.sleep(self.retry_backoff_seconds)
                    continue
                raise StackError(
                    actionable_error(
                        "download_failed",
                        name=dest_path.name.lstrip("."),
                        reason=str(exc),
                        url=url,
                    )
                ) from exc
            except OSError as exc:
                self._discard(dest_path)
                raise StackError(f"Could not write {dest_path}: {exc}") from exc

    def _fetch(self, url: str, dest_path: Path, description: str):
        with self.requests.get(url, stream=True, timeout=self.timeout, allow_redirects=True) as response:
            response.raise_for_status()
            total_size = int(response.headers.get("Content-Length", 0))

            os.makedirs(dest_path.parent, exist_ok=True)

            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TaskProgressColumn(),
                "•",
                TimeElapsedColumn(),
                console=self.console,
                transient=True,
            ) as progress:
                task = progress.add_task(f"[cyan]{description}", total=total_size or None)
                with open(dest_path, "wb") as file_obj:
                    for chunk in response.iter_content(chunk_size=8192):
                        if not chunk:
                            continue
                        file_obj.write(chunk)
                        progress.update(task, advance=len(chunk))

        if dest_path.stat().st_size == 0:
            self._discard(dest_path)
            raise StackError(f"Downloaded file from {url} is empty.")

    def _discard(self, dest_path: Path):
        try:
            os.remove(dest_path)
        except OSError:
            pass
