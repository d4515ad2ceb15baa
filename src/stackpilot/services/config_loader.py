"""Loader for the optional ``.stackpilot.yml`` file."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from stackpilot.errors import StackError

TEXT = "text"
NUMBER = "number"
INTEGER = "integer"
FLAG = "true/false"


class ConfigLoader:
    """Reads stack settings from YAML and checks each value's kind."""

    KEY_KINDS = {
        "project_name": TEXT,
        "display_name": TEXT,
        "descriptor_name": TEXT,
        "upstream_url": TEXT,
        "image_repository": TEXT,
        "log_dir": TEXT,
        "readiness_timeout": NUMBER,
        "readiness_interval": NUMBER,
        "health_interval": NUMBER,
        "settle_seconds": NUMBER,
        "download_timeout": NUMBER,
        "command_timeout": NUMBER,
        "retry_count": INTEGER,
        "retry_backoff_seconds": NUMBER,
        "allow_insecure_http": FLAG,
        "verbose": FLAG,
    }
    SUPPORTED_KEYS = set(KEY_KINDS)

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise StackError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise StackError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise StackError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(str(key) for key in set(parsed.keys()) - self.SUPPORTED_KEYS)
        if unknown:
            unknown_list = ", ".join(unknown)
            raise StackError(f"Unknown configuration keys: {unknown_list}")

        for key, value in parsed.items():
            kind = self.KEY_KINDS[key]
            if value is None or not self._matches(kind, value):
                raise StackError(f"Config key '{key}' must be {kind}, got {value!r}")
            if kind == NUMBER and value < 0:
                raise StackError(f"Config key '{key}' must not be negative, got {value!r}")

        return parsed

    @staticmethod
    def _matches(kind: str, value: Any) -> bool:
        if kind == FLAG:
            return isinstance(value, bool)
        if isinstance(value, bool):
            return False
        if kind == INTEGER:
            return isinstance(value, int) and value >= 0
        if kind == NUMBER:
            return isinstance(value, (int, float))
        return isinstance(value, str) and bool(value.strip())
