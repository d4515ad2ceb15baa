"""Actionable error catalog for stackpilot."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "descriptor_not_found": {
        "what": "{name} not found in {directory}",
        "next": "Run the command from the stack directory or pass `--workdir`.",
    },
    "not_a_git_repo": {
        "what": "Not in a git repository: {directory}",
        "next": "Run `git init` in the stack directory or update the descriptor manually.",
    },
    "runtime_timeout": {
        "what": "Timeout waiting for Docker after {seconds} seconds.",
        "next": "Start Docker Desktop or the docker daemon and retry.",
    },
    "insecure_http": {
        "what": "{label} uses insecure HTTP.",
        "next": "Switch to HTTPS or set `allow_insecure_http: true` only for trusted endpoints.",
    },
    "download_failed": {
        "what": "Failed to download latest {name}: {reason}",
        "next": "Check network access to {url} and retry.",
    },
    "stack_start_failed": {
        "what": "Error starting {display_name} services.",
        "next": "Inspect `docker compose logs` in {directory}.",
    },
    "commit_failed": {
        "what": "Failed to commit changes: {reason}",
        "next": "The new descriptor is live. Commit {name} manually.",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
