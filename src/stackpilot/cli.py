import logging
import os
from pathlib import Path

import click
from rich.logging import RichHandler

from .constants import DEFAULT_CONFIG_NAME
from .core import StackPilot
from .errors import StackError
from .models import StackSettings
from .services.config_loader import ConfigLoader


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


def build_settings(workdir, config_path, **cli_values) -> StackSettings:
    defaults = StackSettings(workdir=Path(workdir))
    try:
        config_values = ConfigLoader().load(config_path)
    except StackError as exc:
        raise click.ClickException(str(exc)) from exc

    def resolve(key):
        return _resolve_option(cli_values.get(key), config_values, key, default=getattr(defaults, key))

    log_dir = resolve("log_dir")
    try:
        return StackSettings(
            workdir=Path(workdir).resolve(),
            project_name=str(resolve("project_name")),
            display_name=str(resolve("display_name")),
            descriptor_name=str(resolve("descriptor_name")),
            upstream_url=str(resolve("upstream_url")),
            image_repository=str(resolve("image_repository")),
            log_dir=Path(log_dir).expanduser() if log_dir else None,
            readiness_timeout=float(resolve("readiness_timeout")),
            readiness_interval=float(resolve("readiness_interval")),
            health_interval=float(resolve("health_interval")),
            settle_seconds=float(resolve("settle_seconds")),
            download_timeout=float(resolve("download_timeout")),
            command_timeout=float(resolve("command_timeout")),
            retry_count=int(resolve("retry_count")),
            retry_backoff_seconds=float(resolve("retry_backoff_seconds")),
            allow_insecure_http=bool(resolve("allow_insecure_http")),
            verbose=bool(resolve("verbose")),
        )
    except (TypeError, ValueError) as exc:
        raise click.ClickException(f"Invalid configuration value: {exc}") from exc


def _resolve_config_path(workdir, config):
    if config is not None:
        return config
    default_config_path = os.path.join(workdir, DEFAULT_CONFIG_NAME)
    if os.path.exists(default_config_path):
        return default_config_path
    return None


def _configure_logging(verbose: bool):
    logger = logging.getLogger("stackpilot")
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)


def common_options(func):
    options = [
        click.option(
            "--workdir",
            type=click.Path(file_okay=False),
            default=None,
            help="Directory holding the docker-compose file (default: current directory).",
        ),
        click.option(
            "--config",
            required=False,
            type=click.Path(),
            help=f"Path to a YAML configuration file. Defaults to {DEFAULT_CONFIG_NAME} in the workdir.",
        ),
        click.option("--log-dir", type=click.Path(file_okay=False), help="Directory for log files."),
        click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _build_pilot(workdir, config, **cli_values) -> StackPilot:
    workdir = workdir or os.getcwd()
    config_path = _resolve_config_path(workdir, config)
    settings = build_settings(workdir, config_path, **cli_values)
    _configure_logging(settings.verbose)
    return StackPilot(settings, config_path=Path(config_path).resolve() if config_path else None)


@click.group()
def main():
    """Start, stop and self-update a docker-compose service stack."""


@main.command("start")
@common_options
@click.option(
    "--readiness-timeout",
    type=float,
    default=None,
    help="Seconds to wait for Docker before giving up (default: 300).",
)
def start(workdir, config, log_dir, verbose, readiness_timeout):
    """Wait for Docker, start the stack and stay resident until signalled."""
    pilot = _build_pilot(
        workdir,
        config,
        log_dir=log_dir,
        verbose=verbose,
        readiness_timeout=readiness_timeout,
    )
    raise SystemExit(pilot.start())


@main.command("stop")
@common_options
def stop(workdir, config, log_dir, verbose):
    """Stop the stack with compose down."""
    pilot = _build_pilot(workdir, config, log_dir=log_dir, verbose=verbose)
    raise SystemExit(pilot.stop())


@main.command("update")
@common_options
@click.option("--upstream-url", required=False, help="URL of the upstream docker-compose file.")
@click.option(
    "--allow-insecure-http",
    is_flag=True,
    default=None,
    help="Allow HTTP URLs (insecure). By default only HTTPS URLs are accepted.",
)
@click.option(
    "--retry-count",
    required=False,
    type=int,
    default=None,
    help="Number of retries for transient download failures.",
)
def update(workdir, config, log_dir, verbose, upstream_url, allow_insecure_http, retry_count):
    """Update the docker-compose file from upstream, restart and commit."""
    pilot = _build_pilot(
        workdir,
        config,
        log_dir=log_dir,
        verbose=verbose,
        upstream_url=upstream_url,
        allow_insecure_http=allow_insecure_http,
        retry_count=retry_count,
    )
    raise SystemExit(pilot.update())


if __name__ == "__main__":
    main()
