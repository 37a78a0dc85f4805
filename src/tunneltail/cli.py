# src/tunneltail/cli.py
"""tunneltail Command Line Interface.

Entry point for the tunneltail CLI tool.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from pydantic import ValidationError

from tunneltail import __version__
from tunneltail.core.config import (
    DEFAULT_FILTER_LEVEL,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MANAGEMENT_HOSTNAME,
    TailSettings,
)

__all__ = [
    "app",
]

app = typer.Typer(
    name="tunneltail",
    help="tunneltail: stream logs from a remote tunnel connector.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"tunneltail version {__version__}")
        raise typer.Exit()


def _load_dotenv(env_file: Path | None = None) -> bool:
    """Load environment variables from .env file.

    Args:
        env_file: Explicit path to .env file. If None, searches for .env
                 in current directory and parent directories.

    Returns:
        True if .env was found and loaded, False otherwise.

    Raises:
        typer.Exit: If explicit env_file path doesn't exist.
    """
    from dotenv import load_dotenv

    if env_file is not None:
        if not env_file.exists():
            typer.secho(
                f"Error: .env file not found: {env_file}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(1)
        return load_dotenv(env_file, override=False)

    return load_dotenv(override=False)  # Don't override existing env vars


def _split_events(values: list[str]) -> tuple[str, ...]:
    """Flatten repeated and comma-separated --event values.

    TUNNEL_MANAGEMENT_FILTER_EVENTS=http,tcp and --event http --event tcp
    both yield ("http", "tcp").
    """
    events: list[str] = []
    for value in values:
        events.extend(part.strip() for part in value.split(",") if part.strip())
    return tuple(events)


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    no_dotenv: bool = typer.Option(
        False,
        "--no-dotenv",
        help="Skip loading .env file.",
    ),
    env_file: Path | None = typer.Option(
        None,
        "--env-file",
        help="Path to .env file (skips automatic search).",
        exists=False,  # We handle existence check ourselves for better error message
    ),
) -> None:
    """tunneltail: stream logs from a remote tunnel connector."""
    if not no_dotenv:
        _load_dotenv(env_file=env_file)
    elif env_file is not None:
        typer.secho(
            "Warning: --env-file ignored because --no-dotenv is set.",
            fg=typer.colors.YELLOW,
            err=True,
        )


@app.command()
def tail(
    connector_id: str = typer.Option(
        "",
        "--connector-id",
        envvar="TUNNEL_MANAGEMENT_CONNECTOR",
        help="Access a specific connector by id (for when a tunnel has multiple connectors).",
    ),
    event: list[str] = typer.Option(
        [],
        "--event",
        envvar="TUNNEL_MANAGEMENT_FILTER_EVENTS",
        help="Filter by specific events (cloudflared, http, tcp, udp). Defaults to all events.",
    ),
    level: str = typer.Option(
        DEFAULT_FILTER_LEVEL,
        "--level",
        envvar="TUNNEL_MANAGEMENT_FILTER_LEVEL",
        help="Filter by specific log levels (debug, info, warn, error).",
    ),
    token: str = typer.Option(
        "",
        "--token",
        envvar="TUNNEL_MANAGEMENT_TOKEN",
        help="Access token for a specific tunnel.",
    ),
    management_hostname: str = typer.Option(
        DEFAULT_MANAGEMENT_HOSTNAME,
        "--management-hostname",
        envvar="TUNNEL_MANAGEMENT_HOSTNAME",
        hidden=True,
        help="Management hostname to signify incoming management requests.",
    ),
    trace: str = typer.Option(
        "",
        "--trace",
        hidden=True,
        help="Set a cf-trace-id for the request.",
    ),
    loglevel: str = typer.Option(
        DEFAULT_LOG_LEVEL,
        "--loglevel",
        envvar="TUNNEL_LOGLEVEL",
        help="Application logging level (debug, info, warn, error, fatal).",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output diagnostics as structured JSON (for machine processing).",
    ),
) -> None:
    """Stream logs from a remote connector to stdout.

    Diagnostics are written to stderr. The command always exits 0; failures
    are reported in the diagnostics only.
    """
    from tunneltail.core.logging import configure_logging
    from tunneltail.tail import run_tail

    # Configure logging before anything can log
    configure_logging(json_output=json_logs, level=loglevel)

    try:
        settings = TailSettings(
            connector_id=connector_id,
            events=_split_events(event),
            level=level,
            token=token,
            management_hostname=management_hostname,
            trace=trace,
            loglevel=loglevel,
            json_logs=json_logs,
        )
    except ValidationError as e:
        typer.echo("Configuration errors:", err=True)
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        return

    asyncio.run(run_tail(settings))


if __name__ == "__main__":
    app()
