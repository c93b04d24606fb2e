# src/logstream/cli.py
"""logstream Command Line Interface.

Entry point for the logstream CLI tool. Envelope lines go to stdout;
diagnostics and errors go to stderr.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path

import httpx
import typer
from pydantic import ValidationError

from logstream import __version__
from logstream.contracts import InvalidMetricTypeError, SessionOutcome, SessionResult
from logstream.core.config import LogstreamSettings, build_http_client, load_settings
from logstream.stream.session import StreamSession

__all__ = ["app"]

app = typer.Typer(
    name="logstream",
    help="logstream: Stream logs and metrics from a telemetry gateway.",
    no_args_is_help=True,
)


@dataclass(frozen=True, slots=True)
class _GlobalOptions:
    verbose: bool
    json_logs: bool


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"logstream version {__version__}")
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


@app.callback()
def main(
    ctx: typer.Context,
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
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """logstream: Stream logs and metrics from a telemetry gateway."""
    from logstream.core.logging import configure_logging

    configure_logging(json_output=json_logs, level="DEBUG" if verbose else "WARNING")
    ctx.obj = _GlobalOptions(verbose=verbose, json_logs=json_logs)

    if not no_dotenv:
        _load_dotenv(env_file=env_file)
    elif env_file is not None:
        typer.secho(
            "Warning: --env-file ignored because --no-dotenv is set.",
            fg=typer.colors.YELLOW,
            err=True,
        )


def _load_config(settings: str | None, overrides: dict[str, object]) -> LogstreamSettings:
    settings_path = Path(settings).expanduser() if settings is not None else None
    try:
        return load_settings(settings_path, overrides)
    except FileNotFoundError:
        typer.echo(f"Error: Settings file not found: {settings}", err=True)
        raise typer.Exit(1) from None
    except ValidationError as e:
        typer.echo("Configuration errors:", err=True)
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(1) from None


def _report(result: SessionResult) -> None:
    """Map a session result to stderr output and an exit code."""
    if result.outcome is SessionOutcome.FAILED:
        typer.echo(f"\nError: {result.error}", err=True)
        raise typer.Exit(1)
    if result.outcome is SessionOutcome.REJECTED:
        typer.echo(f"\nError: gateway rejected the request (HTTP {result.status_code})", err=True)
        raise typer.Exit(1)


# How long a cancelled session may sit in a blocked read before the client is closed
_CANCEL_GRACE_SECONDS = 2.0


def _stop_session(session: StreamSession, client: httpx.Client, grace: float = _CANCEL_GRACE_SECONDS) -> SessionResult:
    """Cancel a running session and wait for it to wind down.

    An idle stream can keep the worker blocked in a read indefinitely;
    closing the client after the grace period aborts that read.
    """
    session.cancel()
    try:
        return session.wait(timeout=grace)
    except TimeoutError:
        client.close()
        return session.wait()


@app.command()
def stream(
    ctx: typer.Context,
    sources: list[str] | None = typer.Argument(
        None,
        help="App names or source ids to stream from (default: everything visible).",
    ),
    metric_types: list[str] | None = typer.Option(
        None,
        "--type",
        "-t",
        help="Metric type to include: log, counter, gauge, timer or event. Repeatable.",
    ),
    shard_id: str | None = typer.Option(
        None,
        "--shard-id",
        help="Shard id; readers sharing one split the stream between them.",
    ),
    host: str | None = typer.Option(
        None,
        "--host",
        help="Gateway host (overrides settings and LOGSTREAM_HOST).",
    ),
    token: str | None = typer.Option(
        None,
        "--token",
        help="OAuth bearer token (overrides settings and LOGSTREAM_TOKEN).",
    ),
    api_url: str | None = typer.Option(
        None,
        "--api-url",
        help="Cloud Controller API used to resolve app names to source ids.",
    ),
    settings: str | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
) -> None:
    """Stream envelopes as one JSON line each until the stream ends or Ctrl-C."""
    from logstream.core.logging import configure_logging
    from logstream.stream import (
        CloudControllerAppProvider,
        LockedSink,
        with_metric_types,
        with_shard_id,
        with_source_ids,
    )

    global_options: _GlobalOptions = ctx.obj
    config = _load_config(
        settings,
        {
            "host": host,
            "token": token,
            "api_url": api_url,
            "shard_id": shard_id,
            "source_ids": sources or None,
            "metric_types": metric_types or None,
        },
    )
    if not global_options.verbose:
        configure_logging(
            json_output=global_options.json_logs or config.logging.json_output,
            level=config.logging.level,
        )

    client = build_http_client(config)
    provider = CloudControllerAppProvider(config.api_url, client) if config.api_url is not None else None
    options = [with_source_ids(config.source_ids), with_metric_types(config.metric_types)]
    if config.shard_id is not None:
        options.append(with_shard_id(config.shard_id))

    session = StreamSession(config.host, client, provider, LockedSink(sys.stdout.buffer), *options)
    try:
        session.start()
        try:
            result = session.wait()
        except KeyboardInterrupt:
            result = _stop_session(session, client)
    except (InvalidMetricTypeError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
    finally:
        client.close()

    _report(result)


if __name__ == "__main__":
    app()
