"""Typer application factory and CLI entry point for specgraph.

This module wires together the top-level Typer application and registers
the built-in ``inspect`` sub-command group.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers, registers commands and
invokes the Typer app. :class:`~specgraph.exceptions.SpecgraphError`
instances exit with their own code; any other exception is written to a
crash log under the data directory.

See Also:
    :mod:`specgraph.config`: Configuration resolution.
    :mod:`specgraph.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from specgraph import __version__
from specgraph.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="specgraph",
    help="Resolve OpenAPI documents and inspect their generation-ready models.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"specgraph {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    config_file: Optional[str] = typer.Option(
        None, "--config", "-c", help="Config file (JSON or YAML)."
    ),
    date_type: Optional[str] = typer.Option(
        None, "--date-type", help="Type for date/date-time strings: string or Date."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Only show errors on stderr."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~specgraph.output.OutputManager` from
    CLI flags, routes library logging through it, and stores the config
    overrides in ``ctx.obj`` for sub-commands.
    """
    from specgraph.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    output.install_logging()
    set_output(output)

    ctx.ensure_object(dict)
    ctx.obj["config_file"] = config_file
    ctx.obj["date_type"] = date_type
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from specgraph.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text("".join(traceback.format_exception(exc)))
    return str(log_path)


def register_commands() -> None:
    """Attach the built-in sub-command groups to :data:`app` (idempotent)."""
    from specgraph.commands.inspect import inspect_app

    if any(group.typer_instance is inspect_app for group in app.registered_groups):
        return
    app.add_typer(inspect_app, name="inspect", help="Inspect a document and its derived models.")


def main() -> None:
    """CLI entry point invoked by the ``specgraph`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        register_commands()
        app(standalone_mode=True)
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from specgraph.exceptions import SpecgraphError
        from specgraph.output import error

        if isinstance(exc, SpecgraphError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
