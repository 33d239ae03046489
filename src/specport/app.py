"""Typer application and CLI entry point for specport.

This module wires together the top-level Typer application and registers the
built-in commands (``validate``, ``import``, ``example``, ``check-url`` and
the ``config`` group).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers, registers commands, and
invokes the Typer app. :class:`~specport.exceptions.SpecportError` maps to
its exit code; any other exception is written to a crash log under the data
directory.

See Also:
    :mod:`specport.config`: Settings resolution.
    :mod:`specport.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any

import typer

from specport import __version__
from specport.exit_codes import EXIT_CANCELLED, EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="specport",
    help="Import Swagger 2.0 / OpenAPI 3.x documents into request collections.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"specport {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Import Swagger 2.0 / OpenAPI 3.x documents into request collections.

    Global flags apply to every command: they pick the payload format and
    install the :class:`~specport.output.OutputManager` that commands print
    through. With ``--verbose`` library log records are shown on stderr.
    """
    from specport.output import OutputFormat, OutputManager, set_output

    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    else:
        fmt = OutputFormat.AUTO

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    output.configure_logging()
    set_output(output)


def register_commands(target: typer.Typer) -> None:
    """Attach the built-in commands to *target*."""
    from specport.commands.check_url import check_url_command
    from specport.commands.config import config_app
    from specport.commands.documents import (
        example_command,
        import_command,
        validate_command,
    )

    target.command("validate")(validate_command)
    target.command("import")(import_command)
    target.command("example")(example_command)
    target.command("check-url")(check_url_command)
    target.add_typer(config_app, name="config", help="Configuration management.")


def _cancel(exit_code: int = EXIT_CANCELLED) -> None:
    sys.stderr.write("\nCancelled.\n")
    sys.exit(exit_code)


def _setup_signal_handlers() -> None:
    """Exit with ``128 + signum`` on SIGINT (130) and SIGTERM (143)."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        _cancel(128 + signum)

    signal.signal(signal.SIGINT, _handler)
    signal.signal(signal.SIGTERM, _handler)


def _write_crash_log(exc: Exception) -> Path:
    """Save the active traceback under ``<data dir>/logs`` and return the file."""
    from specport.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_path = logs_dir / f"crash-{datetime.now():%Y%m%d-%H%M%S}.log"
    log_path.write_text(
        f"specport {__version__}\n{type(exc).__name__}: {exc}\n\n{traceback.format_exc()}",
        encoding="utf-8",
    )
    return log_path


def main() -> None:
    """Console-script entry point.

    :class:`~specport.exceptions.SpecportError` exits with the error's
    ``exit_code``; anything else leaves a crash log and exits with 1.
    """
    _setup_signal_handlers()
    register_commands(app)
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        _cancel()
    except Exception as exc:
        sys.exit(handle_error(exc))


def handle_error(exc: Exception) -> int:
    """Report *exc* on stderr and return the exit code to use."""
    from specport.exceptions import InvalidDocumentError, SpecportError
    from specport.output import error, warning

    if isinstance(exc, SpecportError):
        error(str(exc))
        if isinstance(exc, InvalidDocumentError):
            for message in exc.warnings:
                warning(message)
        return exc.exit_code

    log_path = _write_crash_log(exc)
    error(f"Unexpected error. Debug log: {log_path}")
    return EXIT_GENERIC_FAILURE
