"""Terminal output for the specport CLI.

Data and diagnostics never share a stream:

* **stdout** carries the payload a command produces -- a collection, an
  example body, a validation result, a summary table -- so it can be piped
  into ``jq`` or redirected to a file.
* **stderr** carries everything addressed to the person at the terminal:
  progress notes, warnings about skipped operations, errors, and (with
  ``--verbose``) library log records.

The payload format is ``json``, ``plain`` (tab separated) or ``rich``
(syntax highlighted). ``auto`` picks ``rich`` for an interactive terminal
and ``plain`` otherwise; ``NO_COLOR`` and ``TERM=dumb`` switch colour off.

Commands use the module-level functions (:func:`format_response`,
:func:`warning`, ...), which forward to the :class:`OutputManager` installed
by :func:`~specport.app.main_callback`.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

_LOGGER_NAME = "specport"
_HANDLER_TAG = "_specport_handler"


class OutputFormat(str, Enum):
    """Payload formats selectable with ``--json`` / ``--plain``."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Route command output to stdout and diagnostics to stderr.

    Args:
        format: Payload format; ``AUTO`` is resolved once, here.
        no_color: Print diagnostics without Rich markup.
        quiet: Drop ``info`` and ``success`` notes. Warnings and errors
            are always shown.
        verbose: Show ``debug`` notes and library log records.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose

        if format != OutputFormat.AUTO:
            self._format = format
        elif _is_tty() and not self._no_color:
            self._format = OutputFormat.RICH
        else:
            self._format = OutputFormat.PLAIN

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=self._format == OutputFormat.RICH,
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    def configure_logging(self) -> None:
        """Attach this manager's handler to the ``specport`` logger.

        With ``verbose`` the records from every library module go to stderr
        through a :class:`~rich.logging.RichHandler` at DEBUG level. Without
        it a :class:`logging.NullHandler` is installed and the logger level
        is left to the root configuration, because commands already report
        warnings such as skipped operations themselves.

        Calling this again replaces the previously installed handler.
        """
        logger = logging.getLogger(_LOGGER_NAME)
        for existing in list(logger.handlers):
            if getattr(existing, _HANDLER_TAG, False):
                logger.removeHandler(existing)

        handler: logging.Handler
        if self._verbose:
            handler = RichHandler(console=self._stderr, markup=False, rich_tracebacks=True)
            logger.setLevel(logging.DEBUG)
        else:
            handler = logging.NullHandler()
            logger.setLevel(logging.NOTSET)
        setattr(handler, _HANDLER_TAG, True)
        logger.addHandler(handler)

    # ------------------------------------------------------------------ #
    # Payload (stdout)
    # ------------------------------------------------------------------ #

    def format_response(self, data: Any, content_type: str = "application/json") -> None:
        """Write *data* to stdout in the active format.

        A string holding JSON is decoded first so it is re-indented (or
        highlighted); any other string is written unchanged.
        """
        if self._format == OutputFormat.JSON:
            self._print_json(data)
        elif self._format == OutputFormat.PLAIN:
            self._print_plain(data)
        else:
            self._print_rich(data, content_type)

    def print_data(self, text: str) -> None:
        print(text, file=sys.stdout, flush=True)

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Write rows to stdout: a Rich table, JSON records, or TSV lines."""
        if self._format == OutputFormat.JSON:
            records = [dict(zip(headers, row)) for row in rows]
            self.print_data(json.dumps(records, indent=2, ensure_ascii=False))
            return

        if self._format == OutputFormat.PLAIN:
            for line in [headers, *rows]:
                self.print_data("\t".join(line))
            return

        table = Table(title=title, header_style="bold cyan")
        for header in headers:
            table.add_column(header)
        for row in rows:
            table.add_row(*row)
        self._stdout.print(table)

    # ------------------------------------------------------------------ #
    # Diagnostics (stderr)
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        if not self._quiet:
            self._diagnostic(message, "", "")

    def success(self, message: str) -> None:
        if not self._quiet:
            self._diagnostic(message, "", "green")

    def warning(self, message: str) -> None:
        self._diagnostic(message, "Warning: ", "yellow")

    def error(self, message: str) -> None:
        self._diagnostic(message, "Error: ", "bold red")

    def debug(self, message: str) -> None:
        if self._verbose:
            self._diagnostic(message, "[debug] ", "dim")

    def _diagnostic(self, message: str, prefix: str, style: str) -> None:
        """Write one stderr line, styled unless colour is off."""
        if self._no_color:
            print(f"{prefix}{message}", file=sys.stderr, flush=True)
            return
        # The message is never parsed as markup; only the prefix is styled.
        if prefix and style != "dim":
            line = Text.assemble((prefix, style), message)
        else:
            line = Text(f"{prefix}{message}", style=style)
        self._stderr.print(line, highlight=False)

    # ------------------------------------------------------------------ #
    # Renderers
    # ------------------------------------------------------------------ #

    def _print_json(self, data: Any) -> None:
        decoded = _decode_json_text(data)
        if isinstance(decoded, str) and decoded is data:
            self.print_data(data)
            return
        self.print_data(json.dumps(decoded, indent=2, ensure_ascii=False, default=str))

    def _print_plain(self, data: Any) -> None:
        if isinstance(data, dict):
            for key, value in data.items():
                if isinstance(value, (dict, list)):
                    value = json.dumps(value, ensure_ascii=False, default=str)
                self.print_data(f"{key}\t{value}")
        elif isinstance(data, list):
            for item in data:
                if isinstance(item, dict):
                    self.print_data("\t".join(str(v) for v in item.values()))
                else:
                    self.print_data(str(item))
        else:
            self.print_data(str(data))

    def _print_rich(self, data: Any, content_type: str) -> None:
        decoded = _decode_json_text(data)
        if isinstance(decoded, (dict, list)):
            text = json.dumps(decoded, indent=2, ensure_ascii=False, default=str)
            lexer = "json" if "json" in content_type else "text"
            self._stdout.print(Syntax(text, lexer, theme="monokai", word_wrap=True))
        else:
            self._stdout.print(str(decoded), markup=False)


def _decode_json_text(data: Any) -> Any:
    """Decode *data* when it is a JSON string; return it unchanged otherwise."""
    if not isinstance(data, str):
        return data
    try:
        return json.loads(data)
    except ValueError:
        return data


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """``NO_COLOR`` set to anything, or ``TERM=dumb``."""
    return os.environ.get("NO_COLOR") is not None or os.environ.get("TERM") == "dumb"


# ------------------------------------------------------------------ #
# Global manager
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed manager, creating an ``AUTO`` one on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager (CliRunner swaps the std streams per run)."""
    global _output
    _output = None


def format_response(data: Any, content_type: str = "application/json") -> None:
    get_output().format_response(data, content_type)


def print_table(
    headers: list[str],
    rows: list[list[str]],
    title: Optional[str] = None,
) -> None:
    get_output().print_table(headers, rows, title)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)


def error(message: str) -> None:
    get_output().error(message)


def debug(message: str) -> None:
    get_output().debug(message)
