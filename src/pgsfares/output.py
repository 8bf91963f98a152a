"""Rendering of ``pgsfares`` command results.

A command result is either a list of flat records (one mapping per table
row, keyed by column title) or a single mapping. :class:`OutputManager`
writes results to **stdout** as a Rich table, tab-separated text or JSON,
and writes messages and log records to **stderr**, so piped output stays
machine-readable.

Colour is disabled by ``--no-color``, by ``NO_COLOR`` (any value) and by
``TERM=dumb``. The ``auto`` format renders Rich tables only when stdout is
a colour-capable terminal and plain text otherwise.

The CLI creates one manager per invocation in
:func:`~pgsfares.app.main_callback` and installs it with :func:`set_output`;
library modules never print and only log.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from enum import Enum
from typing import Any, Mapping, Optional, Sequence

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

Record = Mapping[str, Any]


class OutputFormat(str, Enum):
    """Formats accepted by ``--json``/``--plain`` and ``output.format``."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


def _stdout_is_terminal() -> bool:
    isatty = getattr(sys.stdout, "isatty", None)
    return bool(isatty and isatty())


def _color_disabled_by_env() -> bool:
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


class OutputManager:
    """Write command results to stdout and diagnostics to stderr.

    Args:
        format: Requested format. ``AUTO`` becomes ``RICH`` on a
            colour-capable terminal and ``PLAIN`` everywhere else.
        no_color: Strip colour and markup from everything written.
        quiet: Drop informational messages; errors are always written.
        verbose: Let debug log records through.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self.no_color = no_color or _color_disabled_by_env()
        self.quiet = quiet
        self.verbose = verbose
        if format == OutputFormat.AUTO:
            rich_ok = _stdout_is_terminal() and not self.no_color
            format = OutputFormat.RICH if rich_ok else OutputFormat.PLAIN
        self.format = format

        self._out = Console(
            file=sys.stdout,
            no_color=self.no_color,
            force_terminal=format == OutputFormat.RICH,
        )
        self._err = Console(file=sys.stderr, no_color=self.no_color, stderr=True)

    def configure_logging(self) -> None:
        """Route records of the ``pgsfares`` logger hierarchy to stderr.

        The threshold is DEBUG with ``verbose``, ERROR with ``quiet`` and
        WARNING otherwise.
        """
        if self.verbose:
            level = logging.DEBUG
        elif self.quiet:
            level = logging.ERROR
        else:
            level = logging.WARNING
        logger = logging.getLogger("pgsfares")
        logger.handlers = [RichHandler(console=self._err, show_path=False, markup=False)]
        logger.setLevel(level)
        logger.propagate = False

    # ------------------------------------------------------------------ #
    # Results (stdout)
    # ------------------------------------------------------------------ #

    def show_records(
        self,
        columns: Sequence[str],
        records: Sequence[Record],
        title: Optional[str] = None,
    ) -> None:
        """Write *records* as a table with the given *columns*.

        JSON output is an array of objects; plain output is a header line
        followed by one tab-separated line per record.
        """
        if self.format == OutputFormat.JSON:
            self._dump_json([{col: record.get(col) for col in columns} for record in records])
        elif self.format == OutputFormat.PLAIN:
            self._write("\t".join(columns))
            for record in records:
                self._write("\t".join(_cell(record.get(col)) for col in columns))
        else:
            table = Table(title=title, header_style="bold cyan")
            for col in columns:
                table.add_column(col)
            for record in records:
                table.add_row(*(_cell(record.get(col)) for col in columns))
            self._out.print(table)

    def show_mapping(self, data: Record, title: Optional[str] = None) -> None:
        """Write a single mapping as a JSON object or as key/value lines."""
        if self.format == OutputFormat.JSON:
            self._dump_json(dict(data))
        elif self.format == OutputFormat.PLAIN:
            for key, value in data.items():
                self._write(f"{key}\t{_cell(value)}")
        else:
            table = Table(title=title, show_header=False)
            table.add_column(style="bold")
            table.add_column()
            for key, value in data.items():
                table.add_row(str(key), _cell(value))
            self._out.print(table)

    def _dump_json(self, value: Any) -> None:
        self._write(json.dumps(value, indent=2, ensure_ascii=False, default=str))

    def _write(self, text: str) -> None:
        print(text, file=sys.stdout, flush=True)

    # ------------------------------------------------------------------ #
    # Messages (stderr)
    # ------------------------------------------------------------------ #

    def message(self, text: str) -> None:
        """Write an informational line; suppressed by ``quiet``."""
        if not self.quiet:
            self._diagnostic(None, "", text)

    def error(self, text: str) -> None:
        self._diagnostic("Error", "bold red", text)

    def _diagnostic(self, label: Optional[str], style: str, text: str) -> None:
        if self.no_color:
            line = f"{label}: {text}" if label else text
            print(line, file=sys.stderr, flush=True)
        elif label:
            self._err.print(f"[{style}]{label}:[/{style}] {escape(text)}", highlight=False)
        else:
            self._err.print(text, markup=False, highlight=False)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "yes" if value else "no"
    return str(value)


# ------------------------------------------------------------------ #
# Process-wide manager
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed :class:`OutputManager`, creating a default one if needed."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager (test suites call this between tests)."""
    global _output
    _output = None


def error(text: str) -> None:
    get_output().error(text)
