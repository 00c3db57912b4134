"""Rendering of API results and diagnostics for the ``resend`` command.

Two streams, two audiences:

* **stdout** carries results only: a record, a page of a list endpoint, or
  a summary. In JSON mode it is always the API's own wire form, so scripts
  can pipe it to ``jq``.
* **stderr** carries everything addressed to the person at the terminal:
  status lines, warnings, the ``Error:``/``Status:`` pair, next-step hints,
  and ``--verbose`` debug lines (rate-limit snapshots, retries).

Colour is off when ``--no-color`` is passed, ``NO_COLOR`` is set to any
value, or ``TERM=dumb``. In that case every diagnostic is one unwrapped
line of text.

One :class:`OutputManager` is built per invocation by
:func:`~resendcli.app.main_callback` and kept in ``ctx.obj["output"]``.
"""

from __future__ import annotations

import json
import os
import sys
from collections.abc import Callable, Iterable, Mapping
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel
from rich.console import Console
from rich.pretty import Pretty
from rich.table import Table
from rich.text import Text

from resendcli.models import APIResponse, ListResponse, RateLimitInfo, to_payload


class OutputFormat(str, Enum):
    """How results are written to stdout.

    ``AUTO`` becomes ``RICH`` on a colour-capable terminal and ``PLAIN``
    everywhere else (pipes, files, ``NO_COLOR``).
    """

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


Row = Callable[[Any], Iterable[Any]]


class OutputManager:
    """Writes results to stdout and diagnostics to stderr.

    Args:
        format: Result format; ``AUTO`` is resolved once, here.
        no_color: Force colourless output (``--no-color``).
        quiet: Drop informational stderr lines (``--quiet``). Errors,
            warnings and results are never dropped.
        verbose: Show debug lines (``--verbose``).
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _color_disabled_by_env()
        self._quiet = quiet
        self._verbose = verbose
        if format is OutputFormat.AUTO:
            format = OutputFormat.PLAIN if self._no_color or not _is_tty() else OutputFormat.RICH
        self._format = format

        self._out = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=format is OutputFormat.RICH,
        )
        self._err = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def is_json(self) -> bool:
        return self._format is OutputFormat.JSON

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    # ------------------------------------------------------------------ #
    # Results (stdout)
    # ------------------------------------------------------------------ #

    def record(self, result: APIResponse[Any] | BaseModel | Mapping[str, Any]) -> None:
        """Write one record: a field per line, a JSON object, or a field table.

        An :class:`APIResponse` has its rate-limit snapshot logged at debug
        level before its data is written.
        """
        if isinstance(result, APIResponse):
            self.rate_limit(result.rate_limit)
            result = result.data
        data = _wire(result)

        if self.is_json:
            self._json(data)
        elif self._format is OutputFormat.PLAIN:
            for field, value in data.items():
                self.line(f"{field}\t{_flat(value)}")
        else:
            table = Table(show_header=False, box=None, pad_edge=False)
            table.add_column(style="bold cyan", no_wrap=True)
            table.add_column()
            for field, value in data.items():
                shown = Pretty(value) if isinstance(value, (dict, list)) else Text(_flat(value))
                table.add_row(field, shown)
            self._out.print(table)

    def page(
        self,
        result: APIResponse[ListResponse[Any]],
        headers: list[str],
        row: Row,
        title: str,
        empty_message: str,
    ) -> None:
        """Write one page of a list endpoint.

        JSON mode writes the page envelope untouched (``object``, ``data``,
        ``has_more``...). The other modes project each item through *row*
        into the given columns and hint when more pages exist.
        """
        self.rate_limit(result.rate_limit)
        listing = result.data
        if self.is_json:
            self._json(_wire(listing))
            return
        if not listing.data:
            self.info(empty_message)
            return

        cells = [[_cell(value) for value in row(item)] for item in listing.data]
        if self._format is OutputFormat.PLAIN:
            self.line("\t".join(headers))
            for values in cells:
                self.line("\t".join(values))
        else:
            table = Table(title=title, header_style="bold cyan")
            for header in headers:
                table.add_column(header)
            for values in cells:
                table.add_row(*values)
            self._out.print(table)

        if listing.has_more:
            self.suggest("More results available.")

    def line(self, text: str) -> None:
        """Write *text* to stdout verbatim."""
        print(text, file=sys.stdout, flush=True)

    def _json(self, data: Any) -> None:
        self.line(json.dumps(data, indent=2, ensure_ascii=False, default=str))

    # ------------------------------------------------------------------ #
    # Diagnostics (stderr)
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        if not self._quiet:
            self._notice(message)

    def success(self, message: str) -> None:
        if not self._quiet:
            self._notice(message, style="green")

    def warning(self, message: str) -> None:
        """Shown even with ``--quiet``."""
        self._notice(message, label="Warning:", label_style="yellow")

    def error(self, message: str) -> None:
        """Write ``Error: <message>``. Never suppressed."""
        self._notice(message, label="Error:", label_style="bold red")

    def detail(self, label: str, value: Any) -> None:
        """Write a ``Label: value`` line, e.g. the ``Status:`` after an error."""
        self._notice(str(value), label=f"{label}:", label_style="dim")

    def suggest(self, message: str) -> None:
        """Write a next-step hint prefixed with an arrow."""
        if not self._quiet:
            self._notice(f"→ {message}", style="dim")

    def debug(self, message: str) -> None:
        if self._verbose:
            self._notice(message, style="dim", label="[debug]", label_style="dim")

    def progress(self, message: str) -> None:
        """Per-item progress; only worth showing to someone watching a terminal."""
        if not self._quiet and _is_tty():
            self._notice(message, style="dim")

    def rate_limit(self, info: Optional[RateLimitInfo]) -> None:
        if info is not None:
            self.debug(
                f"Rate limit: {info.remaining}/{info.limit} remaining, resets at {info.reset}"
            )

    def _notice(
        self,
        message: str,
        style: str = "",
        label: str = "",
        label_style: str = "",
    ) -> None:
        if self._no_color:
            print(f"{label} {message}" if label else message, file=sys.stderr, flush=True)
            return
        text = Text()
        if label:
            text.append(label, style=label_style)
            text.append(" ")
        text.append(message, style=style)
        self._err.print(text)


# ------------------------------------------------------------------ #
# Module-level helpers
# ------------------------------------------------------------------ #


def _wire(data: BaseModel | Mapping[str, Any]) -> dict[str, Any]:
    """Field mapping of *data* as the API spells it, unset fields left out."""
    if isinstance(data, BaseModel):
        return to_payload(data)
    return dict(data)


def _flat(value: Any) -> str:
    """Single-line rendering of a field value for plain output."""
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)


def _cell(value: Any) -> str:
    """Table cell text: ``-`` for missing, yes/no for flags, lists comma-joined."""
    if value is None:
        return "-"
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value)
    return str(value)


def _is_tty() -> bool:
    isatty = getattr(sys.stdout, "isatty", None)
    return bool(isatty and isatty())


def _color_disabled_by_env() -> bool:
    """``NO_COLOR`` (any value, even empty) or ``TERM=dumb``."""
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"
