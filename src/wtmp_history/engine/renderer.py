"""Output renderers for resolved session rows.

Two mutually exclusive formats are provided:

- :class:`TextRenderer` — fixed-width columns in the classic ``last``
  layout, followed by a ``<source> begins <time>`` footer.
- :class:`JsonRenderer` — a single JSON document
  ``{"entries": [...], "start": "<time>"}`` written incrementally, one
  entry per row, so no rows are buffered.

Both write to a text stream (``sys.stdout`` by default).
"""
from __future__ import annotations

import json
import sys
from typing import TextIO

from wtmp_history.config import HOST_WIDTH, NAME_WIDTH, LastOptions
from wtmp_history.engine.resolver import SessionRow
from wtmp_history.engine.state import EngineState
from wtmp_history.timefmt import TimeStyle, format_time

SOFT_REBOOT: str = "soft-reboot"
SOFT_REBOOT_SHORT: str = "s-reboot"


def _fit(text: str, width: int, full: bool = False) -> str:
    """Left-justify *text* to *width*, truncating unless *full*."""
    if not full:
        text = text[:width]
    return text.ljust(width)


def strip_length(length: str) -> str:
    """Drop the state prefix and parentheses from a length field.

    Labels such as ``logged in`` or ``Unknown: 7`` pass through unchanged.
    """
    if length[:1] in (" ", ".", "?") and length[1:2] == "(":
        length = length[1:]
    if length.startswith("(") and length.endswith(")"):
        return length[1:-1]
    return length


class Renderer:
    """Base class for row renderers.

    Parameters
    ----------
    options:
        Pass options controlling columns and time formats.
    stream:
        Destination; resolved to ``sys.stdout`` at write time when omitted.
    source_name:
        Name of the record source, used in the footer.
    """

    def __init__(
        self,
        options: LastOptions,
        stream: TextIO | None = None,
        source_name: str = "wtmp",
    ) -> None:
        self._options = options
        self._stream = stream
        self._source_name = source_name

    def begin(self) -> None:
        """Write anything that precedes the first row."""

    def row(self, row: SessionRow) -> None:
        raise NotImplementedError

    def finish(self, state: EngineState) -> None:
        raise NotImplementedError

    def empty_window(self) -> None:
        """Write the output for a time window that cannot match anything."""

    def _write(self, text: str) -> None:
        (self._stream or sys.stdout).write(text)

    def _start_time(self, state: EngineState) -> str | None:
        style = self._options.footer_style
        if state.earliest_login is None or style is TimeStyle.NOTIME:
            return None
        return format_time(style, state.earliest_login)


class TextRenderer(Renderer):
    """Fixed-width tabular output."""

    def format_line(self, row: SessionRow) -> str:
        """Return one output line (without the newline) for *row*."""
        options = self._options
        full = options.fullnames

        user = row.user
        if not full and user == SOFT_REBOOT and len(user) > NAME_WIDTH:
            user = SOFT_REBOOT_SHORT

        head = f"{_fit(user, NAME_WIDTH, full)} {_fit(row.tty, 12)}"
        service = f" {_fit(row.service, 12)}" if options.show_service else ""
        separator = "" if options.compact_display else " - "
        times = (
            f"{_fit(row.login, options.login_width)}{separator}"
            f"{_fit(row.logout, options.logout_width)}"
        )

        if options.nohostname:
            return f"{head}{service} {times} {row.length}"
        if options.hostlast:
            return f"{head}{service} {times} {_fit(row.length, 12)} {row.host}"
        return f"{head} {_fit(row.host, HOST_WIDTH, full)}{service} {times} {row.length}"

    def row(self, row: SessionRow) -> None:
        self._write(self.format_line(row) + "\n")

    def finish(self, state: EngineState) -> None:
        if state.earliest_login is None:
            self._write(f"{self._source_name} has no entries\n")
            return
        start = self._start_time(state)
        if start is not None:
            self._write(f"\n{self._source_name} begins {start}\n")


class JsonRenderer(Renderer):
    """Structured output as one JSON document."""

    def __init__(
        self,
        options: LastOptions,
        stream: TextIO | None = None,
        source_name: str = "wtmp",
    ) -> None:
        super().__init__(options, stream, source_name)
        self._first = True

    def to_dict(self, row: SessionRow) -> dict[str, str]:
        """Return the JSON object for *row*."""
        options = self._options
        entry: dict[str, str] = {"user": row.user, "tty": row.tty}
        if not options.nohostname:
            entry["hostname"] = row.host
        if options.show_service:
            entry["service"] = row.service
        entry["login"] = row.login
        if not options.compact_display:
            entry["logout"] = row.logout
        entry["length"] = strip_length(row.length)
        return entry

    def begin(self) -> None:
        self._write('{\n  "entries": [')

    def row(self, row: SessionRow) -> None:
        self._write(("\n" if self._first else ",\n") + "    " + json.dumps(self.to_dict(row)))
        self._first = False

    def finish(self, state: EngineState) -> None:
        self._write("\n  ]" if not self._first else "]")
        start = self._start_time(state)
        if start is not None:
            self._write(f",\n  \"start\": {json.dumps(start)}")
        self._write("\n}\n")

    def empty_window(self) -> None:
        self._write('{\n  "entries": []\n}\n')


def make_renderer(
    options: LastOptions,
    stream: TextIO | None = None,
    source_name: str = "wtmp",
) -> Renderer:
    """Return the renderer selected by ``options.json_output``."""
    cls = JsonRenderer if options.json_output else TextRenderer
    return cls(options, stream=stream, source_name=source_name)
