"""Single-pass session history reconstruction.

:class:`SessionHistory` walks a newest-first record stream once.  For each
record it:

1. folds the login time into the earliest-record footer,
2. unless the output limit is reached, filters and resolves it into rows,
3. feeds boot markers into the reboot tracker, even when the record was
   filtered out or came after the limit.

Resolution happens before the record's own tracker update, so a boot
marker caps the sessions *older* than itself, never its own row.

Example
-------
>>> from wtmp_history.records import EventRecord, RecordKind
>>> history = SessionHistory(LastOptions(compact=True), now=0)
>>> records = [
...     EventRecord(3, RecordKind.USER_SESSION, "alice", 10_000_000_000, 13_600_000_000),
...     EventRecord(2, RecordKind.BOOT_MARKER, "reboot", 2_800_000_000, tty="~"),
...     EventRecord(1, RecordKind.USER_SESSION, "bob", 0),
... ]
>>> [row.length for row in history.rows(records)]
[' (01:00:00)', '.(00:00:00)', '?(00:46:40)']
"""
from __future__ import annotations

import logging
import time
from typing import Iterable, Iterator

from wtmp_history.config import LastOptions
from wtmp_history.engine.filters import FilterPipeline
from wtmp_history.engine.renderer import Renderer
from wtmp_history.engine.resolver import SessionRow, StatusResolver
from wtmp_history.engine.state import EngineState, RebootTracker
from wtmp_history.hosts import HostTranslator
from wtmp_history.records import EventRecord

logger = logging.getLogger(__name__)


class SessionHistory:
    """Reconstructs session rows from an event stream.

    Parameters
    ----------
    options:
        Filters, limit, and display modes for this pass.
    now:
        Override the wall clock in microseconds (useful for testing).
    translator:
        Host translation collaborator.  Built from ``options.dns`` and
        ``options.ip`` when omitted.
    """

    def __init__(
        self,
        options: LastOptions,
        now: int | None = None,
        translator: HostTranslator | None = None,
    ) -> None:
        self._options = options
        self._state = EngineState(now=time.time_ns() // 1000 if now is None else now)
        self._tracker = RebootTracker(self._state)
        self._filters = FilterPipeline(options)
        self._resolver = StatusResolver(
            options,
            now=self._state.now,
            translator=translator or HostTranslator(reverse=options.dns, forward=options.ip),
        )

    @property
    def state(self) -> EngineState:
        return self._state

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def rows(self, records: Iterable[EventRecord]) -> Iterator[SessionRow]:
        """Lazily yield display rows for *records* (newest first).

        Every record is consumed even after the limit is reached, so the
        footer and reboot state always reflect the whole stream.
        """
        if self._options.window_is_empty:
            return
        for record in records:
            self._tracker.note(record)
            resolved = self._select(record)
            self._tracker.observe(record)
            if resolved:
                self._state.emitted += 1
            yield from resolved

    def run(self, records: Iterable[EventRecord], renderer: Renderer) -> EngineState:
        """Render the full pass over *records* and return the final state."""
        if self._options.window_is_empty:
            logger.debug("Time window is empty; not reading records")
            renderer.empty_window()
            return self._state

        renderer.begin()
        for row in self.rows(records):
            renderer.row(row)
        renderer.finish(self._state)
        return self._state

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _limit_reached(self) -> bool:
        limit = self._options.limit
        return bool(limit) and self._state.emitted >= limit

    def _select(self, record: EventRecord) -> list[SessionRow]:
        if self._limit_reached():
            return []
        reason = self._filters.rejection(record, self._state.last_reboot)
        if reason is not None:
            logger.debug("Skipping entry %d (%s): %s", record.id, record.user, reason)
            return []
        return self._resolver.resolve(record, self._state.last_reboot)
