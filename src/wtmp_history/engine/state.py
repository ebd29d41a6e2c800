"""Mutable state scoped to one history pass.

The only cross-record state the engine keeps is the earliest boot marker
seen so far.  Records arrive newest first, so every further boot marker is
chronologically earlier and ``last_reboot`` can only decrease once set.
"""
from __future__ import annotations

from dataclasses import dataclass

from wtmp_history.records import EventRecord


@dataclass
class EngineState:
    """State of a single pass.

    Attributes
    ----------
    now:
        Wall clock at the start of the pass, in microseconds.  Live
        sessions are measured up to this instant.
    last_reboot:
        Earliest boot-marker login time seen so far, or ``None``.
    earliest_login:
        Earliest login time of any record read, or ``None`` when the
        source produced nothing.
    seen:
        Number of records read.
    emitted:
        Number of records that produced output (synthetic shutdown rows
        excluded).
    """

    now: int
    last_reboot: int | None = None
    earliest_login: int | None = None
    seen: int = 0
    emitted: int = 0


class RebootTracker:
    """Feeds every record into :class:`EngineState`, shown or not."""

    def __init__(self, state: EngineState) -> None:
        self._state = state

    def note(self, record: EventRecord) -> None:
        """Count *record* and fold its login time into the earliest seen."""
        state = self._state
        state.seen += 1
        if state.earliest_login is None or record.login_time < state.earliest_login:
            state.earliest_login = record.login_time

    def observe(self, record: EventRecord) -> None:
        """Lower ``last_reboot`` when *record* is a boot marker."""
        if not record.is_boot:
            return
        state = self._state
        if state.last_reboot is None or record.login_time < state.last_reboot:
            state.last_reboot = record.login_time
