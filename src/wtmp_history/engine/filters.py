"""Range and identity filters applied to each record.

Filtering decides only whether a record is shown.  It never touches the
reboot state; the pass driver updates that for every record regardless of
the verdict here.
"""
from __future__ import annotations

from wtmp_history.config import LastOptions
from wtmp_history.records import EventRecord


def effective_end(record: EventRecord, last_reboot: int | None) -> int | None:
    """Return when the session of *record* actually ended.

    A recorded logout is capped at the next boot.  An open session ends at
    the next boot if one is known, otherwise it has not ended (``None``).
    """
    if record.logout_time is None:
        return last_reboot
    if last_reboot is None:
        return record.logout_time
    return min(record.logout_time, last_reboot)


class FilterPipeline:
    """Applies ``since``/``until``/``present`` and ``match`` filters.

    Parameters
    ----------
    options:
        Pass options; ``until`` is taken clamped to ``present``.
    """

    def __init__(self, options: LastOptions) -> None:
        self._since = options.since
        self._until = options.effective_until
        self._present = options.present
        self._match = frozenset(options.match)

    def rejection(self, record: EventRecord, last_reboot: int | None) -> str | None:
        """Return why *record* is filtered out, or ``None`` to keep it."""
        login = record.login_time
        if self._since and login < self._since:
            return "before since"
        if self._until and login > self._until:
            return "after until"
        if self._present and self._present < login:
            return "started after present"

        if self._present:
            end = effective_end(record, last_reboot)
            if end is not None and end < self._present:
                return "ended before present"

        if self._match and record.user not in self._match and record.tty not in self._match:
            return "no match"
        return None

    def admits(self, record: EventRecord, last_reboot: int | None) -> bool:
        return self.rejection(record, last_reboot) is None
