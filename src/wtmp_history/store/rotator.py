"""Age-based rotation of the event log.

The LogRotator moves every entry whose login time is older than the
retention window into a date-stamped archive file next to the log, and
rewrites the log with what remains.

Rotation is a no-op when no entry is old enough: no archive is created.

Example
-------
>>> from pathlib import Path
>>> from wtmp_history.store.event_log import EventLog
>>> from wtmp_history.store.rotator import LogRotator
>>> rotator = LogRotator(EventLog(Path("/var/lib/wtmp-history/wtmp.jsonl")), days=60)
>>> result = rotator.rotate()
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path

from wtmp_history.store.event_log import EventLog
from wtmp_history.timefmt import USEC_PER_SEC

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RotationResult:
    """Outcome of a rotation.

    Attributes
    ----------
    archive_path:
        File the old entries were written to, or ``None`` when nothing
        was moved.
    moved:
        Number of entries moved.
    """

    archive_path: Path | None
    moved: int


class LogRotator:
    """Moves entries older than a retention window into an archive file.

    Parameters
    ----------
    event_log:
        The log to rotate.
    days:
        Entries whose login is older than this many days are archived.
    """

    def __init__(self, event_log: EventLog, days: int = 60) -> None:
        if days < 1:
            raise ValueError(f"days must be at least 1, got {days}")
        self._event_log = event_log
        self._days = days

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def rotate(self, now: datetime | None = None) -> RotationResult:
        """Archive old entries.

        Parameters
        ----------
        now:
            Override the current local time (useful for testing).

        Returns
        -------
        RotationResult
            Where the entries went and how many there were.
        """
        effective_now = now or datetime.now()
        cutoff = int((effective_now - timedelta(days=self._days)).timestamp()) * USEC_PER_SEC

        old: list[dict[str, object]] = []
        kept: list[dict[str, object]] = []
        for entry in self._event_log.entries():
            (old if int(entry["login"]) < cutoff else kept).append(entry)

        if not old:
            logger.info("No entries older than %d days in %s", self._days, self._event_log.log_path)
            return RotationResult(archive_path=None, moved=0)

        archive_path = self.archive_path_for(effective_now)
        archive_path.parent.mkdir(parents=True, exist_ok=True)
        with archive_path.open("a", encoding="utf-8") as fh:
            for entry in old:
                fh.write(json.dumps({"op": "login", **entry}, default=str) + "\n")

        self._event_log.replace(kept)
        logger.info("Rotated %d entries to %s", len(old), archive_path)
        return RotationResult(archive_path=archive_path, moved=len(old))

    def archive_path_for(self, when: datetime) -> Path:
        """Return the archive path used for a rotation at *when*."""
        log_path = self._event_log.log_path
        return log_path.with_name(f"{log_path.stem}_{when:%Y%m%d-%H%M%S}{log_path.suffix}")
