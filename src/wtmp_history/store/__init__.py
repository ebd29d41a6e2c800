"""Event log persistence: append-only JSONL store and age-based rotation."""
from __future__ import annotations

from wtmp_history.store.event_log import BOOT_TTY, EventLog, EventLogError
from wtmp_history.store.rotator import LogRotator, RotationResult

__all__ = [
    "BOOT_TTY",
    "EventLog",
    "EventLogError",
    "LogRotator",
    "RotationResult",
]
