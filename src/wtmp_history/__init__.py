"""wtmp-history — Year-2038-safe, boot-aware login history.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> from pathlib import Path
>>> import wtmp_history as wh
>>> wh.__version__
'0.1.0'
>>> options = wh.LastOptions(limit=10)
>>> log = wh.EventLog(Path("/var/lib/wtmp-history/wtmp.jsonl"))
>>> state = wh.SessionHistory(options).run(log.records(), wh.TextRenderer(options))
"""
from __future__ import annotations

__version__: str = "0.1.0"

# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------
from wtmp_history.records import (
    EventRecord,
    MalformedRecordError,
    RecordKind,
    Unrecognized,
    kind_from_code,
    parse_row,
)

# ---------------------------------------------------------------------------
# Configuration and time handling
# ---------------------------------------------------------------------------
from wtmp_history.config import AppConfig, ConfigLoader, LastOptions
from wtmp_history.timefmt import (
    InvalidTimeError,
    TimeFormat,
    format_duration,
    format_time,
    parse_time,
)

# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------
from wtmp_history.store.event_log import EventLog, EventLogError
from wtmp_history.store.rotator import LogRotator, RotationResult

# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------
from wtmp_history.engine.history import SessionHistory
from wtmp_history.engine.renderer import JsonRenderer, TextRenderer, make_renderer
from wtmp_history.engine.resolver import SessionRow
from wtmp_history.engine.state import EngineState
from wtmp_history.hosts import HostTranslator

__all__ = [
    "__version__",
    # Records
    "EventRecord",
    "MalformedRecordError",
    "RecordKind",
    "Unrecognized",
    "kind_from_code",
    "parse_row",
    # Configuration and time handling
    "AppConfig",
    "ConfigLoader",
    "InvalidTimeError",
    "LastOptions",
    "TimeFormat",
    "format_duration",
    "format_time",
    "parse_time",
    # Store
    "EventLog",
    "EventLogError",
    "LogRotator",
    "RotationResult",
    # Engine
    "EngineState",
    "HostTranslator",
    "JsonRenderer",
    "SessionHistory",
    "SessionRow",
    "TextRenderer",
    "make_renderer",
]
