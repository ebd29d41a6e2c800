"""Timestamp formatting, parsing, and session-length rendering.

All timestamps are unsigned microsecond counts since the epoch and are
rendered in local time.  Python integers do not overflow, so values past
the 32-bit ``time_t`` boundary need no special handling.

Example
-------
>>> format_duration(90061, legacy=False)
'(1+01:01:01)'
>>> format_duration(90061, legacy=True)
'(1+01:01)'
"""
from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum

USEC_PER_SEC: int = 1_000_000


class InvalidTimeError(ValueError):
    """Raised when a time expression cannot be parsed.

    Attributes
    ----------
    value:
        The rejected input text.
    """

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"Invalid time value '{value}'")


class TimeStyle(Enum):
    """A single rendering style for one timestamp."""

    NOTIME = "notime"
    CTIME = "ctime"
    SHORT = "short"
    HHMM = "hhmm"
    ISO = "iso"
    COMPACT = "compact"


class TimeFormat(Enum):
    """User-selectable time format for login and logout fields."""

    NOTIME = "notime"
    SHORT = "short"
    FULL = "full"
    ISO = "iso"
    COMPACT = "compact"

    @property
    def login_style(self) -> TimeStyle:
        return _LAYOUT[self][0]

    @property
    def login_width(self) -> int:
        return _LAYOUT[self][1]

    @property
    def logout_style(self) -> TimeStyle:
        return _LAYOUT[self][2]

    @property
    def logout_width(self) -> int:
        return _LAYOUT[self][3]


# (login style, login width, logout style, logout width)
_LAYOUT: dict[TimeFormat, tuple[TimeStyle, int, TimeStyle, int]] = {
    TimeFormat.NOTIME: (TimeStyle.NOTIME, 0, TimeStyle.NOTIME, 0),
    TimeFormat.SHORT: (TimeStyle.SHORT, 16, TimeStyle.HHMM, 5),
    TimeFormat.FULL: (TimeStyle.CTIME, 24, TimeStyle.CTIME, 24),
    TimeFormat.ISO: (TimeStyle.ISO, 25, TimeStyle.ISO, 25),
    TimeFormat.COMPACT: (TimeStyle.COMPACT, 19, TimeStyle.COMPACT, 19),
}


def format_time(style: TimeStyle, microseconds: int) -> str:
    """Render *microseconds* in local time using *style*."""
    if style is TimeStyle.NOTIME:
        return ""
    stamp = datetime.fromtimestamp(microseconds // USEC_PER_SEC)
    match style:
        case TimeStyle.CTIME:
            return stamp.ctime()
        case TimeStyle.SHORT:
            return f"{stamp:%a %b} {stamp.day:>2} {stamp:%H:%M}"
        case TimeStyle.HHMM:
            return f"{stamp:%H:%M}"
        case TimeStyle.ISO:
            return stamp.astimezone().strftime("%Y-%m-%dT%H:%M:%S%z")
        case TimeStyle.COMPACT:
            return f"{stamp:%Y-%m-%d %H:%M:%S}"
    raise ValueError(f"Unsupported time style: {style!r}")


_DATETIME_FORMATS: tuple[str, ...] = (
    "%Y%m%d%H%M%S",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d",
)

_TIME_OF_DAY_FORMATS: tuple[str, ...] = (
    "%H:%M:%S",
    "%H:%M",
)


def _to_usec(stamp: datetime) -> int:
    return int(stamp.timestamp()) * USEC_PER_SEC


def parse_time(text: str, now: datetime | None = None) -> int:
    """Parse a time expression into local-time microseconds.

    Accepted forms are absolute date-times (``YYYYMMDDhhmmss``,
    ``YYYY-MM-DD hh:mm:ss``, ``YYYY-MM-DD hh:mm``, ``YYYY-MM-DD``), a time of
    day (``hh:mm:ss`` or ``hh:mm``, taken as today), and the keywords
    ``now``, ``today``, ``yesterday`` and ``tomorrow`` (the latter three at
    midnight).

    Parameters
    ----------
    text:
        The expression to parse.
    now:
        Override the current local time (useful for testing).

    Raises
    ------
    InvalidTimeError
        When *text* matches none of the accepted forms.
    """
    for fmt in _DATETIME_FORMATS:
        try:
            return _to_usec(datetime.strptime(text, fmt))
        except ValueError:
            continue

    current = (now or datetime.now()).replace(microsecond=0)

    for fmt in _TIME_OF_DAY_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        return _to_usec(
            current.replace(hour=parsed.hour, minute=parsed.minute, second=parsed.second)
        )

    if text == "now":
        return _to_usec(current)

    midnight = current.replace(hour=0, minute=0, second=0)
    if text == "today":
        return _to_usec(midnight)
    if text == "yesterday":
        return _to_usec(midnight - timedelta(days=1))
    if text == "tomorrow":
        return _to_usec(midnight + timedelta(days=1))

    raise InvalidTimeError(text)


def format_duration(seconds: int, legacy: bool = False) -> str:
    """Render a session length in seconds as ``(D+HH:MM:SS)``.

    Leading zero components collapse: ``(HH:MM:SS)`` below a day and
    ``(00:MM:SS)`` below an hour.  Legacy precision drops the seconds.
    """
    days, remainder = divmod(seconds, 86400)
    hours, remainder = divmod(remainder, 3600)
    minutes, secs = divmod(remainder, 60)

    if legacy:
        if days:
            return f"({days}+{hours:02d}:{minutes:02d})"
        if hours:
            return f"({hours:02d}:{minutes:02d})"
        return f"(00:{minutes:02d})"

    if days:
        return f"({days}+{hours:02d}:{minutes:02d}:{secs:02d})"
    if hours:
        return f"({hours:02d}:{minutes:02d}:{secs:02d})"
    return f"(00:{minutes:02d}:{secs:02d})"


def session_length(start: int, stop: int, prefix: str, legacy: bool = False) -> str:
    """Return *prefix* followed by the formatted length between two stamps.

    A *stop* earlier than *start* yields a zero length.
    """
    seconds = max(0, stop - start) // USEC_PER_SEC
    return f"{prefix}{format_duration(seconds, legacy)}"
