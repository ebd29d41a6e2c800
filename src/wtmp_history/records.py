"""Event records as supplied by a record source.

A record source hands the engine one fixed-shape row per stored event.
:func:`parse_row` validates the row and turns it into an immutable
:class:`EventRecord`; anything that does not have exactly the eight
documented fields, or carries a non-numeric timestamp, is a protocol
violation and raises :class:`MalformedRecordError`.

Example
-------
>>> row = ["3", "7", "alice", "1700000000000000", None, "pts/0", "10.0.0.1", "sshd"]
>>> record = parse_row(row)
>>> record.kind
<RecordKind.USER_SESSION: 7>
>>> record.has_logout
False
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Sequence, Union

ROW_FIELDS: tuple[str, ...] = (
    "ID",
    "Type",
    "User",
    "Login",
    "Logout",
    "TTY",
    "RemoteHost",
    "Service",
)

_U64_MAX = 2**64 - 1

# 9999-12-30 00:00:00 UTC in microseconds, the last instant datetime can
# render in any local timezone.
MAX_TIMESTAMP = 253_402_128_000 * 1_000_000


class RecordKind(Enum):
    """Known event kinds, valued by their stored type code."""

    BOOT_MARKER = 2
    USER_SESSION = 7

    @classmethod
    def from_code(cls, code: int) -> Kind:
        """Return the kind for *code*, :class:`Unrecognized` when unknown."""
        return kind_from_code(code)


@dataclass(frozen=True)
class Unrecognized:
    """A stored type code outside the known kinds."""

    code: int

    def __str__(self) -> str:
        return f"Unknown: {self.code}"


Kind = Union[RecordKind, Unrecognized]


def kind_from_code(code: int) -> Kind:
    """Map a stored type code onto the closed set of kinds."""
    try:
        return RecordKind(code)
    except ValueError:
        return Unrecognized(code)


def kind_code(kind: Kind) -> int:
    """Return the stored type code for *kind*."""
    if isinstance(kind, Unrecognized):
        return kind.code
    return kind.value


class MalformedRecordError(Exception):
    """Raised when a store row violates the record protocol.

    Attributes
    ----------
    row:
        The offending row exactly as received.
    reason:
        Human-readable description of the violation.
    """

    def __init__(self, row: Sequence[object], reason: str) -> None:
        self.row = list(row)
        self.reason = reason
        super().__init__(f"Mangled entry ({reason}):{dump_row(row)}")


def dump_row(row: Sequence[object]) -> str:
    """Render a row as `` Name='value'`` pairs for diagnostics."""
    parts: list[str] = []
    for index, value in enumerate(row):
        name = ROW_FIELDS[index] if index < len(ROW_FIELDS) else f"#{index}"
        parts.append(f" {name}='{'NULL' if value is None else value}'")
    return "".join(parts)


@dataclass(frozen=True)
class EventRecord:
    """One stored login/logout/boot event.

    Attributes
    ----------
    id:
        Opaque monotonic identifier assigned by the store.
    kind:
        :class:`RecordKind` or :class:`Unrecognized`.
    user:
        Display name; ``reboot`` or ``soft-reboot`` for boot markers.
    login_time:
        Microseconds since the epoch.
    logout_time:
        Microseconds since the epoch, or ``None`` while the session is open.
    tty:
        Terminal label.  When no terminal is known this may carry the
        service name instead; the value is shown as stored.
    host:
        Remote origin, possibly empty.
    service:
        Authentication service name, possibly empty.
    """

    id: int
    kind: Kind
    user: str
    login_time: int
    logout_time: int | None = None
    tty: str = "?"
    host: str = ""
    service: str = ""

    @property
    def has_logout(self) -> bool:
        return self.logout_time is not None

    @property
    def is_boot(self) -> bool:
        return self.kind is RecordKind.BOOT_MARKER


def _parse_u64(row: Sequence[object], index: int) -> int:
    raw = row[index]
    text = "" if raw is None else str(raw)
    if not (text.isascii() and text.isdigit()):
        raise MalformedRecordError(
            row, f"invalid numeric value for '{ROW_FIELDS[index]}': '{text}'"
        )
    value = int(text)
    if value > _U64_MAX:
        raise MalformedRecordError(
            row, f"value for '{ROW_FIELDS[index]}' out of range: '{text}'"
        )
    return value


def _parse_timestamp(row: Sequence[object], index: int) -> int:
    value = _parse_u64(row, index)
    if value > MAX_TIMESTAMP:
        raise MalformedRecordError(
            row, f"timestamp for '{ROW_FIELDS[index]}' beyond year 9999: '{value}'"
        )
    return value


def parse_row(row: Sequence[object]) -> EventRecord:
    """Validate an eight-field store row and build an :class:`EventRecord`.

    Raises
    ------
    MalformedRecordError
        When the row does not have exactly eight fields, a numeric field
        does not hold an unsigned 64-bit integer, or a timestamp lies past
        :data:`MAX_TIMESTAMP`.
    """
    if len(row) != len(ROW_FIELDS):
        raise MalformedRecordError(row, f"expected {len(ROW_FIELDS)} fields, got {len(row)}")

    record_id = _parse_u64(row, 0) if row[0] is not None else 0
    kind = kind_from_code(_parse_u64(row, 1))
    login_time = _parse_timestamp(row, 3)
    logout_time = _parse_timestamp(row, 4) if row[4] is not None else None

    return EventRecord(
        id=record_id,
        kind=kind,
        user="" if row[2] is None else str(row[2]),
        login_time=login_time,
        logout_time=logout_time,
        tty="?" if row[5] is None else str(row[5]),
        host="" if row[6] is None else str(row[6]),
        service="" if row[7] is None else str(row[7]),
    )
