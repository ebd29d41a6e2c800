"""Append-only JSONL event log.

Every login, logout, boot, and shutdown is written as a newline-delimited
JSON line.  A login line opens an entry; a later logout line closes it by
id.  Reading merges both kinds of line back into one row per entry.

Thread-safety is achieved with a threading.Lock so the log is safe to
call from multiple threads within the same process.

Example
-------
>>> from pathlib import Path
>>> from wtmp_history.records import RecordKind
>>> log = EventLog(Path("/tmp/wtmp.jsonl"))
>>> entry_id = log.login(RecordKind.USER_SESSION, "alice", 1_700_000_000_000_000, "pts/0")
>>> log.logout(entry_id, 1_700_000_360_000_000)
>>> next(log.stream())[2]
'alice'
"""
from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Iterable, Iterator

from wtmp_history.records import EventRecord, Kind, RecordKind, kind_code, parse_row

logger = logging.getLogger(__name__)

BOOT_TTY: str = "~"

Row = list[str | None]


class EventLogError(Exception):
    """Raised when the event log cannot satisfy a read or write."""


class EventLog:
    """Append-only JSONL store of session events.

    Parameters
    ----------
    log_path:
        Path to the ``.jsonl`` file.  Parent directories are created
        automatically on first write.
    """

    def __init__(self, log_path: Path) -> None:
        self._log_path = log_path
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Write API
    # ------------------------------------------------------------------

    def login(
        self,
        kind: Kind,
        user: str,
        login_time: int,
        tty: str | None,
        host: str | None = None,
        service: str | None = None,
    ) -> int:
        """Open a new entry and return its id.

        Parameters
        ----------
        kind:
            Event kind; boot markers use :attr:`RecordKind.BOOT_MARKER`.
        user:
            User name, or ``reboot``/``soft-reboot`` for boot markers.
        login_time:
            Microseconds since the epoch.
        tty:
            Terminal label (``~`` for boot markers).
        host:
            Remote origin, if any.
        service:
            Authentication service name, if any.
        """
        with self._lock:
            entries = self._load_entries()
            entry_id = max(entries, default=0) + 1
            self._append(
                {
                    "op": "login",
                    "id": entry_id,
                    "type": kind_code(kind),
                    "user": user,
                    "login": login_time,
                    "tty": tty,
                    "host": host,
                    "service": service,
                }
            )
        logger.info("Recorded login id=%d user=%s tty=%s", entry_id, user, tty)
        return entry_id

    def logout(self, entry_id: int, logout_time: int) -> None:
        """Close the entry *entry_id* at *logout_time*.

        Raises
        ------
        EventLogError
            When no entry with that id exists.
        """
        with self._lock:
            if entry_id not in self._load_entries():
                raise EventLogError(f"No entry with id {entry_id} in {self._log_path}")
            self._append({"op": "logout", "id": entry_id, "logout": logout_time})
        logger.info("Recorded logout id=%d", entry_id)

    # ------------------------------------------------------------------
    # Read API
    # ------------------------------------------------------------------

    def get_id(self, tty: str) -> int:
        """Return the id of the newest open entry on *tty*.

        Raises
        ------
        EventLogError
            When no open entry uses that tty.
        """
        with self._lock:
            entries = self._load_entries()
        candidates = [
            e for e in entries.values() if e.get("tty") == tty and e.get("logout") is None
        ]
        if not candidates:
            raise EventLogError(f"No open entry for tty '{tty}' in {self._log_path}")
        newest = max(candidates, key=lambda e: (e["login"], e["id"]))
        return int(newest["id"])

    def boot_time(self) -> int:
        """Return the login time of the newest boot marker.

        Raises
        ------
        EventLogError
            When the log holds no boot marker.
        """
        with self._lock:
            entries = self._load_entries()
        boots = [e["login"] for e in entries.values() if e.get("type") == RecordKind.BOOT_MARKER.value]
        if not boots:
            raise EventLogError(f"No boot entry in {self._log_path}")
        return int(max(boots))

    def stream(self, unique: bool = False) -> Iterator[Row]:
        """Yield eight-field rows, newest login first.

        Rows carry ``ID, Type, User, Login, Logout, TTY, RemoteHost,
        Service`` as strings (``None`` for absent values).  Entries with
        equal login times are ordered by logout time, open entries last.

        Parameters
        ----------
        unique:
            Yield only the newest row for each user.
        """
        with self._lock:
            entries = list(self._load_entries().values())
        entries.sort(key=_order_key)

        seen_users: set[str] = set()
        for entry in entries:
            if unique:
                user = _text(entry.get("user")) or ""
                if user in seen_users:
                    continue
                seen_users.add(user)
            yield _to_row(entry)

    def records(self, unique: bool = False) -> Iterator[EventRecord]:
        """Yield validated :class:`EventRecord` objects, newest first."""
        for row in self.stream(unique=unique):
            yield parse_row(row)

    def count(self) -> int:
        """Return the number of entries in the log."""
        with self._lock:
            return len(self._load_entries())

    # ------------------------------------------------------------------
    # Maintenance API (used by the rotator)
    # ------------------------------------------------------------------

    def entries(self) -> list[dict[str, object]]:
        """Return merged entries in id order."""
        with self._lock:
            loaded = self._load_entries()
        return [loaded[k] for k in sorted(loaded)]

    def replace(self, entries: Iterable[dict[str, object]]) -> None:
        """Atomically rewrite the log with *entries*, one merged line each."""
        with self._lock:
            self._log_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._log_path.with_name(self._log_path.name + ".tmp")
            with tmp_path.open("w", encoding="utf-8") as fh:
                for entry in entries:
                    fh.write(json.dumps({"op": "login", **entry}, default=str) + "\n")
            tmp_path.replace(self._log_path)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _append(self, line: dict[str, object]) -> None:
        """Write a single line to the JSONL file.  Caller holds the lock."""
        self._log_path.parent.mkdir(parents=True, exist_ok=True)
        with self._log_path.open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(line, default=str) + "\n")

    def _load_entries(self) -> dict[int, dict[str, object]]:
        """Read and merge all lines.  Caller holds the lock."""
        entries: dict[int, dict[str, object]] = {}
        if not self._log_path.exists():
            return entries
        with self._log_path.open("r", encoding="utf-8") as fh:
            for lineno, line in enumerate(fh, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    data = json.loads(line)
                    op = data.pop("op")
                    entry_id = int(data["id"])
                except (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as exc:
                    raise EventLogError(
                        f"{self._log_path}:{lineno}: unreadable entry: {exc}"
                    ) from exc
                if op == "login":
                    self._check_time(lineno, data, "login", required=True)
                    self._check_time(lineno, data, "logout", required=False)
                    entries[entry_id] = data
                elif op == "logout" and entry_id in entries:
                    self._check_time(lineno, data, "logout", required=True)
                    entries[entry_id]["logout"] = data["logout"]
                else:
                    raise EventLogError(
                        f"{self._log_path}:{lineno}: unexpected '{op}' for id {entry_id}"
                    )
        return entries

    def _check_time(
        self, lineno: int, data: dict[str, object], key: str, required: bool
    ) -> None:
        """Reject a timestamp that is missing or not a non-negative integer."""
        value = data.get(key)
        if value is None and not required:
            return
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise EventLogError(
                f"{self._log_path}:{lineno}: invalid '{key}' for id {data['id']}: {value!r}"
            )

    @property
    def log_path(self) -> Path:
        """The filesystem path of the event log."""
        return self._log_path


def _order_key(entry: dict[str, object]) -> tuple[int, int, int]:
    logout = entry.get("logout")
    # Open entries sort after closed ones with the same login time.
    return (-int(entry["login"]), 1 if logout is None else 0, int(logout or 0))


def _text(value: object) -> str | None:
    return None if value is None else str(value)


def _to_row(entry: dict[str, object]) -> Row:
    return [
        _text(entry.get("id")),
        _text(entry.get("type")),
        _text(entry.get("user")),
        _text(entry.get("login")),
        _text(entry.get("logout")),
        _text(entry.get("tty")),
        _text(entry.get("host")),
        _text(entry.get("service")),
    ]
