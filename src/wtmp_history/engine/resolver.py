"""Status and duration resolution for surviving records.

:class:`StatusResolver` turns one record into the display strings of a
:class:`SessionRow`.  The one-character ``state`` prefix of the length
field tells the session shapes apart:

- ``' '`` — closed (explicit logout, capped at the next boot)
- ``'.'`` — open and still live (no later boot seen)
- ``'?'`` — open but ended by a later boot without a logout (crash)

Example
-------
>>> resolver = StatusResolver(LastOptions(compact=True), now=7_200_000_000)
>>> record = EventRecord(1, RecordKind.USER_SESSION, "bob", 0)
>>> resolver.resolve(record, last_reboot=None)[0].length
'.(02:00:00)'
"""
from __future__ import annotations

from dataclasses import dataclass

from wtmp_history.config import LastOptions
from wtmp_history.engine.filters import effective_end
from wtmp_history.hosts import HostTranslator
from wtmp_history.records import EventRecord, RecordKind, Unrecognized
from wtmp_history.timefmt import TimeStyle, format_time, session_length

BOOT_TTY_LABEL: str = "system boot"
SHUTDOWN_USER: str = "shutdown"
SHUTDOWN_TTY: str = "system down"


@dataclass(frozen=True)
class SessionRow:
    """A resolved, display-ready row.

    Attributes
    ----------
    user, tty, host, service:
        Identity columns as they should be shown (``service`` is empty
        unless requested).
    login, logout:
        Formatted times or status labels (``still``, ``crash``, ...).
    length:
        Duration prefixed with ``state`` (e.g. ``" (01:00:00)"``), or a
        label such as ``"logged in"``.
    state:
        ``' '``, ``'.'`` or ``'?'``.
    synthetic:
        ``True`` for injected shutdown rows.
    """

    user: str
    tty: str
    host: str
    service: str
    login: str
    logout: str
    length: str
    state: str = " "
    synthetic: bool = False


class StatusResolver:
    """Builds rows for records that passed the filters.

    Parameters
    ----------
    options:
        Pass options (display modes, precision, open-only, shutdown rows).
    now:
        Wall clock of the pass in microseconds; live sessions end here.
    translator:
        Host translation collaborator.
    """

    def __init__(
        self,
        options: LastOptions,
        now: int,
        translator: HostTranslator | None = None,
    ) -> None:
        self._options = options
        self._now = now
        self._translator = translator or HostTranslator()

    def resolve(self, record: EventRecord, last_reboot: int | None) -> list[SessionRow]:
        """Return the rows for *record*, in output order.

        The list is empty when the record is dropped (a closed session in
        open-only mode).  With shutdown rows enabled, a closed boot marker
        followed by a known boot yields the synthetic shutdown row first.
        """
        options = self._options
        if record.has_logout and options.open_only:
            return []

        host = self._translator.translate(record.host)
        service = record.service if options.show_service else ""
        login = format_time(options.login_style, record.login_time)
        logout, length, state = self._status(record, last_reboot)

        rows: list[SessionRow] = []
        if options.system and record.is_boot and record.has_logout and last_reboot is not None:
            rows.append(self._shutdown_row(record, last_reboot, host, service))

        rows.append(
            SessionRow(
                user=record.user,
                tty=BOOT_TTY_LABEL if record.is_boot else record.tty,
                host=host,
                service=service,
                login=login,
                logout=logout,
                length=length,
                state=state,
            )
        )
        return rows

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _status(self, record: EventRecord, last_reboot: int | None) -> tuple[str, str, str]:
        """Return ``(logout, length, state)`` for *record*."""
        options = self._options
        compact = options.compact_display

        if isinstance(record.kind, Unrecognized):
            return "ERROR", str(record.kind), " "

        if record.has_logout:
            end = effective_end(record, last_reboot)
            logout = "" if compact else format_time(options.logout_style, end)
            return logout, session_length(record.login_time, end, " ", options.legacy), " "

        if last_reboot is not None:
            length = session_length(record.login_time, last_reboot, "?", options.legacy)
            return ("" if compact else "crash"), length, "?"

        if compact:
            return "", session_length(record.login_time, self._now, ".", options.legacy), "."

        label = "running" if record.kind is RecordKind.BOOT_MARKER else "logged in"
        if options.logout_style is TimeStyle.HHMM:
            return "still", label, "."
        return f"still {label}", "", "."

    def _shutdown_row(
        self,
        record: EventRecord,
        last_reboot: int,
        host: str,
        service: str,
    ) -> SessionRow:
        options = self._options
        down = effective_end(record, last_reboot)
        return SessionRow(
            user=SHUTDOWN_USER,
            tty=SHUTDOWN_TTY,
            host=host,
            service=service,
            login=format_time(options.login_style, down),
            logout="" if options.compact_display else format_time(options.logout_style, last_reboot),
            length=session_length(down, last_reboot, " ", options.legacy),
            synthetic=True,
        )
