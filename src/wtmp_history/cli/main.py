"""CLI entry point for wtmp-history.

Invoked as::

    wtmp-history [OPTIONS] COMMAND [ARGS]...

or through one of the ``last`` style aliases (``wlast``, ``wlastlog``, and
``last``/``lastlog`` when installed under those names), which run the
``last`` command with the defaults implied by the alias.

Commands
--------
- last      Show session history, newest first
- boot      Record a system boot
- shutdown  Record a system shutdown
- boottime  Show the time of the last boot
- rotate    Move old entries into an archive file
- version   Show version information
"""
from __future__ import annotations

import os
import platform
import sys
import time
from pathlib import Path
from typing import NoReturn

import click
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from wtmp_history.config import AppConfig, ConfigLoader, LastOptions, invocation_defaults
from wtmp_history.records import MalformedRecordError, RecordKind
from wtmp_history.store.event_log import BOOT_TTY, EventLog, EventLogError
from wtmp_history.timefmt import InvalidTimeError, TimeFormat, TimeStyle, format_time, parse_time

console = Console()
err_console = Console(stderr=True)

_DEFAULT_CONFIG = Path("/etc/wtmp-history.yaml")


def _fail(message: str) -> NoReturn:
    err_console.print(f"[red]Error:[/red] {escape(message)}", soft_wrap=True)
    sys.exit(1)


def _load_config(config_path: str) -> AppConfig:
    try:
        return ConfigLoader().load_or_defaults(Path(config_path))
    except (ValueError, OSError, yaml.YAMLError) as exc:
        _fail(f"Invalid configuration {config_path}: {exc}")


def _open_log(config: AppConfig, file_path: str | None) -> EventLog:
    return EventLog(Path(file_path) if file_path else config.store.path)


def _now_usec() -> int:
    return time.time_ns() // 1000


_config_option = click.option(
    "--config",
    "-C",
    "config_path",
    default=str(_DEFAULT_CONFIG),
    show_default=True,
    type=click.Path(dir_okay=False),
    help="Path to the YAML configuration file.",
)

_file_option = click.option(
    "--file",
    "-f",
    "file_path",
    default=None,
    type=click.Path(dir_okay=False),
    help="Use FILE as event log instead of the configured one.",
)


# ---------------------------------------------------------------------------
# Root command group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="wtmp-history")
def cli() -> None:
    """Year-2038-safe login, logout, boot and shutdown history."""


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from wtmp_history import __version__

    console.print(
        Panel(
            f"[bold]wtmp-history[/bold]  v[cyan]{__version__}[/cyan]\n"
            "Boot-aware session history with microsecond timestamps.",
            title="Version",
            border_style="blue",
        )
    )


# ---------------------------------------------------------------------------
# last
# ---------------------------------------------------------------------------


@cli.command(name="last")
@click.option("--hostlast", "-a", is_flag=True, help="Display hostnames as last entry.")
@click.option("--compact", "-c", is_flag=True, help="Hide logouts and use the 'compact' time format.")
@click.option("--dns", "-d", is_flag=True, help="Translate IP addresses into a hostname.")
@click.option("--fulltimes", "-F", is_flag=True, help="Display full times and dates.")
@click.option("--ip", "-i", is_flag=True, help="Translate hostnames to IP addresses.")
@click.option("--json", "-j", "json_output", is_flag=True, help="Generate JSON output.")
@click.option("--legacy", "-L", is_flag=True, help="Session length precision in minutes instead of seconds.")
@click.option("--limit", "-n", default=0, type=click.IntRange(min=0), help="Display only the first N entries.")
@click.option("--open", "-o", "open_only", is_flag=True, help="Display open sessions only.")
@click.option("--present", "-p", default=None, metavar="TIME", help="Display who was present at TIME.")
@click.option("--nohostname", "-R", is_flag=True, help="Don't display hostnames.")
@click.option("--service", "-S", "show_service", is_flag=True, help="Display the service used to log in.")
@click.option("--since", "-s", default=None, metavar="TIME", help="Display who was logged in after TIME.")
@click.option("--until", "-t", default=None, metavar="TIME", help="Display who was logged in until TIME.")
@click.option("--unique", "-u", is_flag=True, help="Display only the latest entry for each user.")
@click.option("--fullnames", "-w", is_flag=True, help="Display full user, domain names and addresses.")
@click.option("--system", "-x", is_flag=True, help="Display system shutdown entries.")
@click.option(
    "--time-format",
    "time_format",
    type=click.Choice([f.value for f in TimeFormat]),
    default=None,
    help="Display timestamps in the given format.",
)
@_file_option
@_config_option
@click.argument("match", nargs=-1)
@click.pass_context
def last_command(
    ctx: click.Context,
    hostlast: bool,
    compact: bool,
    dns: bool,
    fulltimes: bool,
    ip: bool,
    json_output: bool,
    legacy: bool,
    limit: int,
    open_only: bool,
    present: str | None,
    nohostname: bool,
    show_service: bool,
    since: str | None,
    until: str | None,
    unique: bool,
    fullnames: bool,
    system: bool,
    time_format: str | None,
    file_path: str | None,
    config_path: str,
    match: tuple[str, ...],
) -> None:
    """Show session history, newest first.

    MATCH restricts the output to entries whose user or tty equals one of
    the given values.  TIME accepts YYYY-MM-DD hh:mm:ss, YYYY-MM-DD,
    hh:mm, now, today, yesterday and tomorrow.
    """
    from wtmp_history.engine.history import SessionHistory
    from wtmp_history.engine.renderer import make_renderer

    config = _load_config(config_path)
    implied = invocation_defaults(ctx.find_root().info_name or "")

    try:
        times = {
            name: parse_time(value) if value is not None else 0
            for name, value in (("since", since), ("until", until), ("present", present))
        }
    except InvalidTimeError as exc:
        _fail(str(exc))

    chosen_format = time_format or (config.last.time_format.value if config.last.time_format else None)
    try:
        options = LastOptions(
            **times,
            match=list(match),
            limit=limit,
            unique=unique or implied.get("unique", False),
            open_only=open_only,
            legacy=legacy or config.last.legacy or implied.get("legacy", False),
            json_output=json_output,
            compact=compact or config.last.compact or "LAST_COMPACT" in os.environ,
            fulltimes=fulltimes,
            time_format=TimeFormat(chosen_format) if chosen_format else None,
            fullnames=fullnames,
            hostlast=hostlast,
            nohostname=nohostname,
            show_service=show_service,
            dns=dns,
            ip=ip,
            system=system,
        )
    except ValidationError as exc:
        _fail("; ".join(str(err["msg"]).removeprefix("Value error, ") for err in exc.errors()))

    event_log = _open_log(config, file_path)
    renderer = make_renderer(options, source_name=str(event_log.log_path))
    history = SessionHistory(options)
    try:
        history.run(event_log.records(unique=options.unique), renderer)
    except (MalformedRecordError, EventLogError) as exc:
        _fail(str(exc))


# ---------------------------------------------------------------------------
# boot / shutdown / boottime
# ---------------------------------------------------------------------------


def _boot_time_usec(now: int) -> int:
    """Return the wall-clock time of the last kernel boot."""
    clock = getattr(time, "CLOCK_BOOTTIME", None)
    if clock is None:
        return now
    return now - time.clock_gettime_ns(clock) // 1000


@cli.command(name="boot")
@click.option(
    "--soft-reboot",
    is_flag=True,
    help="Record a soft-reboot at the current time instead of the kernel boot time.",
)
@_file_option
@_config_option
def boot_command(soft_reboot: bool, file_path: str | None, config_path: str) -> None:
    """Record a system boot."""
    config = _load_config(config_path)
    event_log = _open_log(config, file_path)

    now = _now_usec()
    when = now if soft_reboot else _boot_time_usec(now)
    user = "soft-reboot" if soft_reboot else "reboot"
    try:
        event_log.login(RecordKind.BOOT_MARKER, user, when, BOOT_TTY, platform.release())
    except (EventLogError, OSError) as exc:
        _fail(f"Couldn't write boot entry: {exc}")


@cli.command(name="shutdown")
@_file_option
@_config_option
def shutdown_command(file_path: str | None, config_path: str) -> None:
    """Record a system shutdown by closing the current boot entry."""
    config = _load_config(config_path)
    event_log = _open_log(config, file_path)
    try:
        entry_id = event_log.get_id(BOOT_TTY)
        event_log.logout(entry_id, _now_usec())
    except (EventLogError, OSError) as exc:
        _fail(f"Couldn't write shutdown entry: {exc}")


@cli.command(name="boottime")
@_file_option
@_config_option
def boottime_command(file_path: str | None, config_path: str) -> None:
    """Show the time of the last recorded boot."""
    config = _load_config(config_path)
    event_log = _open_log(config, file_path)
    try:
        boot = event_log.boot_time()
    except EventLogError as exc:
        _fail(f"Couldn't read boot entry: {exc}")
    click.echo(f"system boot {format_time(TimeStyle.CTIME, boot)}")


# ---------------------------------------------------------------------------
# rotate
# ---------------------------------------------------------------------------


@cli.command(name="rotate")
@click.option(
    "--days",
    "-d",
    default=None,
    type=click.IntRange(min=1),
    help="Archive entries older than this many days (default from config: 60).",
)
@_file_option
@_config_option
def rotate_command(days: int | None, file_path: str | None, config_path: str) -> None:
    """Move old entries into a date-stamped archive file."""
    from wtmp_history.store.rotator import LogRotator

    config = _load_config(config_path)
    event_log = _open_log(config, file_path)
    rotator = LogRotator(event_log, days=days or config.store.rotate_days)
    try:
        result = rotator.rotate()
    except (EventLogError, OSError) as exc:
        _fail(str(exc))

    if result.archive_path is None:
        console.print("No old entries found", soft_wrap=True)
    else:
        console.print(f"{result.moved} entries moved to {escape(str(result.archive_path))}", soft_wrap=True)


# ---------------------------------------------------------------------------
# Alias entry points
# ---------------------------------------------------------------------------


def last_alias() -> None:
    """Run ``last`` under the name the program was invoked as."""
    prog_name = Path(sys.argv[0]).name
    cli.main(args=["last", *sys.argv[1:]], prog_name=prog_name)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    cli()
