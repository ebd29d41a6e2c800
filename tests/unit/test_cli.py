"""Tests for the wtmp-history CLI."""
from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from builders import SEC, T
from wtmp_history.cli.main import cli
from wtmp_history.records import RecordKind
from wtmp_history.store.event_log import BOOT_TTY, EventLog


@pytest.fixture()
def runner(monkeypatch: pytest.MonkeyPatch) -> CliRunner:
    monkeypatch.delenv("LAST_COMPACT", raising=False)
    return CliRunner()


@pytest.fixture()
def log_path(tmp_path: Path) -> Path:
    return tmp_path / "wtmp.jsonl"


@pytest.fixture()
def store_args(tmp_path: Path, log_path: Path) -> list[str]:
    return ["--file", str(log_path), "--config", str(tmp_path / "missing.yaml")]


@pytest.fixture()
def populated(log_path: Path) -> EventLog:
    log = EventLog(log_path)
    log.login(RecordKind.USER_SESSION, "bob", T - 10000 * SEC, "pts/1", "10.0.0.2", "sshd")
    log.login(RecordKind.BOOT_MARKER, "reboot", T - 7200 * SEC, BOOT_TTY, "6.8.0")
    alice = log.login(RecordKind.USER_SESSION, "alice", T, "pts/0", "10.0.0.1", "sshd")
    log.logout(alice, T + 3600 * SEC)
    return log


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


class TestVersion:
    def test_version_command(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["version"])
        assert result.exit_code == 0
        assert "wtmp-history" in result.output


# ---------------------------------------------------------------------------
# last
# ---------------------------------------------------------------------------


class TestLast:
    def test_json_output(self, runner: CliRunner, populated: EventLog, store_args: list[str]) -> None:
        result = runner.invoke(cli, ["last", "--json", *store_args])
        assert result.exit_code == 0, result.output
        document = json.loads(result.output)
        assert [entry["user"] for entry in document["entries"]] == ["alice", "reboot", "bob"]
        assert document["entries"][2]["logout"] == "crash"
        assert document["entries"][2]["length"] == "00:46:40"
        assert document["start"] == "Tue Nov 14 19:26:40 2023"

    def test_text_footer_names_file(
        self, runner: CliRunner, populated: EventLog, store_args: list[str], log_path: Path
    ) -> None:
        result = runner.invoke(cli, ["last", *store_args])
        assert result.exit_code == 0, result.output
        assert result.output.endswith(f"\n{log_path} begins Tue Nov 14 19:26:40 2023\n")

    def test_match_and_limit(self, runner: CliRunner, populated: EventLog, store_args: list[str]) -> None:
        result = runner.invoke(cli, ["last", "-j", "-n", "1", *store_args, "bob", "alice"])
        assert result.exit_code == 0, result.output
        assert [e["user"] for e in json.loads(result.output)["entries"]] == ["alice"]

    def test_since_filter(self, runner: CliRunner, populated: EventLog, store_args: list[str]) -> None:
        result = runner.invoke(cli, ["last", "-j", "--since", "2023-11-14 21:00", *store_args])
        assert result.exit_code == 0, result.output
        assert [e["user"] for e in json.loads(result.output)["entries"]] == ["alice"]

    def test_time_format_choice(self, runner: CliRunner, populated: EventLog, store_args: list[str]) -> None:
        result = runner.invoke(cli, ["last", "-j", "--time-format", "iso", *store_args])
        assert json.loads(result.output)["entries"][0]["login"] == "2023-11-14T22:13:20+0000"

    def test_compact_from_environment(
        self, runner: CliRunner, populated: EventLog, store_args: list[str]
    ) -> None:
        result = runner.invoke(cli, ["last", "-j", *store_args], env={"LAST_COMPACT": "1"})
        entry = json.loads(result.output)["entries"][0]
        assert "logout" not in entry
        assert entry["login"] == "2023-11-14 22:13:20"

    def test_empty_log(self, runner: CliRunner, store_args: list[str], log_path: Path) -> None:
        result = runner.invoke(cli, ["last", *store_args])
        assert result.exit_code == 0
        assert result.output == f"{log_path} has no entries\n"

    def test_lastlog_name_implies_unique(
        self, runner: CliRunner, log_path: Path, store_args: list[str]
    ) -> None:
        log = EventLog(log_path)
        log.login(RecordKind.USER_SESSION, "alice", T, "pts/0")
        log.login(RecordKind.USER_SESSION, "alice", T + SEC, "pts/1")
        result = runner.invoke(cli, ["last", "-j", *store_args], prog_name="lastlog")
        entries = json.loads(result.output)["entries"]
        assert [e["tty"] for e in entries] == ["pts/1"]

    def test_conflicting_options(self, runner: CliRunner, store_args: list[str]) -> None:
        result = runner.invoke(cli, ["last", "-a", "-R", *store_args])
        assert result.exit_code == 1
        assert "The options -a and -R cannot be used together." in result.output

    def test_invalid_time(self, runner: CliRunner, store_args: list[str]) -> None:
        result = runner.invoke(cli, ["last", "--until", "soon", *store_args])
        assert result.exit_code == 1
        assert "Invalid time value 'soon'" in result.output

    def test_corrupt_log(self, runner: CliRunner, store_args: list[str], log_path: Path) -> None:
        log_path.write_text("{broken\n", encoding="utf-8")
        result = runner.invoke(cli, ["last", *store_args])
        assert result.exit_code == 1
        assert "unreadable entry" in result.output

    def test_non_numeric_login_in_log(
        self, runner: CliRunner, store_args: list[str], log_path: Path
    ) -> None:
        log_path.write_text('{"op": "login", "id": 1, "user": "alice", "login": "abc"}\n', encoding="utf-8")
        result = runner.invoke(cli, ["last", *store_args])
        assert result.exit_code == 1
        assert "invalid 'login' for id 1" in result.output

    def test_missing_login_in_log(self, runner: CliRunner, store_args: list[str], log_path: Path) -> None:
        log_path.write_text('{"op": "login", "id": 1, "user": "alice"}\n', encoding="utf-8")
        result = runner.invoke(cli, ["last", *store_args])
        assert result.exit_code == 1
        assert "invalid 'login' for id 1" in result.output

    def test_timestamp_past_year_9999(
        self, runner: CliRunner, store_args: list[str], log_path: Path
    ) -> None:
        EventLog(log_path).login(RecordKind.USER_SESSION, "alice", 2**63, "pts/0")
        result = runner.invoke(cli, ["last", *store_args])
        assert result.exit_code == 1
        assert "beyond year 9999" in result.output

    def test_config_defaults_applied(
        self, runner: CliRunner, populated: EventLog, tmp_path: Path, log_path: Path
    ) -> None:
        config = tmp_path / "wtmp-history.yaml"
        config.write_text(f"store:\n  path: {log_path}\nlast:\n  time_format: compact\n", encoding="utf-8")
        result = runner.invoke(cli, ["last", "-j", "--config", str(config)])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["entries"][0]["login"] == "2023-11-14 22:13:20"

    def test_invalid_config(self, runner: CliRunner, tmp_path: Path) -> None:
        config = tmp_path / "wtmp-history.yaml"
        config.write_text("store:\n  rotate_days: 0\n", encoding="utf-8")
        result = runner.invoke(cli, ["last", "--config", str(config)])
        assert result.exit_code == 1
        assert "Invalid configuration" in result.output


# ---------------------------------------------------------------------------
# boot / shutdown / boottime
# ---------------------------------------------------------------------------


class TestBootCycle:
    def test_boot_records_marker(self, runner: CliRunner, log_path: Path, store_args: list[str]) -> None:
        result = runner.invoke(cli, ["boot", *store_args])
        assert result.exit_code == 0, result.output
        record = next(EventLog(log_path).records())
        assert record.is_boot
        assert record.user == "reboot"
        assert record.tty == BOOT_TTY
        assert not record.has_logout

    def test_soft_reboot(self, runner: CliRunner, log_path: Path, store_args: list[str]) -> None:
        runner.invoke(cli, ["boot", "--soft-reboot", *store_args])
        assert next(EventLog(log_path).records()).user == "soft-reboot"

    def test_shutdown_closes_boot(self, runner: CliRunner, log_path: Path, store_args: list[str]) -> None:
        runner.invoke(cli, ["boot", *store_args])
        result = runner.invoke(cli, ["shutdown", *store_args])
        assert result.exit_code == 0, result.output
        assert next(EventLog(log_path).records()).has_logout

    def test_shutdown_without_boot(self, runner: CliRunner, store_args: list[str]) -> None:
        result = runner.invoke(cli, ["shutdown", *store_args])
        assert result.exit_code == 1
        assert "Couldn't write shutdown entry" in result.output

    def test_boottime(self, runner: CliRunner, log_path: Path, store_args: list[str]) -> None:
        EventLog(log_path).login(RecordKind.BOOT_MARKER, "reboot", T, BOOT_TTY)
        result = runner.invoke(cli, ["boottime", *store_args])
        assert result.exit_code == 0
        assert result.output == "system boot Tue Nov 14 22:13:20 2023\n"

    def test_boottime_without_boot(self, runner: CliRunner, store_args: list[str]) -> None:
        result = runner.invoke(cli, ["boottime", *store_args])
        assert result.exit_code == 1


# ---------------------------------------------------------------------------
# rotate
# ---------------------------------------------------------------------------


class TestRotate:
    def test_nothing_to_rotate(self, runner: CliRunner, log_path: Path, store_args: list[str]) -> None:
        EventLog(log_path).login(RecordKind.USER_SESSION, "alice", T, "pts/0")
        result = runner.invoke(cli, ["rotate", "--days", "100000", *store_args])
        assert result.exit_code == 0
        assert "No old entries found" in result.output

    def test_rotates_old_entries(self, runner: CliRunner, log_path: Path, store_args: list[str]) -> None:
        EventLog(log_path).login(RecordKind.USER_SESSION, "alice", T, "pts/0")
        result = runner.invoke(cli, ["rotate", "--days", "1", *store_args])
        assert result.exit_code == 0
        assert "1 entries moved to" in result.output
        assert EventLog(log_path).count() == 0

    def test_days_must_be_positive(self, runner: CliRunner, store_args: list[str]) -> None:
        result = runner.invoke(cli, ["rotate", "--days", "0", *store_args])
        assert result.exit_code == 2
