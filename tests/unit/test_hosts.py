"""Tests for remote host translation."""
from __future__ import annotations

import socket
from typing import Iterator

import pytest

from wtmp_history import hosts
from wtmp_history.hosts import HostTranslator


@pytest.fixture(autouse=True)
def clear_caches() -> Iterator[None]:
    hosts._reverse_lookup.cache_clear()
    hosts._forward_lookup.cache_clear()
    yield
    hosts._reverse_lookup.cache_clear()
    hosts._forward_lookup.cache_clear()


class TestDisabled:
    def test_passthrough(self) -> None:
        translator = HostTranslator()
        assert not translator.enabled
        assert translator.translate("10.0.0.1") == "10.0.0.1"

    def test_empty_host(self) -> None:
        assert HostTranslator(reverse=True).translate("") == ""


class TestReverse:
    def test_address_to_name(self, monkeypatch: pytest.MonkeyPatch) -> None:
        calls: list[tuple[object, int]] = []

        def fake_getnameinfo(sockaddr: tuple[str, int], flags: int) -> tuple[str, str]:
            calls.append((sockaddr, flags))
            return "gateway.example", "0"

        monkeypatch.setattr(socket, "getnameinfo", fake_getnameinfo)
        translator = HostTranslator(reverse=True)
        assert translator.enabled
        assert translator.translate("10.0.0.1") == "gateway.example"
        assert calls == [(("10.0.0.1", 0), socket.NI_NAMEREQD)]

    def test_lookup_cached(self, monkeypatch: pytest.MonkeyPatch) -> None:
        calls: list[str] = []

        def fake_getnameinfo(sockaddr: tuple[str, int], flags: int) -> tuple[str, str]:
            calls.append(sockaddr[0])
            return "gateway.example", "0"

        monkeypatch.setattr(socket, "getnameinfo", fake_getnameinfo)
        translator = HostTranslator(reverse=True)
        translator.translate("10.0.0.1")
        translator.translate("10.0.0.1")
        assert calls == ["10.0.0.1"]

    def test_not_an_address(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def fail(*args: object) -> None:
            raise AssertionError("resolver must not be called")

        monkeypatch.setattr(socket, "getnameinfo", fail)
        assert HostTranslator(reverse=True).translate("tty-console") == "tty-console"

    def test_failure_keeps_address(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def fake_getnameinfo(sockaddr: tuple[str, int], flags: int) -> tuple[str, str]:
            raise socket.gaierror("no name")

        monkeypatch.setattr(socket, "getnameinfo", fake_getnameinfo)
        assert HostTranslator(reverse=True).translate("192.0.2.7") == "192.0.2.7"


class TestForward:
    def test_name_to_address(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def fake_getaddrinfo(host: str, port: object, family: int, kind: int) -> list[tuple]:
            return [(socket.AF_INET6, kind, 0, "", ("2001:db8::1", 0, 0, 0))]

        monkeypatch.setattr(socket, "getaddrinfo", fake_getaddrinfo)
        assert HostTranslator(forward=True).translate("gateway.example") == "2001:db8::1"

    def test_failure_keeps_name(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def fake_getaddrinfo(*args: object) -> list[tuple]:
            raise socket.gaierror("unknown host")

        monkeypatch.setattr(socket, "getaddrinfo", fake_getaddrinfo)
        assert HostTranslator(forward=True).translate("nowhere.invalid") == "nowhere.invalid"
