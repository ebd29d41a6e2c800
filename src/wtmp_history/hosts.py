"""Remote host translation for displayed session rows.

Reverse translation turns an IP address into a host name (only when the
resolver returns a real name); forward translation turns a host name into
its first IPv4 or IPv6 address.  Lookups that fail leave the value as
stored.
"""
from __future__ import annotations

import ipaddress
import logging
import socket
from functools import lru_cache

logger = logging.getLogger(__name__)


class HostTranslator:
    """Translates remote host labels before display.

    Parameters
    ----------
    reverse:
        Translate IP addresses into host names.
    forward:
        Translate host names into IP addresses.
    """

    def __init__(self, reverse: bool = False, forward: bool = False) -> None:
        self._reverse = reverse
        self._forward = forward

    @property
    def enabled(self) -> bool:
        return self._reverse or self._forward

    def translate(self, host: str) -> str:
        """Return the display form of *host*."""
        if not host:
            return host
        if self._reverse:
            return _reverse_lookup(host)
        if self._forward:
            return _forward_lookup(host)
        return host


@lru_cache(maxsize=256)
def _reverse_lookup(host: str) -> str:
    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return host
    try:
        name, _ = socket.getnameinfo((str(address), 0), socket.NI_NAMEREQD)
    except (socket.gaierror, socket.herror, OSError) as exc:
        logger.debug("Reverse lookup of %s failed: %s", host, exc)
        return host
    return name


@lru_cache(maxsize=256)
def _forward_lookup(host: str) -> str:
    try:
        results = socket.getaddrinfo(host, None, socket.AF_UNSPEC, socket.SOCK_DGRAM)
    except (socket.gaierror, OSError) as exc:
        logger.debug("Forward lookup of %s failed: %s", host, exc)
        return host
    for family, _, _, _, sockaddr in results[:1]:
        if family in (socket.AF_INET, socket.AF_INET6):
            return str(sockaddr[0])
    return host
