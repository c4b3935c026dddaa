"""Socket helpers used by the server lifecycle."""

from __future__ import annotations

import ipaddress
import logging
import socket

logger = logging.getLogger(__name__)


def is_port_available(port: int, host: str = "0.0.0.0") -> bool:
    """Report whether ``port`` can currently be bound on ``host``.

    The test socket is always closed before returning. It binds with
    ``SO_REUSEADDR`` like the real server socket, so connections left in
    TIME_WAIT by a stopped server do not count as busy. A True result is
    advisory only: another process may take the port before the real bind.
    Port 0 (ephemeral) and values outside the TCP range are never available.
    """
    if not 1 <= port <= 65535:
        return False
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        try:
            s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            s.bind((host, port))
        except OSError as e:
            logger.debug("Port %d is not available: %s", port, e)
            return False
    return True


def local_network_addresses() -> list[str]:
    """Return the private IPv4 addresses this host is reachable on.

    Display-only; an empty list just means no LAN address was found.
    """
    candidates: set[str] = set()
    try:
        for info in socket.getaddrinfo(socket.gethostname(), None, socket.AF_INET):
            candidates.add(info[4][0])
    except OSError as e:
        logger.debug("Hostname lookup failed: %s", e)

    # Outbound-route trick: connecting a UDP socket sends no packets but
    # selects the interface the default route would use.
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
        try:
            s.connect(("10.255.255.255", 1))
            candidates.add(s.getsockname()[0])
        except OSError as e:
            logger.debug("Default route lookup failed: %s", e)

    addresses = []
    for candidate in candidates:
        addr = ipaddress.ip_address(candidate)
        if addr.is_private and not addr.is_loopback:
            addresses.append(candidate)
    return sorted(addresses)
