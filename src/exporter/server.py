"""Exposition listener for /metrics."""

import logging
import socket

from prometheus_client import start_http_server

from src.exporter.publisher import MetricPublisher

logger = logging.getLogger(__name__)


class PortInUseError(OSError):
    """Raised when the exporter port cannot be bound"""


def ensure_port_available(port: int, addr: str = "0.0.0.0") -> None:
    """
    Bind and release ``addr:port`` to fail fast before any scraping starts.

    The address family follows ``addr``, so IPv6 listen addresses such as
    ``::`` are checked on an IPv6 socket.

    Raises:
        ValueError: if ``addr`` does not resolve to a listen address.
        PortInUseError: if the port is already bound.
    """
    try:
        infos = socket.getaddrinfo(addr, port, type=socket.SOCK_STREAM, flags=socket.AI_PASSIVE)
    except socket.gaierror as e:
        raise ValueError(f"Invalid listen address {addr!r}: {e}") from e
    family, socktype, proto, _, sockaddr = infos[0]

    sock = socket.socket(family, socktype, proto)
    try:
        # Same option the HTTP server sets, so TIME_WAIT leftovers do not count as in use
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind(sockaddr)
    except OSError as e:
        raise PortInUseError(f"Port {port} already in use: {e}") from e
    finally:
        sock.close()


def start_metrics_server(publisher: MetricPublisher, port: int, addr: str = "0.0.0.0"):
    """Serve the publisher's registry on a background thread."""
    try:
        result = start_http_server(port, addr=addr, registry=publisher.registry)
    except OSError as e:
        raise PortInUseError(f"HTTP server failed to bind {addr}:{port}: {e}") from e
    logger.info(f"Serving metrics on http://{addr}:{port}/metrics")
    return result
