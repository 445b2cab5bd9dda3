"""Small TCP and UDP helpers: listening, connecting and length-prefixed frames."""

from __future__ import annotations

import logging
import select
import socket
import struct
from typing import BinaryIO, Optional, Union

logger = logging.getLogger(__name__)

# Special timeouts understood by tcp_recv and pp_recv.
WAIT_FOREVER = 0
DONT_WAIT = -1

# Largest payload of a length-prefixed frame.
PP_MAX_SIZE = 0x7FFF

_LENGTH = struct.Struct("!H")

# getaddrinfo failures meaning "unknown service name" (POSIX and Winsock codes).
_SERVICE_ERRORS = {
    code
    for code in (
        getattr(socket, "EAI_SERVICE", None),
        getattr(socket, "EAI_SOCKTYPE", None),
        10108,
        10109,
    )
    if code is not None
}

Timeout = Optional[float]


class TcpError(Exception):
    """A socket operation failed."""


class TcpTimeout(TcpError):
    """No data arrived before the timeout."""


class TcpOverflow(TcpError):
    """A frame is larger than allowed."""


class TcpSocketClosed(TcpError):
    """The peer closed the connection."""


def _resolve(host, service, port, family, socktype, proto, flags=0):
    if service is not None:
        try:
            return socket.getaddrinfo(host, str(service), family, socktype, proto, flags)
        except socket.gaierror as exc:
            if exc.errno not in _SERVICE_ERRORS:
                raise TcpError(f"cannot resolve {host!r}/{service!r}: {exc}") from exc
    numeric = str(port or 0)
    try:
        return socket.getaddrinfo(
            host, numeric, family, socktype, proto, flags | socket.AI_NUMERICSERV
        )
    except socket.gaierror as exc:
        raise TcpError(f"cannot resolve {host!r}/{numeric}: {exc}") from exc


def get_listen_socket(
    family: int,
    service: Union[str, int, None] = None,
    port: Optional[int] = 0,
) -> tuple[socket.socket, int]:
    """Open a listening TCP socket and return it with the port it is bound to.

    ``service`` is looked up first; when it is unknown (or None) the numeric
    ``port`` is used instead. :class:`TcpError` is raised on failure.
    """
    infos = _resolve(
        None, service, port, family, socket.SOCK_STREAM, socket.IPPROTO_TCP, socket.AI_PASSIVE
    )
    af, socktype, proto, _, address = infos[0]
    try:
        sock = socket.socket(af, socktype, proto)
    except OSError as exc:
        raise TcpError(f"cannot create socket: {exc}") from exc
    try:
        sock.bind(address)
        sock.listen(1)
        bound_port = sock.getsockname()[1]
    except OSError as exc:
        sock.close()
        raise TcpError(f"cannot listen on {address!r}: {exc}") from exc
    return sock, bound_port


def tcp_connect(
    host: str,
    service: Union[str, int, None] = None,
    family: int = socket.AF_UNSPEC,
    port: Optional[int] = 0,
) -> socket.socket:
    """Connect to ``host`` and return the connected socket.

    ``service`` is looked up first; when it is unknown (or None) the numeric
    ``port`` is used. :class:`TcpError` is raised on failure.
    """
    infos = _resolve(host, service, port, family, socket.SOCK_STREAM, socket.IPPROTO_TCP)
    af, socktype, proto, _, address = infos[0]
    try:
        sock = socket.socket(af, socktype, proto)
    except OSError as exc:
        raise TcpError(f"cannot create socket: {exc}") from exc
    try:
        sock.connect(address)
    except OSError as exc:
        sock.close()
        raise TcpError(f"cannot connect to {address!r}: {exc}") from exc
    return sock


def _select_timeout(timeout: Timeout) -> Optional[float]:
    if timeout is None or timeout == WAIT_FOREVER:
        return None
    if timeout == DONT_WAIT:
        return 0.0
    return float(timeout)


def tcp_recv(
    sock: Optional[socket.socket],
    size: int,
    timeout: Timeout = WAIT_FOREVER,
    log_file: Optional[BinaryIO] = None,
) -> bytes:
    """Wait for data and return at most ``size`` bytes of it.

    ``timeout`` is in seconds; :data:`WAIT_FOREVER` (or None) blocks and
    :data:`DONT_WAIT` only polls. With ``size`` 0 the function returns
    ``b""`` as soon as data is available. Raises :class:`TcpTimeout`,
    :class:`TcpSocketClosed` or :class:`TcpError`.
    """
    if sock is None:
        raise TcpError("no socket")
    try:
        readable, _, _ = select.select([sock], [], [], _select_timeout(timeout))
    except (OSError, ValueError) as exc:
        logger.debug("select returns error %s", exc)
        raise TcpError(f"select failed: {exc}") from exc
    if not readable:
        raise TcpTimeout("timeout while receiving")
    if size <= 0:
        return b""
    try:
        data = sock.recv(size)
    except OSError as exc:
        logger.debug("recv returns error %s", exc)
        raise TcpError(f"recv failed: {exc}") from exc
    if not data:
        raise TcpSocketClosed("connection closed by peer")
    if log_file is not None:
        log_file.write(data)
    return data


def tcp_send(
    sock: Optional[socket.socket],
    data: bytes,
    log_file: Optional[BinaryIO] = None,
) -> None:
    """Send all of ``data``; :class:`TcpError` is raised if it cannot be sent."""
    if sock is None:
        raise TcpError("no socket")
    data = bytes(data)
    if log_file is not None:
        log_file.write(data)
    try:
        sock.sendall(data)
    except OSError as exc:
        raise TcpError(f"send failed: {exc}") from exc


def pp_send(
    sock: Optional[socket.socket],
    data: bytes,
    log_file: Optional[BinaryIO] = None,
) -> None:
    """Send ``data`` preceded by its length as a 16-bit big-endian number.

    Raises :class:`TcpOverflow` when ``data`` is longer than 0x7FFF bytes.
    """
    if sock is None:
        raise TcpError("no socket")
    data = bytes(data)
    if len(data) > PP_MAX_SIZE:
        raise TcpOverflow(f"frame of {len(data)} bytes exceeds {PP_MAX_SIZE}")
    if log_file is not None:
        log_file.write(data)
    try:
        sock.sendall(_LENGTH.pack(len(data)) + data)
    except OSError as exc:
        logger.debug("send returns error %s", exc)
        raise TcpError(f"send failed: {exc}") from exc


def _recv_exact(sock, count, timeout, log_file) -> bytes:
    chunks = []
    remaining = count
    while remaining > 0:
        chunk = tcp_recv(sock, remaining, timeout, log_file)
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def pp_recv(
    sock: Optional[socket.socket],
    size: int,
    timeout: Timeout = WAIT_FOREVER,
    log_file: Optional[BinaryIO] = None,
) -> bytes:
    """Receive one length-prefixed frame and return its payload.

    Raises :class:`TcpOverflow` when the announced length exceeds 0x7FFF or
    ``size``; other failures raise as in :func:`tcp_recv`.
    """
    (expected,) = _LENGTH.unpack(_recv_exact(sock, _LENGTH.size, timeout, log_file))
    if expected > PP_MAX_SIZE or expected > size:
        raise TcpOverflow(f"announced frame of {expected} bytes is too large")
    return _recv_exact(sock, expected, timeout, log_file)


def _family_of(address: tuple) -> int:
    if len(address) == 4 or ":" in str(address[0]):
        return socket.AF_INET6
    return socket.AF_INET


def udp_send(from_port: int, address: tuple, data: bytes) -> int:
    """Send ``data`` to ``address`` from local port ``from_port``.

    The source port may be shared with another socket. Returns the number of
    bytes sent; :class:`TcpError` is raised when the port cannot be bound.
    """
    family = _family_of(address)
    infos = _resolve(
        None, None, from_port, family, socket.SOCK_DGRAM, socket.IPPROTO_UDP, socket.AI_PASSIVE
    )
    af, socktype, proto, _, local = infos[0]
    try:
        sock = socket.socket(af, socktype, proto)
    except OSError as exc:
        raise TcpError(f"cannot create socket: {exc}") from exc
    with sock:
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            logger.debug("udp_send: port %d may be reused", from_port)
        except OSError as exc:
            logger.debug("setsockopt error %s", exc)
        try:
            sock.bind(local)
        except OSError as exc:
            raise TcpError(f"cannot bind port {from_port}: {exc}") from exc
        try:
            sent = sock.sendto(bytes(data), address)
        except OSError as exc:
            raise TcpError(f"sendto failed: {exc}") from exc
        logger.debug("sendto returns %d", sent)
        return sent