"""ICMP echo (ping) over a raw socket."""

from __future__ import annotations

import errno
import itertools
import select
import socket
import struct
import time
from dataclasses import dataclass
from typing import NamedTuple, Optional, Union

PINGAPI_MYID = 216

ICMP_ECHO_REPLY = 0
ICMP_DEST_UNREACH = 3
ICMP_ECHO_REQUEST = 8
ICMP_TTL_EXPIRE = 11

# Minimum ICMP packet size, in bytes.
ICMP_MIN = 8

# Size of the data carried by an echo request.
REQ_DATASIZE = 32

# type, code, checksum, identifier, sequence, one data byte (packed).
_ICMP_HEADER = struct.Struct("!BBHHHB")
_TIMESTAMP = struct.Struct("!I")
_CHECKSUM = struct.Struct("!H")
_IP_HEADER_SIZE = 20
_PAYLOAD = bytes(0x20 + n for n in range(REQ_DATASIZE))

ECHO_REQUEST_SIZE = _ICMP_HEADER.size + _TIMESTAMP.size + REQ_DATASIZE
_REPLY_BUFFER = _IP_HEADER_SIZE + ECHO_REQUEST_SIZE + 256

_PRIVILEGE_ERRNOS = {errno.EACCES, errno.EPERM, 10013}

_sequence = itertools.count(1)


class PingError(Exception):
    """The ping could not be carried out."""


class PingTimeout(PingError):
    """No echo reply arrived in time."""


class PingUnreachable(PingError):
    """The destination was reported unreachable."""


class PingTtlExpired(PingError):
    """The request's time to live expired on the way."""


class PingPrivilegeError(PingError):
    """Raw sockets are not allowed for this process."""


@dataclass(frozen=True)
class PingResult:
    """Round-trip time in milliseconds (at least 1) and the TTL of the reply."""

    elapsed_ms: int
    ttl: int


class _EchoReply(NamedTuple):
    icmp_type: int
    code: int
    ident: int
    seq: int
    ttl: int
    timestamp: int


def in_cksum(data: bytes) -> int:
    """Return the Internet checksum of ``data`` (one's complement of the 16-bit sum)."""
    data = bytes(data)
    if len(data) % 2:
        data += b"\x00"
    total = sum(struct.unpack(f"!{len(data) // 2}H", data))
    while total >> 16:
        total = (total >> 16) + (total & 0xFFFF)
    return ~total & 0xFFFF


def build_echo_request(ident: int = PINGAPI_MYID, seq: int = 1, timestamp: int = 0) -> bytes:
    """Return an ICMP echo request carrying ``timestamp`` and 32 bytes of filler."""
    body = _TIMESTAMP.pack(timestamp & 0xFFFFFFFF) + _PAYLOAD
    fields = [ICMP_ECHO_REQUEST, 0, 0, ident & 0xFFFF, seq & 0xFFFF, 0]
    fields[2] = in_cksum(_ICMP_HEADER.pack(*fields) + body)
    return _ICMP_HEADER.pack(*fields) + body


def parse_echo_reply(packet: bytes) -> _EchoReply:
    """Decode an IP packet holding an ICMP message.

    Raises :class:`ValueError` when the packet is too short to hold an IP
    header and an ICMP header.
    """
    packet = bytes(packet)
    if len(packet) < _IP_HEADER_SIZE + _ICMP_HEADER.size:
        raise ValueError(f"packet of {len(packet)} bytes is too short")
    header_len = max((packet[0] & 0x0F) * 4, _IP_HEADER_SIZE)
    if len(packet) < header_len + _ICMP_HEADER.size:
        raise ValueError(f"packet of {len(packet)} bytes is too short")
    ttl = packet[8]
    icmp_type, code, _, ident, seq, _ = _ICMP_HEADER.unpack_from(packet, header_len)
    offset = header_len + _ICMP_HEADER.size
    timestamp = 0
    if len(packet) >= offset + _TIMESTAMP.size:
        (timestamp,) = _TIMESTAMP.unpack_from(packet, offset)
    return _EchoReply(icmp_type, code, ident, seq, ttl, timestamp)


def _tick_ms() -> int:
    return int(time.monotonic() * 1000) & 0xFFFFFFFF


def _setup_error(exc: OSError) -> PingError:
    if isinstance(exc, PermissionError) or exc.errno in _PRIVILEGE_ERRNOS:
        return PingPrivilegeError(f"raw socket not permitted: {exc}")
    return PingError(f"cannot send echo request: {exc}")


def _wait_for_reply(sock: socket.socket, timeout: float) -> _EchoReply:
    deadline = time.monotonic() + timeout
    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise PingTimeout("no echo reply")
        try:
            readable, _, _ = select.select([sock], [], [], remaining)
        except (OSError, ValueError) as exc:
            raise PingError(f"select failed: {exc}") from exc
        if not readable:
            raise PingTimeout("no echo reply")
        try:
            packet, _ = sock.recvfrom(_REPLY_BUFFER)
        except OSError as exc:
            raise PingError(f"recvfrom failed: {exc}") from exc
        try:
            reply = parse_echo_reply(packet)
        except ValueError:
            continue
        if reply.icmp_type == ICMP_DEST_UNREACH:
            raise PingUnreachable("destination unreachable")
        if reply.icmp_type == ICMP_TTL_EXPIRE:
            raise PingTtlExpired("time to live expired")
        if reply.icmp_type == ICMP_ECHO_REPLY and reply.ident == PINGAPI_MYID:
            if time.monotonic() > deadline:
                raise PingTimeout("echo reply arrived too late")
            return reply


def ping(address: Union[str, object], timeout_ms: int = 1000, ttl: Optional[int] = None) -> PingResult:
    """Send one echo request to the IPv4 ``address`` and wait for the reply.

    ``ttl`` sets the time to live of the request. Raises
    :class:`PingPrivilegeError`, :class:`PingTimeout`, :class:`PingUnreachable`,
    :class:`PingTtlExpired` or :class:`PingError`.
    """
    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_RAW, socket.IPPROTO_ICMP)
    except OSError as exc:
        raise _setup_error(exc) from exc
    with sock:
        if ttl is not None:
            try:
                sock.setsockopt(socket.IPPROTO_IP, socket.IP_TTL, int(ttl))
            except OSError as exc:
                raise _setup_error(exc) from exc
        request = build_echo_request(PINGAPI_MYID, next(_sequence), _tick_ms())
        try:
            sent = sock.sendto(request, (str(address), 0))
        except OSError as exc:
            raise _setup_error(exc) from exc
        if sent < len(request):
            raise PingError(f"only {sent} of {len(request)} bytes sent")
        reply = _wait_for_reply(sock, timeout_ms / 1000)
    elapsed = (_tick_ms() - reply.timestamp) & 0xFFFFFFFF
    return PingResult(elapsed or 1, reply.ttl)