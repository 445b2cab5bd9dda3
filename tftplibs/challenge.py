"""Session check run right after connecting: protocol version and shared key."""

from __future__ import annotations

import random
import socket
import struct
import time
from typing import Union

from .tcp4u import TcpError, pp_recv, pp_send

_CHALLENGE_SIZE = 12
# int version, 12 challenge bytes, one pad byte, aligned to 4 bytes.
_FRAME = struct.Struct("<i12sB3x")
_RECV_TIMEOUT = 10


class VersionMismatch(TcpError):
    """The peer speaks another protocol version."""

    def __init__(self, local_version: int, peer_version: int):
        super().__init__(f"peer version {peer_version} differs from {local_version}")
        self.local_version = local_version
        self.peer_version = peer_version


class BadAuthentication(TcpError):
    """The peer does not share the key."""


def _as_bytes(value: Union[bytes, str]) -> bytes:
    return value.encode("latin-1") if isinstance(value, str) else bytes(value)


def sym_crypt(data: bytes, key: Union[bytes, str]) -> bytes:
    """XOR ``data`` with ``key``; applying it twice gives back ``data``.

    Byte ``i`` is combined with key byte ``i * 13 % len(key)``.
    """
    key_bytes = _as_bytes(key)
    if not key_bytes:
        raise ValueError("key must not be empty")
    return bytes(
        byte ^ key_bytes[index * 13 % len(key_bytes)] for index, byte in enumerate(bytes(data))
    )


def _recv_frame(sock: socket.socket) -> tuple[int, bytes]:
    frame = pp_recv(sock, _FRAME.size, _RECV_TIMEOUT)
    if len(frame) != _FRAME.size:
        raise TcpError(f"challenge frame of {len(frame)} bytes, expected {_FRAME.size}")
    version, challenge, _ = _FRAME.unpack(frame)
    return version, challenge


def exchange_challenge(
    sock: socket.socket,
    seed: int,
    version: int,
    key: Union[bytes, str],
) -> int:
    """Check that the peer runs ``version`` and knows ``key``; return the peer version.

    Each side sends a random challenge, encrypts the one it receives with the
    key and sends it back, then checks its own challenge came back correctly.
    Raises :class:`VersionMismatch`, :class:`BadAuthentication` or
    :class:`~tftplibs.tcp4u.TcpError`.
    """
    _as_bytes(key) or sym_crypt(b"", key)
    rng = random.Random(time.time_ns() + seed + sock.fileno())
    challenge = bytes(rng.randrange(256) for _ in range(_CHALLENGE_SIZE))

    pp_send(sock, _FRAME.pack(version, challenge, 0))
    peer_version, peer_challenge = _recv_frame(sock)
    if peer_version != version:
        raise VersionMismatch(version, peer_version)

    pp_send(sock, _FRAME.pack(peer_version, sym_crypt(peer_challenge, key), 0))
    _, returned = _recv_frame(sock)
    if sym_crypt(returned, key) != challenge:
        raise BadAuthentication("peer did not return our challenge")
    return peer_version