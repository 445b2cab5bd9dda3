"""MD5 message digest with an incremental interface."""

from __future__ import annotations

import math
import struct

_MASK = 0xFFFFFFFF
_INITIAL_STATE = (0x67452301, 0xEFCDAB89, 0x98BADCFE, 0x10325476)

_SHIFTS = (
    [7, 12, 17, 22] * 4
    + [5, 9, 14, 20] * 4
    + [4, 11, 16, 23] * 4
    + [6, 10, 15, 21] * 4
)

# Sine-derived additive constants of the algorithm.
_CONSTANTS = [int(abs(math.sin(i + 1)) * 2**32) & _MASK for i in range(64)]

_WORD_INDEX = (
    [i for i in range(16)]
    + [(5 * i + 1) % 16 for i in range(16)]
    + [(3 * i + 5) % 16 for i in range(16)]
    + [(7 * i) % 16 for i in range(16)]
)

_BLOCK = struct.Struct("<16I")


def _rotate_left(value: int, amount: int) -> int:
    return ((value << amount) | (value >> (32 - amount))) & _MASK


def _transform(state: tuple[int, int, int, int], block: bytes) -> tuple[int, int, int, int]:
    words = _BLOCK.unpack(block)
    a, b, c, d = state
    for step in range(64):
        if step < 16:
            mix = (b & c) | (~b & d)
        elif step < 32:
            mix = (b & d) | (c & ~d)
        elif step < 48:
            mix = b ^ c ^ d
        else:
            mix = c ^ (b | ~d)
        mix = (mix + a + _CONSTANTS[step] + words[_WORD_INDEX[step]]) & _MASK
        a, d, c = d, c, b
        b = (b + _rotate_left(mix, _SHIFTS[step])) & _MASK
    return (
        (state[0] + a) & _MASK,
        (state[1] + b) & _MASK,
        (state[2] + c) & _MASK,
        (state[3] + d) & _MASK,
    )


class MD5:
    """Incremental MD5 computation; feed data with :meth:`update`."""

    digest_size = 16
    block_size = 64

    def __init__(self, data: bytes = b""):
        self._state = _INITIAL_STATE
        self._length = 0
        self._buffer = b""
        if data:
            self.update(data)

    def update(self, data: bytes) -> None:
        """Add ``data`` to the message being hashed."""
        data = bytes(data)
        self._length += len(data)
        pending = self._buffer + data
        full = len(pending) - len(pending) % 64
        state = self._state
        for start in range(0, full, 64):
            state = _transform(state, pending[start:start + 64])
        self._state = state
        self._buffer = pending[full:]

    def digest(self) -> bytes:
        """Return the 16-byte digest of the data fed so far."""
        bit_length = (self._length * 8) & 0xFFFFFFFFFFFFFFFF
        index = len(self._buffer)
        pad_length = 56 - index if index < 56 else 120 - index
        tail = self._buffer + b"\x80" + b"\x00" * (pad_length - 1) + struct.pack("<Q", bit_length)
        state = self._state
        for start in range(0, len(tail), 64):
            state = _transform(state, tail[start:start + 64])
        return struct.pack("<4I", *state)

    def hexdigest(self) -> str:
        """Return the digest as 32 lowercase hexadecimal characters."""
        return self.digest().hex()


def md5_digest(data: bytes) -> bytes:
    """Return the MD5 digest of ``data``."""
    return MD5(data).digest()