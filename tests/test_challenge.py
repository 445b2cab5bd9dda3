import socket
import struct
import threading

import pytest

from tftplibs.challenge import (
    BadAuthentication,
    VersionMismatch,
    exchange_challenge,
    sym_crypt,
)
from tftplibs.tcp4u import pp_recv


def _run_peer(sock, seed, version, key):
    outcome = {}

    def target():
        try:
            outcome["result"] = exchange_challenge(sock, seed, version, key)
        except Exception as exc:
            outcome["error"] = exc

    thread = threading.Thread(target=target)
    thread.start()
    return thread, outcome


@pytest.fixture
def pair():
    a, b = socket.socketpair()
    yield a, b
    a.close()
    b.close()


def test_sym_crypt_round_trip():
    data = bytes(range(12))
    encrypted = sym_crypt(data, "secret")
    assert encrypted != data
    assert sym_crypt(encrypted, "secret") == data


def test_sym_crypt_key_index():
    assert sym_crypt(b"\x00\x00\x00", b"ab") == b"aba"


def test_sym_crypt_empty_key():
    with pytest.raises(ValueError):
        sym_crypt(b"abc", "")


def test_exchange_success(pair):
    a, b = pair
    thread, outcome = _run_peer(b, 2, 7, "secret")
    assert exchange_challenge(a, 1, 7, "secret") == 7
    thread.join(10)
    assert outcome == {"result": 7}


def test_exchange_wrong_key(pair):
    a, b = pair
    thread, outcome = _run_peer(b, 2, 7, "token")
    with pytest.raises(BadAuthentication):
        exchange_challenge(a, 1, 7, "secret")
    thread.join(10)
    assert isinstance(outcome.get("error"), BadAuthentication)


def test_exchange_version_mismatch(pair):
    a, b = pair
    thread, outcome = _run_peer(b, 2, 5, "secret")
    with pytest.raises(VersionMismatch) as info:
        exchange_challenge(a, 1, 7, "secret")
    assert info.value.peer_version == 5
    thread.join(10)
    assert outcome["error"].peer_version == 7


def test_first_frame_layout(pair):
    a, b = pair
    thread, outcome = _run_peer(a, 0, 3, "secret")
    body = pp_recv(b, 100, 5)
    assert len(body) == 20
    assert struct.unpack("<i", body[:4])[0] == 3
    b.close()
    thread.join(10)
    assert "error" in outcome