import errno
import struct
from unittest import mock

import pytest

from tftplibs import ping as ping_mod
from tftplibs.ping import (
    ICMP_DEST_UNREACH,
    ICMP_ECHO_REPLY,
    ICMP_ECHO_REQUEST,
    ICMP_TTL_EXPIRE,
    PINGAPI_MYID,
    REQ_DATASIZE,
    PingError,
    PingPrivilegeError,
    PingResult,
    PingTimeout,
    PingTtlExpired,
    PingUnreachable,
    build_echo_request,
    in_cksum,
    parse_echo_reply,
)


def _ip_header(ttl=64):
    return bytes([0x45, 0]) + b"\x00" * 6 + bytes([ttl, 1]) + b"\x00" * 10


def _as_reply(request, icmp_type=ICMP_ECHO_REPLY):
    return bytes([icmp_type]) + request[1:]


class _FakeSocket:
    def __init__(self, reply_type=ICMP_ECHO_REPLY, ttl=57):
        self.sent = None
        self.reply_type = reply_type
        self.ttl = ttl
        self.options = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def setsockopt(self, level, option, value):
        self.options.append((level, option, value))

    def sendto(self, data, address):
        self.sent = data
        return len(data)

    def recvfrom(self, size):
        return _ip_header(self.ttl) + _as_reply(self.sent, self.reply_type), ("192.0.2.1", 0)


def test_in_cksum_rfc1071_example():
    assert in_cksum(bytes([0x00, 0x01, 0xF2, 0x03, 0xF4, 0xF5, 0xF6, 0xF7])) == 0x220D


def test_in_cksum_odd_length_pads_with_zero():
    assert in_cksum(b"\x12\x34\x56") == in_cksum(b"\x12\x34\x56\x00")


def test_echo_request_checksum_verifies():
    request = build_echo_request(PINGAPI_MYID, 7, 123456)
    assert in_cksum(request) == 0


def test_echo_request_layout():
    request = build_echo_request(PINGAPI_MYID, 3, 99)
    assert request[0] == ICMP_ECHO_REQUEST
    assert request[1] == 0
    assert struct.unpack("!HH", request[4:8]) == (PINGAPI_MYID, 3)
    assert request[-REQ_DATASIZE:] == bytes(0x20 + n for n in range(REQ_DATASIZE))
    assert len(request) == ping_mod.ECHO_REQUEST_SIZE


def test_parse_round_trip():
    request = build_echo_request(PINGAPI_MYID, 42, 0xDEADBEEF)
    reply = parse_echo_reply(_ip_header(33) + _as_reply(request))
    assert reply.icmp_type == ICMP_ECHO_REPLY
    assert reply.ident == PINGAPI_MYID
    assert reply.seq == 42
    assert reply.ttl == 33
    assert reply.timestamp == 0xDEADBEEF


def test_parse_short_packet_raises():
    with pytest.raises(ValueError):
        parse_echo_reply(_ip_header() + b"\x00\x00")


def test_ping_privilege_error():
    with mock.patch("socket.socket", side_effect=PermissionError(errno.EPERM, "denied")):
        with pytest.raises(PingPrivilegeError):
            ping_mod.ping("127.0.0.1", 100)


def test_ping_other_socket_error():
    with mock.patch("socket.socket", side_effect=OSError(errno.EINVAL, "bad")):
        with pytest.raises(PingError) as info:
            ping_mod.ping("127.0.0.1", 100)
    assert not isinstance(info.value, PingPrivilegeError)


def test_ping_timeout():
    fake = _FakeSocket()
    with mock.patch("socket.socket", return_value=fake), mock.patch(
        "select.select", return_value=([], [], [])
    ):
        with pytest.raises(PingTimeout):
            ping_mod.ping("192.0.2.1", 50)
    assert fake.sent[0] == ICMP_ECHO_REQUEST


def test_ping_success():
    fake = _FakeSocket(ttl=57)
    with mock.patch("socket.socket", return_value=fake), mock.patch(
        "select.select", side_effect=lambda r, w, x, t: (r, [], [])
    ):
        result = ping_mod.ping("192.0.2.1", 2000, ttl=5)
    assert isinstance(result, PingResult)
    assert result.ttl == 57
    assert 1 <= result.elapsed_ms < 2000
    assert fake.options[0][2] == 5


@pytest.mark.parametrize(
    "reply_type, error",
    [(ICMP_DEST_UNREACH, PingUnreachable), (ICMP_TTL_EXPIRE, PingTtlExpired)],
)
def test_ping_error_replies(reply_type, error):
    fake = _FakeSocket(reply_type=reply_type)
    with mock.patch("socket.socket", return_value=fake), mock.patch(
        "select.select", side_effect=lambda r, w, x, t: (r, [], [])
    ):
        with pytest.raises(error):
            ping_mod.ping("192.0.2.1", 2000)