import socket

import pytest

from minnow.address import Address
from minnow.file_descriptor import FileDescriptor
from minnow.helpers import concat, parse, serialize
from minnow.ipv4_datagram import InternetDatagram
from minnow.ipv4_header import IPv4Header
from minnow.tcp_messages import TCPMessage, TCPReceiverMessage, TCPSenderMessage
from minnow.tcp_segment import TCPSegment
from minnow.tuntap_adapter import TCPOverIPv4OverTunFdAdapter


@pytest.fixture
def fd_pair():
    a, b = socket.socketpair(socket.AF_UNIX, socket.SOCK_DGRAM)
    fa = FileDescriptor(a.detach())
    fb = FileDescriptor(b.detach())
    yield fa, fb
    for f in (fa, fb):
        if not f.closed():
            f.close()


def _configure(adapter, source, destination):
    adapter.config.source = source
    adapter.config.destination = destination
    return adapter


@pytest.fixture
def adapters(fd_pair):
    fa, fb = fd_pair
    a_addr = Address("10.0.0.1", 1000)
    b_addr = Address("10.0.0.2", 2000)
    a = _configure(TCPOverIPv4OverTunFdAdapter(fa), a_addr, b_addr)
    b = _configure(TCPOverIPv4OverTunFdAdapter(fb), b_addr, a_addr)
    return a, b


def _message(**sender):
    return TCPMessage(
        sender=TCPSenderMessage(**sender),
        receiver=TCPReceiverMessage(ackno=7, window_size=100),
    )


def test_fd_returns_device(fd_pair):
    fa, _ = fd_pair
    adapter = TCPOverIPv4OverTunFdAdapter(fa)
    assert adapter.fd() is fa


def test_round_trip(adapters):
    a, b = adapters
    msg = _message(seqno=5, syn=True, payload=b"hi")
    a.write(msg)
    got = b.read()
    assert got == msg


def test_round_trip_large_payload(adapters):
    a, b = adapters
    payload = bytes(range(256)) * 4
    msg = _message(seqno=123456, payload=payload, fin=True)
    a.write(msg)
    got = b.read()
    assert got.sender.payload == payload
    assert got.sender.fin is True
    assert got.sender.seqno == 123456


def test_written_bytes_form_valid_datagram(adapters, fd_pair):
    a, _ = adapters
    _, fb = fd_pair
    msg = _message(seqno=1, payload=b"data")
    a.write(msg)
    raw = fb.read()
    dgram = InternetDatagram()
    assert parse(dgram, raw)
    assert dgram.header.proto == IPv4Header.PROTO_TCP
    assert dgram.header.src == Address("10.0.0.1").ipv4_numeric()
    assert dgram.header.dst == Address("10.0.0.2").ipv4_numeric()
    assert dgram.header.payload_length() == TCPSegment.HEADER_LENGTH + len(b"data")
    segment = TCPSegment()
    assert parse(segment, dgram.payload, dgram.header.pseudo_checksum())
    assert segment.udinfo.src_port == 1000
    assert segment.udinfo.dst_port == 2000


def test_datagram_for_other_host_is_ignored(fd_pair):
    fa, fb = fd_pair
    a = _configure(
        TCPOverIPv4OverTunFdAdapter(fa), Address("10.0.0.1", 1000), Address("10.0.0.2", 2000)
    )
    b = _configure(
        TCPOverIPv4OverTunFdAdapter(fb), Address("10.0.0.9", 2000), Address("10.0.0.1", 1000)
    )
    a.write(_message(seqno=1))
    assert b.read() is None


def test_wrong_port_is_ignored(fd_pair):
    fa, fb = fd_pair
    a = _configure(
        TCPOverIPv4OverTunFdAdapter(fa), Address("10.0.0.1", 1000), Address("10.0.0.2", 2000)
    )
    b = _configure(
        TCPOverIPv4OverTunFdAdapter(fb), Address("10.0.0.2", 2001), Address("10.0.0.1", 1000)
    )
    a.write(_message(seqno=1))
    assert b.read() is None


def test_garbage_is_ignored(adapters, fd_pair):
    _, b = adapters
    fa, _ = fd_pair
    fa.write(b"garbage")
    assert b.read() is None


def test_corrupted_datagram_is_ignored(adapters, fd_pair):
    a, b = adapters
    fa, _ = fd_pair
    raw = bytearray(concat(serialize(a.wrap_tcp_in_ip(_message(seqno=3, payload=b"xyz")))))
    raw[-1] ^= 0xFF
    fa.write(bytes(raw))
    assert b.read() is None


def test_listening_accepts_syn_and_records_peer(fd_pair):
    fa, fb = fd_pair
    a = _configure(
        TCPOverIPv4OverTunFdAdapter(fa), Address("10.0.0.1", 1000), Address("10.0.0.2", 2000)
    )
    b = _configure(TCPOverIPv4OverTunFdAdapter(fb), Address("0", 2000), Address("0", 0))
    b.listening = True
    msg = _message(seqno=9, syn=True)
    a.write(msg)
    assert b.read() == msg
    assert b.listening is False
    assert b.config.destination == Address("10.0.0.1", 1000)
    assert b.config.source == Address("10.0.0.2", 2000)


def test_listening_ignores_non_syn(fd_pair):
    fa, fb = fd_pair
    a = _configure(
        TCPOverIPv4OverTunFdAdapter(fa), Address("10.0.0.1", 1000), Address("10.0.0.2", 2000)
    )
    b = _configure(TCPOverIPv4OverTunFdAdapter(fb), Address("0", 2000), Address("0", 0))
    b.listening = True
    a.write(_message(seqno=9))
    assert b.read() is None
    assert b.listening is True


def test_nonblocking_read_with_nothing_waiting(adapters, fd_pair):
    _, b = adapters
    _, fb = fd_pair
    fb.set_blocking(False)
    assert b.read() is None