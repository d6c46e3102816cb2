from minnow.ipv4_datagram import IPv4Datagram
from minnow.ipv4_header import IPv4Header
from minnow.parser import Parser, Serializer


def make_datagram(chunks):
    size = sum(len(c) for c in chunks)
    header = IPv4Header(src=0x0A000001, dst=0x0A000002, len=IPv4Header.LENGTH + size)
    header.compute_checksum()
    return IPv4Datagram(header=header, payload=list(chunks))


def to_wire(dgram):
    ser = Serializer()
    dgram.serialize(ser)
    return ser.finish()


def from_wire(buffers):
    parser = Parser(buffers)
    out = IPv4Datagram()
    out.parse(parser)
    return out, parser


def test_round_trip():
    dgram = make_datagram([b"hello"])
    out, parser = from_wire(to_wire(dgram))
    assert not parser.has_error()
    assert out.header == dgram.header
    assert b"".join(out.payload) == b"hello"


def test_serialized_layout():
    dgram = make_datagram([b"ab", b"cd"])
    buffers = to_wire(dgram)
    assert len(buffers[0]) == IPv4Header.LENGTH
    assert buffers[1:] == [b"ab", b"cd"]


def test_trailing_bytes_are_dropped():
    dgram = make_datagram([b"payload"])
    out, parser = from_wire(to_wire(dgram) + [b"junk"])
    assert not parser.has_error()
    assert b"".join(out.payload) == b"payload"


def test_bad_checksum_is_error():
    dgram = make_datagram([b"x"])
    dgram.header.cksum ^= 1
    _, parser = from_wire(to_wire(dgram))
    assert parser.has_error()


def test_payload_split_across_buffers():
    dgram = make_datagram([b"ab", b"cd"])
    joined = b"".join(to_wire(dgram))
    out, parser = from_wire([joined[:21], joined[21:]])
    assert not parser.has_error()
    assert b"".join(out.payload) == b"abcd"