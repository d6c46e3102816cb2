import pytest

from minnow.ipv4_header import IPv4Header
from minnow.parser import Parser, Serializer

RAW = bytes.fromhex("450000730000400040 11b861c0a80001c0a800c7".replace(" ", ""))


def parsed(raw):
    header = IPv4Header()
    parser = Parser([raw])
    header.parse(parser)
    return header, parser


def wire(header):
    ser = Serializer()
    header.serialize(ser)
    return b"".join(ser.finish())


def test_parse_known_header():
    header, parser = parsed(RAW)
    assert not parser.has_error()
    assert header.ver == 4
    assert header.hlen == 5
    assert header.df is True
    assert header.mf is False
    assert header.cksum == 0xB861
    assert header.src == int.from_bytes(RAW[12:16], "big")
    assert header.dst == int.from_bytes(RAW[16:20], "big")


def test_serialize_round_trip():
    header, _ = parsed(RAW)
    assert wire(header) == RAW


def test_compute_checksum_matches_wire():
    header, _ = parsed(RAW)
    header.cksum = 0
    header.compute_checksum()
    assert header.cksum == 0xB861


def test_corrupted_byte_fails_checksum():
    bad = bytearray(RAW)
    bad[8] ^= 0x01
    _, parser = parsed(bytes(bad))
    assert parser.has_error()


def test_wrong_version_is_error():
    bad = bytearray(RAW)
    bad[0] = 0x65
    _, parser = parsed(bytes(bad))
    assert parser.has_error()


def test_short_header_length_is_error():
    bad = bytearray(RAW)
    bad[0] = 0x44
    _, parser = parsed(bytes(bad))
    assert parser.has_error()


def test_truncated_input_is_error():
    _, parser = parsed(RAW[:10])
    assert parser.has_error()


def test_options_are_skipped():
    header = IPv4Header(hlen=6, len=IPv4Header.LENGTH + 4 + 3)
    header.compute_checksum()
    parser = Parser([wire(header), b"\x01\x02\x03\x04", b"xyz"])
    out = IPv4Header()
    out.parse(parser)
    assert not parser.has_error()
    assert parser.concatenate_all_remaining() == b"xyz"


def test_default_header_round_trip():
    header = IPv4Header(src=0x0A000001, dst=0x0A000002, len=IPv4Header.LENGTH)
    header.compute_checksum()
    out, parser = parsed(wire(header))
    assert not parser.has_error()
    assert out == header


def test_serialize_rejects_wrong_version():
    with pytest.raises(ValueError):
        wire(IPv4Header(ver=6))


def test_payload_length():
    header = IPv4Header(len=IPv4Header.LENGTH + 7)
    assert header.payload_length() == 7


def test_pseudo_checksum_of_empty_tcp():
    header = IPv4Header(len=IPv4Header.LENGTH)
    assert header.pseudo_checksum() == IPv4Header.PROTO_TCP


def test_pseudo_checksum_symmetric_in_addresses():
    a = IPv4Header(src=0xC0A80001, dst=0x0A000002, len=40)
    b = IPv4Header(src=0x0A000002, dst=0xC0A80001, len=40)
    assert a.pseudo_checksum() == b.pseudo_checksum()


def test_str():
    header, _ = parsed(RAW)
    assert str(header) == "IPv4 len=115 proto=17 ttl=64 src=192.168.0.1 dst=192.168.0.199"