"""Convenience functions for serializing, parsing and printing buffers."""

import dataclasses
from collections.abc import Iterable
from typing import List

from minnow.ipv4_datagram import IPv4Datagram
from minnow.parser import BufferInput, Parser, Serializer


def serialize(obj) -> List[bytes]:
    """Serialize any object that has a ``serialize(serializer)`` method."""
    serializer = Serializer()
    obj.serialize(serializer)
    return serializer.finish()


def parse(obj, buffers: BufferInput, *args) -> bool:
    """Parse ``buffers`` into ``obj``; True if no error was found."""
    parser = Parser(buffers)
    obj.parse(parser, *args)
    return not parser.has_error()


def concat(buffers: Iterable) -> bytes:
    """Join a sequence of buffers into one."""
    return b"".join(bytes(b) for b in buffers)


def pretty_print(data, max_length: int = 32) -> str:
    """Escape unprintable bytes and double quotes, cutting long output with '...'."""
    if isinstance(data, str):
        data = data.encode("latin-1")
    pieces: List[str] = []
    length = 0
    truncated = False
    for ch in bytes(data):
        if length >= max_length:
            truncated = True
            break
        piece = chr(ch) if 0x20 <= ch < 0x7F and ch != ord('"') else f"\\x{ch:02x}"
        pieces.append(piece)
        length += len(piece)
    ret = "".join(pieces)
    if truncated:
        ret = ret[:-3] + "..." if len(ret) >= 3 else ret + "..."
    return ret


def clone(datagram: IPv4Datagram) -> IPv4Datagram:
    """An independent copy of a datagram."""
    return IPv4Datagram(header=dataclasses.replace(datagram.header), payload=list(datagram.payload))