"""An IPv4 datagram: header plus payload buffers."""

from dataclasses import dataclass, field
from typing import List

from minnow.ipv4_header import IPv4Header
from minnow.parser import Parser, Serializer


@dataclass
class IPv4Datagram:
    """An IPv4 header and its payload, kept as a list of buffers."""

    header: IPv4Header = field(default_factory=IPv4Header)
    payload: List[bytes] = field(default_factory=list)

    def parse(self, parser: Parser) -> None:
        self.header.parse(parser)
        parser.truncate(self.header.payload_length())
        self.payload = parser.all_remaining()

    def serialize(self, serializer: Serializer) -> None:
        self.header.serialize(serializer)
        serializer.buffer(self.payload)


InternetDatagram = IPv4Datagram