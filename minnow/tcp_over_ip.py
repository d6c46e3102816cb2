"""Carrying TCP segments inside IPv4 datagrams."""

import ipaddress
from typing import Optional

from minnow.address import Address
from minnow.fd_adapter import FdAdapterBase
from minnow.helpers import parse, serialize
from minnow.ipv4_datagram import InternetDatagram
from minnow.ipv4_header import IPv4Header
from minnow.tcp_messages import TCPMessage
from minnow.tcp_segment import TCPSegment


def _dotted(numeric: int) -> str:
    return str(ipaddress.IPv4Address(numeric & 0xFFFFFFFF))


class TCPOverIPv4Adapter(FdAdapterBase):
    """Converts between TCP messages and IPv4 datagrams for one connection."""

    def unwrap_tcp_in_ip(self, ip_dgram: InternetDatagram) -> Optional[TCPMessage]:
        """The TCP message in a datagram, or None if it is invalid or for another connection.

        While listening, a SYN (without RST) fixes the connection's addresses
        and ports and ends the listening.
        """
        header = ip_dgram.header
        config = self.config
        # binding to "0" (any address) is allowed; replies come from the address contacted
        if not self.listening and header.dst != config.source.ipv4_numeric():
            return None
        if not self.listening and header.src != config.destination.ipv4_numeric():
            return None
        if header.proto != IPv4Header.PROTO_TCP:
            return None

        segment = TCPSegment()
        if not parse(segment, ip_dgram.payload, header.pseudo_checksum()):
            return None

        if segment.udinfo.dst_port != config.source.port():
            return None

        if self.listening:
            sender = segment.message.sender
            if not (sender.syn and not sender.rst):
                return None
            config.source = Address(_dotted(header.dst), config.source.port())
            config.destination = Address(_dotted(header.src), segment.udinfo.src_port)
            self.listening = False

        if segment.udinfo.src_port != config.destination.port():
            return None

        return segment.message

    def wrap_tcp_in_ip(self, msg: TCPMessage) -> InternetDatagram:
        """A datagram carrying ``msg`` between the configured addresses and ports."""
        payload_size = len(msg.sender.payload)
        segment = TCPSegment(message=TCPMessage(sender=msg.sender, receiver=msg.receiver))
        segment.udinfo.src_port = self.config.source.port()
        segment.udinfo.dst_port = self.config.destination.port()

        ip_dgram = InternetDatagram()
        ip_dgram.header.src = self.config.source.ipv4_numeric()
        ip_dgram.header.dst = self.config.destination.ipv4_numeric()
        ip_dgram.header.len = ip_dgram.header.hlen * 4 + TCPSegment.HEADER_LENGTH + payload_size

        segment.compute_checksum(ip_dgram.header.pseudo_checksum())
        ip_dgram.header.compute_checksum()
        ip_dgram.payload = serialize(segment)
        return ip_dgram