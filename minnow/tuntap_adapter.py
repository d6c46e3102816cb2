"""Carrying TCP segments in IPv4 datagrams over a TUN device."""

from typing import Optional, Protocol

from minnow.file_descriptor import FileDescriptor
from minnow.helpers import parse, serialize
from minnow.ipv4_datagram import InternetDatagram
from minnow.ipv4_header import IPv4Header
from minnow.tcp_messages import TCPMessage
from minnow.tcp_over_ip import TCPOverIPv4Adapter
from minnow.tcp_segment import TCPSegment


class TCPDatagramAdapter(Protocol):
    """Anything that reads and writes TCP messages as datagrams."""

    def read(self) -> Optional[TCPMessage]: ...

    def write(self, msg: TCPMessage) -> None: ...


class TCPOverIPv4OverTunFdAdapter(TCPOverIPv4Adapter):
    """Reads and writes IPv4 datagrams carrying TCP segments on a TUN device."""

    def __init__(self, tun: FileDescriptor) -> None:
        super().__init__()
        self._tun = tun

    def read(self) -> Optional[TCPMessage]:
        """The next datagram's TCP message, or None if it is invalid or unrelated."""
        # the header and segment header land in their own buffers, the rest after them
        buffers = self._tun.readv([IPv4Header.LENGTH, TCPSegment.HEADER_LENGTH, 0])
        ip_dgram = InternetDatagram()
        if parse(ip_dgram, buffers):
            return self.unwrap_tcp_in_ip(ip_dgram)
        return None

    def write(self, msg: TCPMessage) -> None:
        """Wrap ``msg`` in an IPv4 datagram and write it to the device."""
        self._tun.write(serialize(self.wrap_tcp_in_ip(msg)))

    def fd(self) -> FileDescriptor:
        """The underlying device."""
        return self._tun