"""Socket handles built on reference-counted file descriptors."""

import socket
import struct
from contextlib import contextmanager
from typing import Iterator, Optional, Tuple, Union

from minnow.address import Address
from minnow.exceptions import UnixError
from minnow.file_descriptor import READ_BUFFER_SIZE, FileDescriptor

SOL_PACKET = getattr(socket, "SOL_PACKET", 263)
PACKET_ADD_MEMBERSHIP = getattr(socket, "PACKET_ADD_MEMBERSHIP", 1)
PACKET_MR_PROMISC = 1
_SO_BINDTODEVICE = getattr(socket, "SO_BINDTODEVICE", 25)
_PACKET_MREQ = struct.Struct("iHH8s")


class Socket(FileDescriptor):
    """A network socket; usually used through one of its subclasses."""

    def __init__(
        self,
        domain: int,
        socktype: int,
        protocol: int = 0,
        *,
        fd: Optional[FileDescriptor] = None,
    ) -> None:
        """Open a new socket, or take over ``fd`` after checking it is of the given kind."""
        if fd is None:
            try:
                sock = socket.socket(domain, socktype, protocol)
            except OSError as err:
                raise UnixError("socket", err.errno or 0) from err
            super().__init__(sock.detach())
            return
        self._wrapper = fd._wrapper
        checks = (
            (socket.SO_DOMAIN, domain, "domain"),
            (socket.SO_TYPE, socktype, "type"),
            (socket.SO_PROTOCOL, protocol, "protocol"),
        )
        for option, expected, what in checks:
            if self._getsockopt(socket.SOL_SOCKET, option) != expected:
                raise RuntimeError(f"socket {what} mismatch")

    @contextmanager
    def _handle(self, attempt: str) -> Iterator[socket.socket]:
        """A socket object on this descriptor that leaves the descriptor open afterwards."""
        try:
            sock = socket.socket(fileno=self.fd_num())
        except OSError as err:
            raise UnixError(attempt, err.errno or 0) from err
        try:
            yield sock
        finally:
            sock.detach()

    def _getsockopt(self, level: int, option: int) -> int:
        with self._handle("getsockopt") as sock:
            return self._check("getsockopt", sock.getsockopt, level, option)

    def _setsockopt(self, level: int, option: int, value: Union[int, bytes]) -> None:
        with self._handle("setsockopt") as sock:
            self._check("setsockopt", sock.setsockopt, level, option, value)

    def _address(self, attempt: str, peer: bool) -> Address:
        with self._handle(attempt) as sock:
            func = sock.getpeername if peer else sock.getsockname
            name = self._check(attempt, func)
            family = sock.family
        return Address.from_sockaddr(family, name)

    def bind(self, address: Address) -> None:
        """Bind to a local address, usually before listen/accept."""
        with self._handle("bind") as sock:
            self._check("bind", sock.bind, address.sockaddr())

    def bind_to_device(self, device_name: str) -> None:
        self._setsockopt(socket.SOL_SOCKET, _SO_BINDTODEVICE, device_name.encode())

    def connect(self, address: Address) -> None:
        """Connect to a peer (returns at once on a non-blocking socket)."""
        with self._handle("connect") as sock:
            self._check("connect", sock.connect, address.sockaddr())

    def shutdown(self, how: int) -> None:
        """Shut down reading (SHUT_RD), writing (SHUT_WR) or both (SHUT_RDWR)."""
        with self._handle("shutdown") as sock:
            self._check("shutdown", sock.shutdown, how)
        if how == socket.SHUT_RD:
            self._register_read()
        elif how == socket.SHUT_WR:
            self._register_write()
        elif how == socket.SHUT_RDWR:
            self._register_read()
            self._register_write()
        else:
            raise ValueError("Socket.shutdown() called with invalid `how`")

    def local_address(self) -> Address:
        return self._address("getsockname", peer=False)

    def peer_address(self) -> Address:
        return self._address("getpeername", peer=True)

    def set_reuseaddr(self) -> None:
        """Allow the local address to be reused sooner."""
        self._setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

    def raise_if_error(self) -> None:
        """Raise UnixError if the socket has a pending error (seen on non-blocking sockets)."""
        socket_error = self._getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
        if socket_error:
            raise UnixError("socket error", socket_error)


class DatagramSocket(Socket):
    """A socket that sends and receives whole datagrams."""

    def recv(self) -> Optional[Tuple[Address, bytes]]:
        """Receive a datagram and its sender; None if nothing waits on a non-blocking socket."""
        buf = bytearray(READ_BUFFER_SIZE)
        with self._handle("recvfrom") as sock:
            result = self._check("recvfrom", sock.recvfrom_into, buf, len(buf), socket.MSG_TRUNC)
            family = sock.family
        if not isinstance(result, tuple):
            return None
        recv_len, source = result
        if recv_len > len(buf):
            raise RuntimeError("recvfrom (oversized datagram)")
        self._register_read()
        return Address.from_sockaddr(family, source), bytes(buf[:recv_len])

    def sendto(self, destination: Address, payload: bytes) -> None:
        with self._handle("sendto") as sock:
            self._check("sendto", sock.sendto, payload, destination.sockaddr())
        self._register_write()

    def send(self, payload: bytes) -> None:
        """Send to the connected address (connect() first)."""
        with self._handle("send") as sock:
            self._check("send", sock.send, payload)
        self._register_write()


class UDPSocket(DatagramSocket):
    """An unbound, unconnected UDP socket."""

    def __init__(self) -> None:
        super().__init__(socket.AF_INET, socket.SOCK_DGRAM)


class TCPSocket(Socket):
    """An unbound, unconnected TCP socket."""

    def __init__(self) -> None:
        super().__init__(socket.AF_INET, socket.SOCK_STREAM)

    @classmethod
    def _adopt(cls, fd: FileDescriptor) -> "TCPSocket":
        sock = cls.__new__(cls)
        Socket.__init__(sock, socket.AF_INET, socket.SOCK_STREAM, socket.IPPROTO_TCP, fd=fd)
        return sock

    def listen(self, backlog: int = 16) -> None:
        with self._handle("listen") as sock:
            self._check("listen", sock.listen, backlog)

    def accept(self) -> Optional["TCPSocket"]:
        """A socket for the next incoming connection (blocks unless non-blocking).

        On a non-blocking socket with no connection waiting, returns None.
        """
        self._register_read()
        with self._handle("accept") as sock:
            result = self._check("accept", sock.accept)
        if not isinstance(result, tuple):
            return None
        conn, _peer = result
        return TCPSocket._adopt(FileDescriptor(conn.detach()))


class PacketSocket(DatagramSocket):
    """A raw packet socket (needs privileges to open)."""

    def __init__(self, type: int, protocol: int) -> None:
        super().__init__(socket.AF_PACKET, type, protocol)

    def set_promiscuous(self) -> None:
        """Put the interface the socket is bound to into promiscuous mode."""
        local = self.local_address()
        if local.family != socket.AF_PACKET:
            raise RuntimeError("Address.as() conversion failure")
        ifindex = socket.if_nametoindex(local.sockaddr()[0])
        request = _PACKET_MREQ.pack(ifindex, PACKET_MR_PROMISC, 0, b"")
        self._setsockopt(SOL_PACKET, PACKET_ADD_MEMBERSHIP, request)


class LocalStreamSocket(Socket):
    """A Unix-domain stream socket taken over from an existing descriptor."""

    def __init__(self, fd: FileDescriptor) -> None:
        super().__init__(socket.AF_UNIX, socket.SOCK_STREAM, fd=fd)


class LocalDatagramSocket(DatagramSocket):
    """An unbound, unconnected Unix-domain datagram socket."""

    def __init__(self) -> None:
        super().__init__(socket.AF_UNIX, socket.SOCK_DGRAM)