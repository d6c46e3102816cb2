"""Socket addresses: IPv4 (and IPv6) host/port pairs, with name resolution."""

import socket
from typing import Any, Tuple

from minnow.exceptions import TaggedError

_INTERNET_FAMILIES = (socket.AF_INET, socket.AF_INET6)


def _resolve(node: str, service: str, flags: int) -> Tuple[int, Any]:
    try:
        results = socket.getaddrinfo(node, service, socket.AF_INET, 0, 0, flags)
    except socket.gaierror as err:
        raise TaggedError(
            f"getaddrinfo({node}, {service})", err.errno or 0, err.strerror or str(err)
        ) from err
    if not results:
        raise RuntimeError("getaddrinfo returned successfully but with no results")
    family, _type, _proto, _canonname, sockaddr = results[0]
    return family, sockaddr


class Address:
    """A socket address: a family plus the address tuple the socket module uses."""

    def __init__(self, ip: str, port: int = 0) -> None:
        """Build from a dotted-quad string ("18.243.0.1") and a numeric port."""
        if not 0 <= port <= 0xFFFF:
            raise ValueError(f"port out of range: {port}")
        flags = socket.AI_NUMERICHOST | socket.AI_NUMERICSERV
        self._family, self._sockaddr = _resolve(ip, str(port), flags)

    @classmethod
    def _make(cls, family: int, sockaddr: Any) -> "Address":
        address = cls.__new__(cls)
        address._family = family
        address._sockaddr = sockaddr
        return address

    @classmethod
    def resolve(cls, hostname: str, service: str) -> "Address":
        """Look up a host name and a service name (e.g. "http") or port string."""
        family, sockaddr = _resolve(hostname, service, socket.AI_ALL)
        return cls._make(family, sockaddr)

    @classmethod
    def from_sockaddr(cls, family: int, sockaddr: Any) -> "Address":
        """Build from an address family and a socket-module address value."""
        if family == socket.AF_INET:
            host, port = sockaddr
            try:
                host = socket.inet_ntoa(socket.inet_aton(host))
            except OSError as err:
                raise ValueError(f"invalid IPv4 address: {host!r}") from err
            sockaddr = (host, int(port))
        elif family == socket.AF_INET6:
            host, port, *rest = sockaddr
            flowinfo, scope_id = (list(rest) + [0, 0])[:2]
            try:
                host = socket.inet_ntop(socket.AF_INET6, socket.inet_pton(socket.AF_INET6, host))
            except OSError as err:
                raise ValueError(f"invalid IPv6 address: {host!r}") from err
            sockaddr = (host, int(port), int(flowinfo), int(scope_id))
        return cls._make(family, sockaddr)

    @classmethod
    def from_ipv4_numeric(cls, ip_address: int) -> "Address":
        """Build from a 32-bit numeric IPv4 address (port 0)."""
        if not 0 <= ip_address <= 0xFFFFFFFF:
            raise ValueError(f"not a 32-bit address: {ip_address}")
        host = socket.inet_ntoa(ip_address.to_bytes(4, "big"))
        return cls._make(socket.AF_INET, (host, 0))

    @property
    def family(self) -> int:
        return self._family

    def sockaddr(self) -> Any:
        """The address as the socket module expects it."""
        return self._sockaddr

    def ip_port(self) -> Tuple[str, int]:
        """Numeric host string and port."""
        if self._family not in _INTERNET_FAMILIES:
            raise RuntimeError("Address.ip_port() called on non-Internet address")
        try:
            host, port = socket.getnameinfo(
                self._sockaddr, socket.NI_NUMERICHOST | socket.NI_NUMERICSERV
            )
        except socket.gaierror as err:
            raise TaggedError("getnameinfo", err.errno or 0, err.strerror or str(err)) from err
        return host, int(port)

    def ip(self) -> str:
        return self.ip_port()[0]

    def port(self) -> int:
        return self.ip_port()[1]

    def ipv4_numeric(self) -> int:
        """The IPv4 address as an integer in host byte order."""
        if self._family != socket.AF_INET:
            raise RuntimeError("ipv4_numeric called on non-IPV4 address")
        return int.from_bytes(socket.inet_aton(self._sockaddr[0]), "big")

    def __str__(self) -> str:
        if self._family in _INTERNET_FAMILIES:
            ip, port = self.ip_port()
            return f"{ip}:{port}"
        return "(non-Internet address)"

    def __repr__(self) -> str:
        return f"Address(family={self._family!r}, sockaddr={self._sockaddr!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Address):
            return NotImplemented
        return self._family == other._family and self._sockaddr == other._sockaddr

    def __hash__(self) -> int:
        return hash((self._family, self._sockaddr))