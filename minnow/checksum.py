"""The Internet checksum (one's-complement sum of 16-bit words)."""

from collections.abc import Iterable

_BYTES_LIKE = (bytes, bytearray, memoryview)


class InternetChecksum:
    """Incremental Internet checksum over a sequence of byte buffers.

    Buffers may be added piecewise; odd-length pieces are handled so the
    result is the same as checksumming their concatenation.
    """

    def __init__(self, initial_sum: int = 0) -> None:
        self._sum = initial_sum & 0xFFFFFFFF
        self._odd = False

    def add(self, data: "bytes | Iterable[bytes]") -> None:
        """Add a bytes-like object, or every buffer of an iterable of them."""
        if isinstance(data, str):
            raise TypeError("InternetChecksum.add() takes bytes, not str")
        if isinstance(data, _BYTES_LIKE):
            self._add_bytes(bytes(data))
            return
        for chunk in data:
            self.add(chunk)

    def _add_bytes(self, data: bytes) -> None:
        if not data:
            return
        body = data
        if self._odd:
            # the first byte completes the low half of a pending word
            self._sum += data[0]
            body = data[1:]
        high = sum(body[0::2])
        low = sum(body[1::2])
        self._sum = (self._sum + (high << 8) + low) & 0xFFFFFFFF
        if len(data) % 2 == 1:
            self._odd = not self._odd

    def value(self) -> int:
        """The 16-bit checksum of everything added so far."""
        total = self._sum
        while total > 0xFFFF:
            total = (total >> 16) + (total & 0xFFFF)
        return ~total & 0xFFFF