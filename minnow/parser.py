"""Big-endian parsing from, and serialization to, lists of byte buffers."""

from collections import deque
from collections.abc import Iterable
from typing import Deque, List, Union

BufferInput = Union[bytes, bytearray, memoryview, Iterable]

_BYTES_LIKE = (bytes, bytearray, memoryview)


def _as_buffers(buffers: BufferInput) -> List[bytes]:
    if isinstance(buffers, _BYTES_LIKE):
        return [bytes(buffers)]
    return [bytes(b) for b in buffers]


class Parser:
    """Reads fields from a sequence of buffers, recording an error on short input."""

    def __init__(self, buffers: BufferInput) -> None:
        self._buffers: Deque[bytes] = deque(b for b in _as_buffers(buffers) if b)
        self._skip = 0
        self._size = sum(len(b) for b in self._buffers)
        self._error = False

    def __len__(self) -> int:
        return self._size

    def has_error(self) -> bool:
        return self._error

    def set_error(self) -> None:
        self._error = True

    def _check_size(self, size: int) -> None:
        if size > self._size:
            self._error = True

    def remove_prefix(self, n: int) -> None:
        """Discard up to ``n`` bytes from the front."""
        while n and self._buffers:
            front = self._buffers[0]
            take = min(n, len(front) - self._skip)
            self._skip += take
            n -= take
            self._size -= take
            if self._skip == len(front):
                self._buffers.popleft()
                self._skip = 0

    def truncate(self, length: int) -> None:
        """Drop everything past the first ``length`` remaining bytes."""
        if self._size <= length:
            return
        kept: Deque[bytes] = deque()
        remaining = length
        for index, buf in enumerate(self._buffers):
            if remaining == 0:
                break
            start = self._skip if index == 0 else 0
            available = len(buf) - start
            if available <= remaining:
                kept.append(buf)
                remaining -= available
            else:
                kept.append(buf[: start + remaining])
                remaining = 0
        self._buffers = kept
        if not kept:
            self._skip = 0
        self._size = length

    def buffer(self) -> List[bytes]:
        """The remaining input, as a list of buffers."""
        views = list(self._buffers)
        if views and self._skip:
            views[0] = views[0][self._skip:]
        return views

    def all_remaining(self) -> List[bytes]:
        """Take all the remaining input, leaving the parser empty."""
        out = self.buffer()
        self._buffers.clear()
        self._skip = 0
        self._size = 0
        return out

    def concatenate_all_remaining(self) -> bytes:
        return b"".join(self.all_remaining())

    def string(self, length: int) -> bytes:
        """Read ``length`` bytes (zero bytes if the input is too short)."""
        self._check_size(length)
        if self._error:
            return bytes(length)
        parts = []
        need = length
        while need:
            front = self._buffers[0]
            chunk = front[self._skip: self._skip + need]
            parts.append(chunk)
            self.remove_prefix(len(chunk))
            need -= len(chunk)
        return b"".join(parts)

    def integer(self, size: int) -> int:
        """Read a big-endian unsigned integer of ``size`` bytes (0 on error)."""
        return int.from_bytes(self.string(size), "big")


class Serializer:
    """Accumulates big-endian integers and byte buffers into a buffer list."""

    def __init__(self) -> None:
        self._output: List[bytes] = []
        self._pending = bytearray()

    def _flush(self) -> None:
        if self._pending:
            self._output.append(bytes(self._pending))
            self._pending.clear()

    def integer(self, value: int, size: int) -> None:
        """Append ``value`` as a ``size``-byte big-endian integer (truncated to fit)."""
        mask = (1 << (8 * size)) - 1
        self._pending += (value & mask).to_bytes(size, "big")

    def buffer(self, data: BufferInput) -> None:
        """Append a buffer, or each of an iterable of buffers; empty ones are skipped."""
        if isinstance(data, _BYTES_LIKE):
            if data:
                self._flush()
                self._output.append(bytes(data))
            return
        for item in data:
            self.buffer(item)

    def finish(self) -> List[bytes]:
        """Return everything serialized so far and start afresh."""
        self._flush()
        out, self._output = self._output, []
        return out