"""Reference-counted handles on kernel file descriptors."""

import errno
import fcntl
import os
import sys
from collections.abc import Iterable
from typing import Callable, List, Union

from minnow.exceptions import UnixError

READ_BUFFER_SIZE = 16384

_RETRY_LATER = (errno.EAGAIN, errno.EINPROGRESS)
_BYTES_LIKE = (bytes, bytearray, memoryview)


class _FDWrapper:
    """Owns a kernel file descriptor and closes it when no handle refers to it."""

    def __init__(self, fd: int) -> None:
        # treated as closed until the descriptor has been checked
        self.closed = True
        if fd < 0:
            raise ValueError(f"invalid fd number:{fd}")
        self.fd = fd
        self.eof = False
        self.non_blocking = False
        self.read_count = 0
        self.write_count = 0
        flags = self.call("fcntl", fcntl.fcntl, fd, fcntl.F_GETFL)
        self.non_blocking = bool(flags & os.O_NONBLOCK)
        self.closed = False

    def call(self, attempt: str, func: Callable, *args):
        """Run a system call, raising UnixError on failure.

        On a non-blocking descriptor, "try again" and "in progress" are not
        errors: the call is reported as having done nothing (0).
        """
        try:
            return func(*args)
        except OSError as err:
            if self.non_blocking and err.errno in _RETRY_LATER:
                return 0
            raise UnixError(attempt, err.errno or 0) from err

    def close(self) -> None:
        self.call("close", os.close, self.fd)
        self.eof = self.closed = True

    def __del__(self) -> None:
        try:
            if self.closed:
                return
            self.close()
        except Exception as err:  # never raise from a finalizer
            print(f"Exception destructing FDWrapper: {err}", file=sys.stderr)


class FileDescriptor:
    """A handle on a file descriptor; duplicates share one underlying descriptor."""

    def __init__(self, fd: int) -> None:
        self._wrapper = _FDWrapper(fd)

    @staticmethod
    def _sharing(wrapper: _FDWrapper) -> "FileDescriptor":
        handle = FileDescriptor.__new__(FileDescriptor)
        handle._wrapper = wrapper
        return handle

    # helpers for subclasses
    def _check(self, attempt: str, func: Callable, *args):
        return self._wrapper.call(attempt, func, *args)

    def _set_eof(self) -> None:
        self._wrapper.eof = True

    def _register_read(self) -> None:
        self._wrapper.read_count += 1

    def _register_write(self) -> None:
        self._wrapper.write_count += 1

    def read(self, size: int = READ_BUFFER_SIZE) -> bytes:
        """Read up to ``size`` bytes; empty if at EOF or nothing is ready (non-blocking)."""
        if size <= 0:
            size = READ_BUFFER_SIZE
        try:
            data = os.read(self.fd_num(), size)
        except OSError as err:
            if self._wrapper.non_blocking and err.errno in _RETRY_LATER:
                return b""
            raise UnixError("read", err.errno or 0) from err
        self._register_read()
        if not data:
            self._wrapper.eof = True
        if len(data) > size:
            raise RuntimeError("read() read more than requested")
        return data

    def readv(self, sizes: Iterable[int]) -> List[bytes]:
        """Scatter-read into buffers of the given sizes.

        The last buffer always has room for a full read. Each returned buffer
        holds what was read into it; later buffers may be short or empty.
        """
        sizes = list(sizes)
        if not sizes:
            return []
        sizes[-1] = READ_BUFFER_SIZE
        buffers = [bytearray(n) for n in sizes]
        try:
            bytes_read = os.readv(self.fd_num(), buffers)
        except OSError as err:
            if self._wrapper.non_blocking and err.errno in _RETRY_LATER:
                return []
            raise UnixError("read", err.errno or 0) from err
        self._register_read()

        total_size = sum(sizes)
        if bytes_read > total_size:
            raise RuntimeError("read() read more than requested")

        out = []
        remaining = bytes_read
        for buf in buffers:
            take = min(remaining, len(buf))
            out.append(bytes(buf[:take]))
            remaining -= take
        return out

    def write(self, buffers: Union[bytes, bytearray, memoryview, Iterable]) -> int:
        """Gather-write one buffer or a sequence of them; returns bytes written."""
        if isinstance(buffers, str):
            raise TypeError("FileDescriptor.write() takes bytes, not str")
        if isinstance(buffers, _BYTES_LIKE):
            views = [memoryview(buffers)]
        else:
            views = [memoryview(b) for b in buffers]
        if not views:
            views = [memoryview(b"")]
        total_size = sum(v.nbytes for v in views)

        bytes_written = self._check("writev", os.writev, self.fd_num(), views)
        self._register_write()

        if bytes_written == 0 and total_size != 0:
            raise RuntimeError("write returned 0 given non-empty input buffer")
        if bytes_written > total_size:
            raise RuntimeError("write wrote more than length of input buffer")
        return bytes_written

    def close(self) -> None:
        """Close the underlying descriptor (shared with all duplicates)."""
        self._wrapper.close()

    def duplicate(self) -> "FileDescriptor":
        """Another handle on the same underlying descriptor."""
        return FileDescriptor._sharing(self._wrapper)

    def set_blocking(self, blocking: bool) -> None:
        flags = self._check("fcntl", fcntl.fcntl, self.fd_num(), fcntl.F_GETFL)
        if blocking:
            flags &= ~os.O_NONBLOCK
        else:
            flags |= os.O_NONBLOCK
        self._check("fcntl", fcntl.fcntl, self.fd_num(), fcntl.F_SETFL, flags)
        self._wrapper.non_blocking = not blocking

    def fd_num(self) -> int:
        return self._wrapper.fd

    def eof(self) -> bool:
        return self._wrapper.eof

    def closed(self) -> bool:
        return self._wrapper.closed

    def read_count(self) -> int:
        return self._wrapper.read_count

    def write_count(self) -> int:
        return self._wrapper.write_count

    def __enter__(self) -> "FileDescriptor":
        return self

    def __exit__(self, *args) -> None:
        if not self.closed():
            self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(fd={self._wrapper.fd}, closed={self._wrapper.closed})"