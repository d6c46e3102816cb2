"""File descriptors for Linux TUN and TAP devices."""

import fcntl
import os
import struct

from minnow.exceptions import UnixError
from minnow.file_descriptor import FileDescriptor

CLONEDEV = "/dev/net/tun"
TUNSETIFF = 0x400454CA
IFF_TUN = 0x0001
IFF_TAP = 0x0002
IFF_NO_PI = 0x1000
IFNAMSIZ = 16

_IFREQ = struct.Struct("16sH22x")


def _ifreq(devname: str, flags: int) -> bytes:
    # the name is cut to leave room for its terminating NUL
    return _IFREQ.pack(devname.encode()[: IFNAMSIZ - 1], flags)


class TunTapFD(FileDescriptor):
    """An open, existing persistent TUN (IP datagrams) or TAP (Ethernet frames) device."""

    def __init__(self, devname: str, is_tun: bool) -> None:
        try:
            fd = os.open(CLONEDEV, os.O_RDWR | os.O_CLOEXEC)
        except OSError as err:
            raise UnixError("open", err.errno or 0) from err
        try:
            super().__init__(fd)
        except BaseException:
            os.close(fd)
            raise
        flags = (IFF_TUN if is_tun else IFF_TAP) | IFF_NO_PI
        try:
            self._check("ioctl", fcntl.ioctl, fd, TUNSETIFF, _ifreq(devname, flags))
        except BaseException:
            self.close()
            raise


class TunFD(TunTapFD):
    """An open TUN device."""

    def __init__(self, devname: str) -> None:
        super().__init__(devname, True)


class TapFD(TunTapFD):
    """An open TAP device."""

    def __init__(self, devname: str) -> None:
        super().__init__(devname, False)