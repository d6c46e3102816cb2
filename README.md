# minnow

Building blocks for a user-space TCP/IP stack on Linux. The package has no
third-party dependencies.

## What is in it

- `minnow.checksum.InternetChecksum`: the Internet (one's-complement)
  checksum, fed incrementally with `add()` (bytes or an iterable of byte
  buffers) and read with `value()`.
- `minnow.parser.Parser` and `minnow.parser.Serializer`: big-endian parsing
  and serialization over lists of byte buffers. A `Parser` records an error
  (`has_error()`) instead of raising when input runs short.
- `minnow.ipv4_header.IPv4Header` and `minnow.ipv4_datagram.IPv4Datagram`
  (also named `InternetDatagram`): IPv4 headers and datagrams. Parsing
  checks the version, the header length and the header checksum; options are
  skipped, not kept.
- `minnow.tcp_messages`: `TCPSenderMessage`, `TCPReceiverMessage`,
  `UserDatagramInfo` and `TCPMessage`. Sequence and acknowledgment numbers
  are raw 32-bit integers.
- `minnow.tcp_segment.TCPSegment`: a full TCP segment, parsed and
  checksummed together with the IPv4 pseudo-header's contribution
  (`IPv4Header.pseudo_checksum()`).
- `minnow.helpers`: `serialize`, `parse`, `concat`, `pretty_print` and
  `clone`.
- `minnow.address.Address`: socket addresses built from a dotted quad and a
  port, resolved from a host and service name (`Address.resolve`), or from a
  32-bit number (`Address.from_ipv4_numeric`).
- `minnow.file_descriptor.FileDescriptor`: a handle on a kernel descriptor;
  `duplicate()` gives another handle on the same descriptor, and read and
  write counts are kept per descriptor.
- `minnow.sockets`: `UDPSocket`, `TCPSocket`, `PacketSocket`,
  `LocalStreamSocket` and `LocalDatagramSocket`.
- `minnow.tun`: `TunFD` and `TapFD` for existing persistent TUN/TAP devices.
- `minnow.eventloop.EventLoop`: a `poll`-based loop of rules. `add_rule`
  runs a callback while its interest holds; `add_fd_rule` runs it when a
  descriptor is readable (`Direction.IN`) or writable (`Direction.OUT`).
  Each `wait_next_event(timeout_ms)` serves one rule and returns a `Result`
  (`SUCCESS`, `TIMEOUT` or `EXIT`). Rules that spin without doing work raise
  `RuntimeError`.
- `minnow.tcp_over_ip.TCPOverIPv4Adapter`,
  `minnow.tuntap_adapter.TCPOverIPv4OverTunFdAdapter` and
  `minnow.lossy_fd_adapter.LossyFdAdapter`: wrapping TCP messages in IPv4
  datagrams for one connection, carrying them over a TUN device, and
  dropping reads and writes at random (loss rates out of 65536, set in
  `FdAdapterConfig`).
- `minnow.debug`: `debug`, `debug_str`, `set_debug_handler` and
  `reset_debug_handler`; messages go to standard error unless redirected.
- `minnow.exceptions`: `TaggedError` and `UnixError` (both `OSError`s).

## Installing

```
pip install .
```

## Examples

Build, serialize and parse back an IPv4 datagram:

```python
from minnow.helpers import parse, serialize
from minnow.ipv4_datagram import IPv4Datagram
from minnow.ipv4_header import IPv4Header

header = IPv4Header()
header.src = 0x0A000001
header.dst = 0x0A000002
header.len = IPv4Header.LENGTH + 5
header.compute_checksum()

datagram = IPv4Datagram(header=header, payload=[b"hello"])
wire = serialize(datagram)

received = IPv4Datagram()
assert parse(received, wire)
assert b"".join(received.payload) == b"hello"
```

Serve a readable pipe with the event loop:

```python
import os

from minnow.eventloop import Direction, EventLoop, Result
from minnow.file_descriptor import FileDescriptor

r, w = os.pipe()
reader, writer = FileDescriptor(r), FileDescriptor(w)
received = []

loop = EventLoop()
loop.add_fd_rule("read pipe", reader, Direction.IN, lambda: received.append(reader.read()))

writer.write(b"ping")
assert loop.wait_next_event(100) is Result.SUCCESS
assert received == [b"ping"]
```

## What it does not do

The package carries TCP messages but does not implement TCP itself: there is
no sender, receiver, reassembler or connection state machine, and no socket
object that runs a TCP connection over a TUN device. It has no command-line
program. Opening TUN/TAP devices and packet sockets needs a Linux system and
the right privileges.

## Running the tests

```
pip install .[test]
pytest
```