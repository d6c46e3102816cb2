"""Building blocks for a user-space TCP/IP stack: wire formats, descriptors, sockets and adapters."""

__version__ = "0.1.0"