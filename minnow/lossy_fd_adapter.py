"""An adapter wrapper that drops datagrams at random."""

from typing import Optional

from minnow.file_descriptor import FileDescriptor
from minnow.rng import get_random_engine
from minnow.tcp_config import FdAdapterConfig
from minnow.tcp_messages import TCPMessage


class LossyFdAdapter:
    """Passes reads and writes to another adapter, dropping some of them.

    The loss rates in the adapter's configuration are out of 65536: a rate
    of 0 never drops, larger rates drop proportionally more often.
    """

    def __init__(self, adapter) -> None:
        self._rand = get_random_engine()
        self._adapter = adapter

    def _should_drop(self, uplink: bool) -> bool:
        cfg = self._adapter.config
        loss = cfg.loss_rate_up if uplink else cfg.loss_rate_dn
        return loss != 0 and self._rand.getrandbits(16) < loss

    def fd(self) -> FileDescriptor:
        return self._adapter.fd()

    def read(self) -> Optional[TCPMessage]:
        """Read from the wrapped adapter; None if nothing came or it was dropped."""
        ret = self._adapter.read()
        if self._should_drop(False):
            return None
        return ret

    def write(self, msg: TCPMessage) -> None:
        """Write through the wrapped adapter, unless the message is dropped."""
        if self._should_drop(True):
            return
        self._adapter.write(msg)

    def set_listening(self, listening: bool) -> None:
        self._adapter.listening = listening

    def config(self) -> FdAdapterConfig:
        """The wrapped adapter's configuration (changes to it take effect)."""
        return self._adapter.config

    def tick(self, ms_since_last_tick: int) -> None:
        self._adapter.tick(ms_since_last_tick)