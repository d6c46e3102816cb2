"""State shared by adapters that carry TCP segments over a file descriptor."""

from minnow.tcp_config import FdAdapterConfig


class FdAdapterBase:
    """Holds an adapter's configuration and whether it is listening for a connection."""

    def __init__(self) -> None:
        self.config = FdAdapterConfig()
        self.listening = False

    def tick(self, ms_since_last_tick: int) -> None:
        """Called periodically as time passes; the base adapter keeps no timers."""