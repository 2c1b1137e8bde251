"""Network devices and the interface for reading their counters."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass
class NetworkStats:
    """A snapshot of a device's traffic counters."""

    timestamp: float = field(default_factory=time.time)
    bytes_in: int = 0
    bytes_out: int = 0
    packets_in: int = 0
    packets_out: int = 0
    errors_in: int = 0
    errors_out: int = 0
    drops_in: int = 0
    drops_out: int = 0


class NetworkReader(ABC):
    """Source of network device names and counters."""

    @abstractmethod
    def list_devices(self) -> list[str]:
        """Return the names of the available devices."""

    @abstractmethod
    def read_stats(self, device: str) -> NetworkStats:
        """Return the current counters of ``device``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return whether this reader works on the current system."""


@dataclass
class Device:
    """A monitored network device and its latest counters."""

    name: str
    stats: NetworkStats = field(default_factory=NetworkStats)
    is_active: bool = False

    def update(self, reader: NetworkReader) -> None:
        """Refresh the counters from ``reader``; mark inactive and re-raise on failure."""
        try:
            stats = reader.read_stats(self.name)
        except Exception:
            self.is_active = False
            raise
        self.stats = stats
        self.is_active = True