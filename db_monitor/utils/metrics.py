"""Probe result data structure."""

from dataclasses import dataclass
from typing import Optional
import time
from .status import DBStatus


@dataclass
class ProbeResult:
    """Outcome of one probe against one target."""

    target_host: str
    port: int
    status: DBStatus
    latency_ms: int  # Whole probe cycle, connect through release
    timestamp: Optional[float] = None
    error: Optional[str] = None

    def __post_init__(self):
        """Enforce latency invariants and set timestamp if not provided."""
        if self.latency_ms < 0:
            raise ValueError(f"latency_ms must be non-negative, got {self.latency_ms}")

        # A failed connection has no round-trip time
        if self.status is DBStatus.DOWN:
            self.latency_ms = 0

        if self.timestamp is None:
            self.timestamp = time.time()

    @property
    def is_up(self) -> bool:
        return self.status is DBStatus.UP
