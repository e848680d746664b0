"""Latest probe result per target, shared between scheduler and exporter."""

import logging
import threading
from typing import Dict, Optional

from ..config.models import TargetConfig
from ..utils.metrics import ProbeResult


class MetricState:
    """
    Mapping of target identity to its most recent ProbeResult.

    Every update replaces the whole entry under a single lock, so a scrape
    sees either the previous or the new result for a target, never a mix.
    Nothing is accumulated: a value lives until the next cycle overwrites it.
    """

    def __init__(self, logger: logging.Logger = None):
        self.logger = logger or logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._results: Dict[str, ProbeResult] = {}

    def update(self, target: TargetConfig, result: ProbeResult) -> None:
        """Overwrite the entry for *target* with *result*."""
        with self._lock:
            self._results[target.identity] = result

        self.logger.debug(
            f"Updated metric state for {target.identity}",
            extra={"host": target.identity, "status": result.status.value}
        )

    def snapshot(self) -> Dict[str, ProbeResult]:
        """Return a copy of the current mapping for rendering."""
        with self._lock:
            return dict(self._results)

    def get(self, identity: str) -> Optional[ProbeResult]:
        with self._lock:
            return self._results.get(identity)

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)

    def __contains__(self, identity: str) -> bool:
        with self._lock:
            return identity in self._results
