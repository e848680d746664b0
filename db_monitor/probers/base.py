"""Base prober abstract class for all database probers."""

import asyncio
from abc import ABC, abstractmethod
import logging
from concurrent.futures import Executor
from functools import wraps
from typing import Optional

from ..config.models import TargetConfig
from ..utils.status import DBStatus
from ..utils.metrics import ProbeResult


class BaseProber(ABC):
    """Abstract base class for all probers."""

    def __init__(self, connect_timeout: int, logger: logging.Logger):
        """
        Initialize base prober.

        Args:
            connect_timeout: Ceiling in seconds for the connect and for each statement
            logger: Logger instance
        """
        self.connect_timeout = connect_timeout
        self.logger = logger.getChild(self.__class__.__name__)

    @abstractmethod
    def probe(self, target: TargetConfig, query: str) -> ProbeResult:
        """
        Run one probe cycle against a single target.

        Returns:
            ProbeResult: Outcome of the probe

        Note:
            Implementations block and should use @safe_probe so that no
            exception ever escapes to the scheduler.
        """
        pass

    async def probe_async(
        self,
        target: TargetConfig,
        query: str,
        executor: Optional[Executor] = None
    ) -> ProbeResult:
        """
        Async wrapper for probe (runs in thread pool).

        Args:
            target: Target to probe
            query: Statement executed after the reachability check
            executor: Pool to run in; the loop default pool when omitted

        Returns:
            ProbeResult: Outcome of the probe
        """
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(executor, self.probe, target, query)


def safe_probe(func):
    """
    Decorator turning any exception escaping a probe into a DOWN result.

    Args:
        func: Prober method to wrap

    Returns:
        Wrapped function that never raises
    """
    @wraps(func)
    def wrapper(self, target: TargetConfig, query: str) -> ProbeResult:
        try:
            return func(self, target, query)
        except Exception as e:
            self.logger.error(
                f"Probe failed for {target.identity}: {e}",
                exc_info=True,
                extra={"host": target.host, "port": target.port}
            )
            return ProbeResult(
                target_host=target.host,
                port=target.port,
                status=DBStatus.DOWN,
                latency_ms=0,
                error=f"Probe error: {str(e)}"
            )
    return wrapper
