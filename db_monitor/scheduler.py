"""Periodic probe cycle scheduling."""

import asyncio
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .config.models import MonitorConfig, TargetConfig
from .probers.base import BaseProber
from .services.metric_state import MetricState
from .utils.metrics import ProbeResult
from .utils.status import DBStatus
from .utils.logger import setup_logger


class SchedulerState(Enum):
    RUNNING = "running"
    STOPPED = "stopped"


class ProbeScheduler:
    """
    Drive probe cycles across all targets at a fixed interval.

    ``start()`` runs one cycle eagerly so the metric state is populated before
    anything is served, then hands the interval timer to APScheduler. A tick
    that fires while the previous cycle is still running is skipped, missed
    ticks coalesce into one. ``stop()`` is terminal: the current cycle may
    finish but no new cycle starts.
    """

    JOB_ID = "probe_cycle"

    def __init__(
        self,
        config: MonitorConfig,
        prober: BaseProber,
        state: MetricState,
        logger: logging.Logger = None
    ):
        """
        Initialize probe scheduler.

        Args:
            config: Immutable monitor configuration
            prober: Prober used for every target
            state: Metric state updated with each result
            logger: Optional logger instance
        """
        self.config = config
        self.prober = prober
        self.metric_state = state
        self.logger = (logger or setup_logger("scheduler")).getChild(self.__class__.__name__)

        self.state = SchedulerState.STOPPED
        self.cycle_count = 0
        self.last_cycle_started: Optional[float] = None

        self._cancelled = asyncio.Event()
        self._scheduler: Optional[AsyncIOScheduler] = None

        # One worker per target so a hung target only ever holds its own thread
        self._executor = ThreadPoolExecutor(
            max_workers=len(config.targets) if config.concurrent_probes else 1,
            thread_name_prefix="probe"
        )

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    async def start(self) -> None:
        """
        Run the eager cycle and start the interval timer.

        Raises:
            RuntimeError: If the scheduler is running or was already stopped
        """
        if self.cancelled:
            raise RuntimeError("Scheduler was stopped and cannot be restarted")
        if self.state is SchedulerState.RUNNING:
            raise RuntimeError("Scheduler already running")

        self.state = SchedulerState.RUNNING
        self.logger.info(
            f"Starting probe scheduler for {len(self.config.targets)} target(s), "
            f"interval {self.config.pull_interval}s"
        )

        # Populate metric state before the first scrape can happen
        await self.run_cycle()

        if self.cancelled:
            return

        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            self.run_cycle,
            trigger=IntervalTrigger(seconds=self.config.pull_interval),
            id=self.JOB_ID,
            name='Database Probe Cycle',
            max_instances=1,  # Prevent overlapping cycles
            coalesce=True,  # If missed, run once
            misfire_grace_time=self.config.pull_interval
        )
        self._scheduler.start()
        self.logger.info("Next run time: " + str(
            self._scheduler.get_job(self.JOB_ID).next_run_time
        ))

    def stop(self) -> None:
        """Observe cancellation: no cycle starts after this returns."""
        if self.state is SchedulerState.STOPPED and self.cancelled:
            return

        self._cancelled.set()
        if self._scheduler is not None and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._executor.shutdown(wait=False)
        self.state = SchedulerState.STOPPED
        self.logger.info("Probe scheduler stopped")

    async def run_cycle(self) -> List[ProbeResult]:
        """
        Probe every target once and update the metric state.

        Returns:
            List[ProbeResult]: Results in configured target order, empty when
            cancellation was already observed
        """
        if self.cancelled:
            self.logger.info("Context done, skipping probe cycle")
            return []

        self.cycle_count += 1
        self.last_cycle_started = time.time()
        start = time.perf_counter()
        targets = self.config.targets

        self.logger.info(
            f"Starting probe cycle {self.cycle_count}",
            extra={"cycle": self.cycle_count, "targets": len(targets)}
        )

        if self.config.concurrent_probes:
            results = list(await asyncio.gather(
                *(self._probe_and_record(target) for target in targets)
            ))
        else:
            results = []
            for target in targets:
                results.append(await self._probe_and_record(target))

        up = sum(1 for r in results if r.is_up)
        self.logger.info(
            f"Probe cycle {self.cycle_count} completed: {up} up, {len(results) - up} down "
            f"in {time.perf_counter() - start:.2f}s",
            extra={"cycle": self.cycle_count, "up": up, "down": len(results) - up}
        )
        return results

    async def _probe_and_record(self, target: TargetConfig) -> ProbeResult:
        try:
            result = await self.prober.probe_async(
                target, self.config.query, executor=self._executor
            )
        except Exception as e:
            # Probers wrap themselves with @safe_probe; this guards custom ones
            self.logger.error(f"Probe raised for {target.identity}: {e}", exc_info=True)
            result = ProbeResult(
                target_host=target.host,
                port=target.port,
                status=DBStatus.DOWN,
                latency_ms=0,
                error=str(e)
            )
        self.metric_state.update(target, result)
        return result
