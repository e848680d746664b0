"""Shared pytest configuration and fixtures."""

import logging
import time

import pytest

from db_monitor.config.models import MonitorConfig, TargetConfig
from db_monitor.probers.base import BaseProber, safe_probe
from db_monitor.utils.logger import setup_logger
from db_monitor.utils.metrics import ProbeResult
from db_monitor.utils.status import DBStatus


class FakeProber(BaseProber):
    """Prober returning scripted statuses without touching a database."""

    def __init__(self, outcomes=None, latency_ms=12, delay=0.0, logger=None):
        super().__init__(10, logger or logging.getLogger("test"))
        self.outcomes = dict(outcomes or {})
        self.latency_ms = latency_ms
        self.delay = delay
        self.calls = []

    @safe_probe
    def probe(self, target, query):
        self.calls.append(target.host)
        delay = self.delay.get(target.host, 0.0) if isinstance(self.delay, dict) else self.delay
        if delay:
            time.sleep(delay)
        status = self.outcomes.get(target.host, DBStatus.UP)
        if isinstance(status, Exception):
            raise status
        return ProbeResult(
            target_host=target.host,
            port=target.port,
            status=status,
            latency_ms=self.latency_ms
        )


@pytest.fixture
def logger():
    """Create logger for tests."""
    return setup_logger("test")


@pytest.fixture
def targets():
    """Two targets sharing credentials, as built from DB_MONITOR_SERVER."""
    return [
        TargetConfig(host="dbhost1", port=5432, service="app", username="monitor", password="secret"),
        TargetConfig(host="dbhost2", port=5432, service="app", username="monitor", password="secret"),
    ]


@pytest.fixture
def target(targets):
    return targets[0]


@pytest.fixture
def monitor_config(targets):
    """Configuration with an interval long enough that the timer never fires in a test."""
    return MonitorConfig(targets=targets, pull_interval=3600)


@pytest.fixture
def make_prober(logger):
    """Factory for FakeProber instances."""
    def factory(**kwargs):
        kwargs.setdefault("logger", logger)
        return FakeProber(**kwargs)
    return factory


def make_result(host, status=DBStatus.UP, latency_ms=12, **kwargs):
    return ProbeResult(target_host=host, port=5432, status=status, latency_ms=latency_ms, **kwargs)


@pytest.fixture
def result_factory():
    return make_result
