"""Main application entry point for the database monitor."""

import argparse
import asyncio
import logging
import signal
import sys
from typing import Optional

from .config.loader import ConfigLoader
from .config.models import MonitorConfig
from .probers.database_prober import DatabaseProber
from .scheduler import ProbeScheduler
from .services.metric_state import MetricState
from .services.metrics_exporter import MetricsExporter
from .utils.logger import setup_logger


class MonitorApp:
    """
    Main monitoring application.

    Wires configuration, prober, metric state, scheduler and exporter,
    and owns the shutdown lifecycle.
    """

    def __init__(self, config_path: Optional[str] = None, log_level: Optional[str] = None):
        """
        Initialize monitoring application.

        Args:
            config_path: Optional YAML file; environment variables are used when omitted
            log_level: Overrides the configured log level

        Raises:
            SystemExit: If configuration is invalid
        """
        self.config_path = config_path
        self.logger = setup_logger("db_monitor", log_level or "INFO")

        self.config = self._load_config()
        if log_level is None:
            self.logger.setLevel(self.config.log_level)

        self.metric_state = MetricState(self.logger.getChild("MetricState"))
        self.prober = DatabaseProber(self.config.connect_timeout, self.logger)
        self.scheduler = ProbeScheduler(self.config, self.prober, self.metric_state, self.logger)
        self.exporter = MetricsExporter(self.metric_state, self.logger)
        self._shutdown = None

        self.logger.info(
            "Application initialized",
            extra={
                "targets": [t.identity for t in self.config.targets],
                "pull_interval": self.config.pull_interval,
                "listen_server": self.config.listen_server,
            }
        )

    def _load_config(self) -> MonitorConfig:
        """
        Load and validate configuration.

        Returns:
            MonitorConfig: Loaded configuration

        Raises:
            SystemExit: If configuration is invalid
        """
        try:
            if self.config_path:
                self.logger.info(f"Loading configuration from {self.config_path}")
                config = ConfigLoader.load_from_file(self.config_path)
            else:
                self.logger.info("Loading configuration from environment")
                config = ConfigLoader.load_from_env()
            self.logger.info("Configuration loaded successfully")
            return config

        except FileNotFoundError:
            self.logger.error(f"Configuration file not found: {self.config_path}")
            sys.exit(1)

        except Exception as e:
            self.logger.error(f"Failed to load configuration: {e}")
            sys.exit(1)

    def _signal_handler(self, signum: int) -> None:
        """
        Handle shutdown signals.

        Args:
            signum: Signal number
        """
        signal_name = signal.Signals(signum).name
        self.logger.info(f"Received {signal_name}, initiating graceful shutdown...")
        if self._shutdown is not None:
            self._shutdown.set()

    async def run_once(self) -> str:
        """Run a single probe cycle and return the rendered exposition payload."""
        await self.scheduler.run_cycle()
        return self.exporter.render().decode("utf-8")

    async def run(self) -> None:
        """
        Probe eagerly, serve /metrics, and keep probing until a signal arrives.
        """
        self._shutdown = asyncio.Event()
        loop = asyncio.get_running_loop()
        for signum in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(signum, self._signal_handler, signum)

        try:
            await self.scheduler.start()
            self.exporter.start(self.config.listen_host, self.config.listen_port)

            self.logger.info("Monitor running. Press Ctrl+C to exit.")
            await self._shutdown.wait()
        finally:
            self.scheduler.stop()
            self.exporter.stop()
            for signum in (signal.SIGTERM, signal.SIGINT):
                loop.remove_signal_handler(signum)
            self.logger.info("Monitor stopped")


def main():
    """
    CLI entry point.

    Parses command-line arguments and starts the monitor.
    """
    parser = argparse.ArgumentParser(
        description='Database health and latency prober with Prometheus metrics',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Probe the hosts in DB_MONITOR_SERVER and serve metrics on :8081
  DB_MONITOR_SERVER="dbhost1;dbhost2" db-monitor

  # Probe once and print the metrics payload
  db-monitor --run-once

  # Use a YAML config file
  db-monitor --config config/config.yaml
        """
    )

    parser.add_argument(
        '--config',
        default=None,
        help='Path to YAML configuration file (default: read environment variables)'
    )

    parser.add_argument(
        '--run-once',
        action='store_true',
        help='Run one probe cycle, print the metrics and exit (no scheduler, no server)'
    )

    parser.add_argument(
        '--log-level',
        default=None,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: configured LOG_LEVEL)'
    )

    args = parser.parse_args()

    app = MonitorApp(config_path=args.config, log_level=args.log_level)

    try:
        if args.run_once:
            print(asyncio.run(app.run_once()), end="")
        else:
            asyncio.run(app.run())
    except Exception as e:
        logging.getLogger("db_monitor").error(f"Monitor failed: {e}", exc_info=True)
        sys.exit(1)

    sys.exit(0)


if __name__ == '__main__':
    main()
