"""JSON log output for the monitor and its components."""

import logging
import sys
from pythonjsonlogger.json import JsonFormatter

SERVICE_NAME = "db-monitor"


def setup_logger(name: str = "db_monitor", level: str = "INFO") -> logging.Logger:
    """
    Configure a stdout JSON logger tagged with the service name.

    Components log through ``logger.getChild(...)``, so every record carries
    ``service`` plus whatever the caller passes in ``extra`` (host, status,
    latency_ms, cycle).

    Args:
        name: Logger name
        level: Level name, already validated by MonitorConfig

    Returns:
        logging.Logger: Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level.upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter(
        '%(asctime)s %(name)s %(levelname)s %(message)s',
        timestamp=True,
        static_fields={"service": SERVICE_NAME}
    ))
    logger.handlers = [handler]
    logger.propagate = False

    return logger
