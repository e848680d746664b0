"""Environment variable names and defaults."""

import os
from typing import Optional


class Settings:
    """Application settings from environment variables."""

    SERVER = "DB_MONITOR_SERVER"
    PORT = "DB_MONITOR_PORT"
    SERVICE = "DB_MONITOR_SERVICE"
    USERNAME = "DB_MONITOR_USERNAME"
    PASSWORD = "DB_MONITOR_PASSWORD"
    QUERY = "DB_MONITOR_QUERY"
    PULL_INTERVAL = "DB_MONITOR_PULL_INTERVAL"
    CONNECT_TIMEOUT = "DB_MONITOR_CONNECT_TIMEOUT"
    CONCURRENT = "DB_MONITOR_CONCURRENT"
    LISTEN_SERVER = "LISTEN_SERVER"
    LOG_LEVEL = "LOG_LEVEL"

    DEFAULTS = {
        SERVER: "localhost",
        PORT: "5432",
        SERVICE: "postgres",
        USERNAME: "postgres",
        PASSWORD: "",
        QUERY: "select employee_name, city from employees",
        PULL_INTERVAL: "5",
        CONNECT_TIMEOUT: "10",
        CONCURRENT: "false",
        LISTEN_SERVER: ":8081",
        LOG_LEVEL: "INFO",
    }

    @staticmethod
    def get(key: str, default: Optional[str] = None, environ: Optional[dict] = None) -> str:
        """
        Get environment variable value, falling back when unset or empty.

        Args:
            key: Environment variable name
            default: Fallback value; the table default is used when omitted
            environ: Mapping to read instead of os.environ

        Returns:
            str: Environment variable value
        """
        source = os.environ if environ is None else environ
        value = source.get(key)
        if not value:
            value = default if default is not None else Settings.DEFAULTS.get(key, "")
        return value
