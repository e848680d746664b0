"""Configuration loader for environment variables and YAML files."""

import yaml
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from .models import MonitorConfig
from .settings import Settings


class ConfigLoader:
    """Load and validate monitor configuration."""

    @staticmethod
    def load_from_env(environ: Optional[Dict[str, str]] = None) -> MonitorConfig:
        """
        Build configuration from DB_MONITOR_* environment variables.

        Args:
            environ: Mapping to read instead of os.environ

        Returns:
            MonitorConfig: Validated configuration object

        Raises:
            pydantic.ValidationError: If a value cannot be parsed (e.g. interval "abc")
        """
        def get(key: str) -> str:
            return Settings.get(key, environ=environ)

        raw_config = {
            "database": {
                "servers": get(Settings.SERVER),
                "port": get(Settings.PORT),
                "service": get(Settings.SERVICE),
                "username": get(Settings.USERNAME),
                "password": get(Settings.PASSWORD),
            },
            "query": get(Settings.QUERY),
            "pull_interval": get(Settings.PULL_INTERVAL),
            "connect_timeout": get(Settings.CONNECT_TIMEOUT),
            "concurrent_probes": get(Settings.CONCURRENT),
            "listen_server": get(Settings.LISTEN_SERVER),
            "log_level": get(Settings.LOG_LEVEL),
        }
        return ConfigLoader._build(raw_config)

    @staticmethod
    def load_from_file(config_path: str) -> MonitorConfig:
        """
        Load configuration from YAML file with environment variable substitution.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            MonitorConfig: Validated configuration object

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If YAML parsing fails
            pydantic.ValidationError: If configuration validation fails
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_file, 'r') as f:
            raw_config = yaml.safe_load(f) or {}

        raw_config = ConfigLoader._substitute_env_vars(raw_config)

        return ConfigLoader._build(raw_config)

    @staticmethod
    def _build(raw_config: Dict[str, Any]) -> MonitorConfig:
        """Expand the shared database section into one target per server."""
        raw_config = dict(raw_config)
        database = raw_config.pop("database", None) or {}
        servers = ConfigLoader._split_servers(database.get("servers", ""))
        shared = {k: v for k, v in database.items() if k != "servers" and v is not None}

        raw_config["targets"] = [dict(shared, host=host) for host in servers]

        # Validate with Pydantic
        return MonitorConfig(**raw_config)

    @staticmethod
    def _split_servers(servers: Union[str, List[str], None]) -> List[str]:
        """Accept "a;b" or a YAML list, dropping blank entries."""
        if servers is None:
            return []
        if isinstance(servers, str):
            servers = servers.split(';')
        return [str(s).strip() for s in servers if str(s).strip()]

    @staticmethod
    def _substitute_env_vars(obj: Any) -> Any:
        """
        Recursively substitute ${ENV_VAR} placeholders with environment values.

        Args:
            obj: Object to process (str, dict, list, or primitive)

        Returns:
            Object with environment variables substituted
        """
        if isinstance(obj, str):
            pattern = r'\$\{(\w+)\}'
            return re.sub(pattern, lambda m: os.getenv(m.group(1), ''), obj)

        elif isinstance(obj, dict):
            return {k: ConfigLoader._substitute_env_vars(v) for k, v in obj.items()}

        elif isinstance(obj, list):
            return [ConfigLoader._substitute_env_vars(item) for item in obj]

        return obj
