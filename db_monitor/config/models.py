"""Pydantic configuration models for the database monitor."""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List


class TargetConfig(BaseModel):
    """One monitored database endpoint."""
    model_config = ConfigDict(frozen=True)

    host: str = Field(min_length=1)
    port: int = Field(default=5432, ge=1, le=65535)
    service: str = "postgres"  # Database (service) name
    username: str = "postgres"
    password: str = ""

    @property
    def identity(self) -> str:
        """Key used for metric state and labels; the port is shared by all targets."""
        return self.host


class MonitorConfig(BaseModel):
    """Root configuration model, built once at startup."""
    model_config = ConfigDict(frozen=True)

    targets: List[TargetConfig] = Field(min_length=1)
    query: str = "select employee_name, city from employees"
    pull_interval: int = Field(default=5, ge=1)  # Seconds
    listen_server: str = ":8081"
    connect_timeout: int = Field(default=10, ge=1, le=10)  # Seconds, per connect and per statement
    concurrent_probes: bool = False
    log_level: str = "INFO"

    @field_validator('targets')
    @classmethod
    def unique_hosts(cls, v: List[TargetConfig]) -> List[TargetConfig]:
        """Reject duplicate hosts, metrics are keyed by host."""
        hosts = [t.identity for t in v]
        duplicates = sorted({h for h in hosts if hosts.count(h) > 1})
        if duplicates:
            raise ValueError(f"Duplicate target hosts: {', '.join(duplicates)}")
        return v

    @field_validator('query')
    @classmethod
    def query_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('Probe query must not be empty')
        return v

    @field_validator('listen_server')
    @classmethod
    def validate_listen_server(cls, v: str) -> str:
        """Validate host:port format (host may be empty)."""
        host, sep, port = v.rpartition(':')
        if not sep:
            raise ValueError('Listen address must be in host:port form, e.g. ":8081"')
        if not port.isdigit() or not 0 < int(port) < 65536:
            raise ValueError(f'Invalid listen port: {port!r}')
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            raise ValueError(f'Unknown log level: {v}')
        return level

    @property
    def listen_host(self) -> str:
        host = self.listen_server.rpartition(':')[0]
        return host or "0.0.0.0"

    @property
    def listen_port(self) -> int:
        return int(self.listen_server.rpartition(':')[2])
