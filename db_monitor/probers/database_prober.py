"""PostgreSQL reachability and latency prober."""

import time
import logging
from typing import Optional

import psycopg2

from ..config.models import TargetConfig
from ..utils.status import DBStatus
from ..utils.metrics import ProbeResult
from .base import BaseProber, safe_probe


class DatabaseProber(BaseProber):
    """
    Probe a database by connecting, pinging and running the configured query.

    Connect and ping failures mark the target DOWN without running the query.
    A query that fails after a successful ping is also reported DOWN for that
    target; nothing a probe does can stop the process.
    """

    PING_QUERY = "SELECT 1"

    def __init__(self, connect_timeout: int = 10, logger: Optional[logging.Logger] = None):
        """
        Initialize database prober.

        Args:
            connect_timeout: Seconds allowed for the connect and for each statement
            logger: Logger instance
        """
        super().__init__(connect_timeout, logger or logging.getLogger(__name__))

    @safe_probe
    def probe(self, target: TargetConfig, query: str) -> ProbeResult:
        """
        Probe a single target.

        Args:
            target: Target to probe
            query: Statement executed once the target answers the ping

        Returns:
            ProbeResult: UP with elapsed latency, or DOWN with latency 0
        """
        status = DBStatus.DOWN
        error = None
        conn = None

        started = time.perf_counter()
        try:
            conn = self._connect(target)
            self._ping(conn)
        except Exception as e:
            error = f"Connection failed: {e}"
            self.logger.warning(
                f"Ping to {target.identity}:{target.port} failed: {e}",
                extra={"host": target.host, "port": target.port}
            )
        else:
            try:
                row_count = self._run_query(conn, query)
                status = DBStatus.UP
                self.logger.debug(
                    f"Query on {target.identity} returned {row_count} row(s)",
                    extra={"host": target.host, "rows": row_count}
                )
            except Exception as e:
                error = f"Query failed: {e}"
                self.logger.warning(
                    f"Query on {target.identity} failed: {e}",
                    extra={"host": target.host, "port": target.port}
                )
        finally:
            if conn is not None:
                self._release(conn, target)

        elapsed_ms = int((time.perf_counter() - started) * 1000)

        result = ProbeResult(
            target_host=target.host,
            port=target.port,
            status=status,
            latency_ms=elapsed_ms if status is DBStatus.UP else 0,
            error=error
        )
        self.logger.info(
            f"Probed {target.identity}: {status.value} in {result.latency_ms} ms",
            extra={"host": target.host, "status": status.value, "latency_ms": result.latency_ms}
        )
        return result

    def _connect(self, target: TargetConfig):
        return psycopg2.connect(
            host=target.host,
            port=target.port,
            dbname=target.service,
            user=target.username,
            password=target.password,
            connect_timeout=self.connect_timeout,
            # Ping and query get the same ceiling as the connect
            options=f"-c statement_timeout={self.connect_timeout * 1000}"
        )

    def _ping(self, conn) -> None:
        cursor = conn.cursor()
        try:
            cursor.execute(self.PING_QUERY)
            cursor.fetchone()
        finally:
            cursor.close()

    def _run_query(self, conn, query: str) -> int:
        """Execute query and drain every row; row values are only logged."""
        cursor = conn.cursor()
        try:
            cursor.execute(query)
            row_count = 0
            for row in cursor:
                row_count += 1
                self.logger.debug(f"Row {row_count}: {row[:2]}")
            return row_count
        finally:
            cursor.close()

    def _release(self, conn, target: TargetConfig) -> None:
        try:
            conn.close()
        except Exception as e:
            self.logger.warning(
                f"Can't close connection to {target.identity}: {e}",
                extra={"host": target.host}
            )
