"""Tests for the PostgreSQL prober."""

import time

import pytest
from unittest.mock import MagicMock, patch

from db_monitor.probers.database_prober import DatabaseProber
from db_monitor.utils.status import DBStatus

QUERY = "select employee_name, city from employees"


@pytest.fixture
def prober(logger):
    return DatabaseProber(connect_timeout=10, logger=logger)


@pytest.fixture
def mock_psycopg2():
    with patch('db_monitor.probers.database_prober.psycopg2') as mock_psycopg2:
        yield mock_psycopg2


@pytest.fixture
def mock_conn(mock_psycopg2):
    """Connection whose cursor returns two rows for the probe query."""
    mock_conn = MagicMock()
    mock_cursor = MagicMock()
    mock_cursor.fetchone.return_value = (1,)
    mock_cursor.__iter__.return_value = iter([("alice", "hanoi"), ("bob", "hue")])
    mock_conn.cursor.return_value = mock_cursor
    mock_psycopg2.connect.return_value = mock_conn
    return mock_conn


def test_probe_reachable_target_is_up(prober, target, mock_psycopg2, mock_conn):
    """Test successful connect, ping and query."""
    result = prober.probe(target, QUERY)

    assert result.status == DBStatus.UP
    assert result.latency_ms >= 0
    assert result.error is None
    assert result.target_host == "dbhost1"
    assert result.port == 5432
    assert result.timestamp is not None


def test_probe_connects_with_timeout_and_credentials(prober, target, mock_psycopg2, mock_conn):
    """Test connection parameters, including the 10 second ceiling."""
    prober.probe(target, QUERY)

    mock_psycopg2.connect.assert_called_once_with(
        host="dbhost1",
        port=5432,
        dbname="app",
        user="monitor",
        password="secret",
        connect_timeout=10,
        options="-c statement_timeout=10000"
    )


def test_probe_statement_timeout_follows_connect_timeout(target, logger, mock_psycopg2, mock_conn):
    """Test ping and query are bounded by the same ceiling as the connect."""
    prober = DatabaseProber(connect_timeout=1, logger=logger)

    prober.probe(target, QUERY)

    kwargs = mock_psycopg2.connect.call_args.kwargs
    assert kwargs["connect_timeout"] == 1
    assert kwargs["options"] == "-c statement_timeout=1000"


def test_probe_statement_timeout_is_down(prober, target, mock_psycopg2, mock_conn):
    """Test a query cancelled by the server-side timeout is reported DOWN."""
    mock_cursor = mock_conn.cursor.return_value
    mock_cursor.execute.side_effect = [None, Exception("canceling statement due to statement timeout")]

    result = prober.probe(target, QUERY)

    assert result.status == DBStatus.DOWN
    assert result.latency_ms == 0
    assert "statement timeout" in result.error
    mock_conn.close.assert_called_once()


def test_probe_runs_ping_then_query(prober, target, mock_psycopg2, mock_conn):
    """Test the reachability check precedes the configured query."""
    prober.probe(target, QUERY)

    executed = [c.args[0] for c in mock_conn.cursor.return_value.execute.call_args_list]
    assert executed == [DatabaseProber.PING_QUERY, QUERY]


def test_probe_releases_connection_on_success(prober, target, mock_psycopg2, mock_conn):
    prober.probe(target, QUERY)

    mock_conn.close.assert_called_once()


def test_probe_connection_refused_is_down(prober, target, mock_psycopg2):
    """Test unreachable target (DOWN, latency 0)."""
    mock_psycopg2.connect.side_effect = Exception("Connection refused")

    result = prober.probe(target, QUERY)

    assert result.status == DBStatus.DOWN
    assert result.latency_ms == 0
    assert "Connection refused" in result.error


def test_probe_down_latency_is_zero_even_when_slow(prober, target, mock_psycopg2):
    """Test latency is forced to 0 regardless of how long the failed attempt took."""
    def slow_failure(**kwargs):
        time.sleep(0.05)
        raise Exception("timeout expired")

    mock_psycopg2.connect.side_effect = slow_failure

    result = prober.probe(target, QUERY)

    assert result.status == DBStatus.DOWN
    assert result.latency_ms == 0


def test_probe_ping_failure_skips_query(prober, target, mock_psycopg2, mock_conn):
    """Test failed reachability check marks DOWN without running the query."""
    mock_cursor = mock_conn.cursor.return_value
    mock_cursor.execute.side_effect = Exception("server closed the connection unexpectedly")

    result = prober.probe(target, QUERY)

    assert result.status == DBStatus.DOWN
    assert result.latency_ms == 0
    assert mock_cursor.execute.call_count == 1
    mock_conn.close.assert_called_once()


def test_probe_query_error_is_down(prober, target, mock_psycopg2, mock_conn):
    """Test query failure after a successful ping is contained as DOWN."""
    mock_cursor = mock_conn.cursor.return_value
    mock_cursor.execute.side_effect = [None, Exception('relation "employees" does not exist')]

    result = prober.probe(target, QUERY)

    assert result.status == DBStatus.DOWN
    assert result.latency_ms == 0
    assert "Query failed" in result.error
    mock_conn.close.assert_called_once()


def test_probe_row_iteration_error_is_down(prober, target, mock_psycopg2, mock_conn):
    """Test an error while reading rows fails the probe instead of skipping the row."""
    mock_conn.cursor.return_value.__iter__.side_effect = Exception("could not receive data from server")

    result = prober.probe(target, QUERY)

    assert result.status == DBStatus.DOWN
    assert "could not receive data" in result.error
    mock_conn.close.assert_called_once()


def test_probe_close_error_is_not_fatal(prober, target, mock_psycopg2, mock_conn):
    """Test failure to release the connection is only logged."""
    mock_conn.close.side_effect = Exception("connection already closed")

    result = prober.probe(target, QUERY)

    assert result.status == DBStatus.UP
    assert result.error is None


def test_probe_latency_covers_query(prober, target, mock_psycopg2, mock_conn):
    """Test latency spans connect through query, not only the round trip."""
    def slow_execute(statement):
        time.sleep(0.02)

    mock_conn.cursor.return_value.execute.side_effect = slow_execute

    result = prober.probe(target, QUERY)

    assert result.status == DBStatus.UP
    assert result.latency_ms >= 20


def test_probe_unexpected_error_is_contained(prober, target, mock_psycopg2, mock_conn):
    """Test errors outside the connect/query phases still produce a DOWN result."""
    with patch.object(DatabaseProber, '_release', side_effect=RuntimeError("boom")):
        result = prober.probe(target, QUERY)

    assert result.status == DBStatus.DOWN
    assert result.latency_ms == 0
    assert "boom" in result.error


@pytest.mark.asyncio
async def test_probe_async_runs_in_executor(prober, target, mock_psycopg2, mock_conn):
    result = await prober.probe_async(target, QUERY)

    assert result.status == DBStatus.UP


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
