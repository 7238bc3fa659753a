"""Shared test configuration and fixtures for all tests."""

import pytest
from unittest.mock import MagicMock

from tlsbench.benchmark.models import RunStatistics, RunStatus
from tlsbench.benchmark.result_exporter import ResultExporter
from tlsbench.server import EchoServer, ServerIdentity, wait_until_listening
from .test_const import TEST_HOST, CLASSICAL_GROUPS


def make_stats(**overrides) -> RunStatistics:
    """RunStatistics with plausible defaults."""
    values = dict(
        concurrency=10, runs_per_worker=5, success=50, fail=0,
        mean=3.0, median=2.5, p90=4.0, p95=4.5, p99=6.0, max=7.0,
        throughput=250.0, min=1.0, elapsed_seconds=0.2,
        status=RunStatus.COMPLETE, abandoned=0,
    )
    values.update(overrides)
    return RunStatistics(**values)


@pytest.fixture
def stats_factory():
    """Factory fixture building RunStatistics."""
    return make_stats


@pytest.fixture
def results_dir(tmp_path):
    """Empty results directory."""
    path = tmp_path / "results"
    path.mkdir()
    return path


@pytest.fixture
def write_record(results_dir):
    """Write a run record (stats or raw text) for a (mode, level) pair."""
    def _write(mode, level, stats=None, text=None):
        path = ResultExporter.record_path(results_dir, mode, level)
        if text is not None:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text)
        else:
            ResultExporter.save_record(stats or make_stats(), path, [f"Mode: {mode}"])
        return path
    return _write


@pytest.fixture
def mock_context_factory():
    """Context factory returning a MagicMock client context with the classical group applied."""
    factory = MagicMock()
    factory.client_context.return_value = (MagicMock(), CLASSICAL_GROUPS)
    return factory


@pytest.fixture(scope="session")
def server_identity():
    """Ephemeral self-signed identity shared by the session."""
    return ServerIdentity.ephemeral()


@pytest.fixture
def echo_server(server_identity):
    """Running classical echo server on a free loopback port."""
    server = EchoServer(CLASSICAL_GROUPS, server_identity, host=TEST_HOST, port=0)
    server.start()
    assert wait_until_listening(TEST_HOST, server.port)
    yield server
    server.stop()
