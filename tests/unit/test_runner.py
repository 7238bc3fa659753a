"""Unit tests for the benchmark runner."""

from unittest.mock import MagicMock, patch

import pytest

from tlsbench.shared.config import Config
from tlsbench.benchmark.runner import BenchmarkRunner
from tlsbench.benchmark.connection_probe import ConnectionProbe
from tlsbench.benchmark.result_exporter import ResultExporter
from tlsbench.benchmark.models import ConnectionResult, ProbeOutcome
from tlsbench.benchmark.exceptions import BenchmarkExecutionError
from ..test_const import TEST_HOST, TEST_PORT_OVERRIDE, TEST_SERVER_NAME, HYBRID_GROUPS


class FixedProbe:
    def __init__(self, latency_ms=2.0):
        self.latency_ms = latency_ms

    def probe(self, deadline=None):
        return ConnectionResult(outcome=ProbeOutcome.SUCCESS, latency_ms=self.latency_ms)


@pytest.fixture
def config(tmp_path):
    return Config(host=TEST_HOST, port=TEST_PORT_OVERRIDE, server_name=TEST_SERVER_NAME,
                  results_dir=tmp_path / "results", probe_timeout=1.5)


class TestBenchmarkRunner:
    """Test a run from configuration to persisted record."""

    def test_probe_target_from_config(self, config):
        """Test the target carries host, port, SNI, groups and timeout."""
        target = BenchmarkRunner(config).probe_target("Hybrid")
        assert (target.host, target.port) == (TEST_HOST, TEST_PORT_OVERRIDE)
        assert target.sni == TEST_SERVER_NAME
        assert target.groups == HYBRID_GROUPS
        assert target.timeout == 1.5

    def test_record_written_under_default_label(self, config):
        """Test the record lands at raw/<mode>_<concurrency>x.log and parses back."""
        runner = BenchmarkRunner(config, probe_factory=lambda mode: FixedProbe())

        stats, record = runner.run("classical", concurrency=2, runs_per_worker=3)

        path = config.results_dir / "raw" / "classical_2x.log"
        assert path.exists()
        assert path.read_text() == record
        parsed = ResultExporter.load_record(path)
        assert parsed.success == stats.success == 6
        assert parsed.fail == 0
        assert parsed.mean == pytest.approx(2.0)
        assert record.startswith("Mode: classical\n")

    def test_explicit_label(self, config):
        """Test a label overrides the derived load level."""
        runner = BenchmarkRunner(config, probe_factory=lambda mode: FixedProbe())
        runner.run("hybrid", concurrency=3, runs_per_worker=1, label="100x")
        assert (config.results_dir / "raw" / "hybrid_100x.log").exists()

    def test_no_save(self, config):
        """Test save=False only returns the record text."""
        runner = BenchmarkRunner(config, probe_factory=lambda mode: FixedProbe())
        _, record = runner.run("classical", save=False)
        assert "CSV_OUTPUT:" in record
        assert not config.results_dir.exists()

    def test_unwritable_results_dir(self, tmp_path):
        """Test failing to write the record is fatal."""
        blocker = tmp_path / "blocker"
        blocker.write_text("file, not directory")
        runner = BenchmarkRunner(Config(results_dir=blocker), probe_factory=lambda mode: FixedProbe())
        with pytest.raises(BenchmarkExecutionError):
            runner.run("classical")


class TestDegradedGroups:
    """Test runs whose probe could not apply every requested group."""

    @pytest.fixture
    def fallback_factory(self):
        factory = MagicMock()
        factory.client_context.return_value = (MagicMock(), ("x25519",))
        return factory

    def test_preamble_names_applied_groups(self, config, fallback_factory, stats_factory):
        """Test the record lists the groups actually used and the requested ones."""
        runner = BenchmarkRunner(config, context_factory=fallback_factory)
        runner.build_probe("hybrid")

        lines = runner.preamble("hybrid", stats_factory())

        assert "Groups: x25519" in lines
        assert "Requested groups: X25519MLKEM768,x25519 (degraded)" in lines
        assert runner.is_degraded("hybrid")

    def test_degraded_record_round_trips(self, config, fallback_factory):
        """Test a degraded run is saved and loaded back as degraded."""
        runner = BenchmarkRunner(config, context_factory=fallback_factory)
        success = ConnectionResult(outcome=ProbeOutcome.SUCCESS, latency_ms=1.5)
        with patch.object(ConnectionProbe, "probe", return_value=success):
            stats, _ = runner.run("hybrid", concurrency=1, runs_per_worker=2, label="1x")

        assert stats.degraded is True
        assert ResultExporter.load_record(config.results_dir / "raw" / "hybrid_1x.log").degraded is True

    def test_full_groups_not_degraded(self, config, mock_context_factory, stats_factory):
        """Test a probe applying all groups leaves the record unmarked."""
        runner = BenchmarkRunner(config, context_factory=mock_context_factory)
        runner.build_probe("classical")
        lines = runner.preamble("classical", stats_factory())
        assert "Groups: x25519" in lines
        assert not any(line.startswith("Requested groups:") for line in lines)
