"""Unit tests for the cross-run results analyzer."""

import logging

import pytest

from tlsbench.benchmark.results_analyzer import ResultsAnalyzer, percent_change
from tlsbench.benchmark.exceptions import BenchmarkExecutionError
from ..test_const import SHORT_DATA_LINE, RECORD_HEADER, SUMMARY_HEADER


def _table_rows(table: str):
    return [line for line in table.splitlines() if line.startswith(("classical", "hybrid"))]


class TestLoad:
    """Test locating and parsing records."""

    def test_only_one_level_present(self, results_dir, write_record, stats_factory):
        """Test records present only at 1x produce 1x rows and findings, nothing else."""
        write_record("classical", "1x", stats_factory(concurrency=1, mean=2.0, p99=4.0, throughput=100.0))
        write_record("hybrid", "1x", stats_factory(concurrency=1, mean=2.5, p99=6.0, throughput=80.0))
        analyzer = ResultsAnalyzer(results_dir)

        results = analyzer.load()

        assert list(results) == ["classical", "hybrid"]
        assert list(results["classical"]) == ["1x"]
        rows = _table_rows(analyzer.comparison_table(results))
        assert len(rows) == 2
        assert rows[0].split()[:2] == ["classical", "1x"]
        assert rows[1].split()[:2] == ["hybrid", "1x"]

        findings = analyzer.findings(results)
        assert [f.level for f in findings] == ["1x"]
        assert findings[0].mean_pct == pytest.approx(25.0)
        assert findings[0].p99_pct == pytest.approx(50.0)
        assert findings[0].throughput_pct == pytest.approx(-20.0)

    def test_malformed_record_is_skipped(self, results_dir, write_record, caplog):
        """Test a wrong field count skips that cell only."""
        write_record("classical", "1x")
        write_record("classical", "10x", text=f"CSV_OUTPUT:\n{RECORD_HEADER}\n{SHORT_DATA_LINE}\n")
        write_record("hybrid", "1x")
        write_record("hybrid", "10x")
        analyzer = ResultsAnalyzer(results_dir)

        with caplog.at_level(logging.WARNING):
            results = analyzer.load()

        assert "10x" not in results["classical"]
        assert set(results["hybrid"]) == {"1x", "10x"}
        assert "1x" in results["classical"]
        assert "Skipping malformed record" in caplog.text
        assert [f.level for f in analyzer.findings(results)] == ["1x"]

    def test_empty_directory(self, results_dir):
        """Test no records gives empty cells and no exception."""
        analyzer = ResultsAnalyzer(results_dir)
        results = analyzer.load()
        assert results == {"classical": {}, "hybrid": {}}
        assert analyzer.findings(results) == []

    def test_custom_modes_and_levels(self, results_dir, write_record):
        """Test configured modes and levels drive the lookup."""
        write_record("pqc", "5x")
        analyzer = ResultsAnalyzer(results_dir, modes=["pqc"], levels=["5x"])
        assert list(analyzer.load()["pqc"]) == ["5x"]


class TestChart:
    """Test the ASCII p99 chart."""

    def test_bars_scale_to_largest_p99(self, stats_factory):
        """Test bar length is proportional to p99 / max p99."""
        results = {
            "classical": {"1x": stats_factory(p99=5.0)},
            "hybrid": {"1x": stats_factory(p99=10.0)},
        }
        chart = ResultsAnalyzer("unused", chart_width=50).ascii_chart(results)
        bars = {line.split()[0]: line.split("|")[1].split(" ")[0] for line in chart.splitlines() if "|" in line}
        assert bars["hybrid"] == "#" * 50
        assert bars["classical"] == "#" * 25

    def test_minimum_bar_length(self, stats_factory):
        """Test a tiny p99 still draws one character."""
        results = {
            "classical": {"1x": stats_factory(p99=0.001)},
            "hybrid": {"1x": stats_factory(p99=1000.0)},
        }
        chart = ResultsAnalyzer("unused").ascii_chart(results)
        classical_line = next(line for line in chart.splitlines() if line.strip().startswith("classical"))
        assert "|# (" in classical_line

    def test_levels_without_data_have_no_bars(self, stats_factory):
        """Test only present cells are drawn."""
        chart = ResultsAnalyzer("unused").ascii_chart({"classical": {"10x": stats_factory()}, "hybrid": {}})
        assert chart.count("|") == 1
        assert "Load: 1x" in chart


class TestFindings:
    """Test comparative findings."""

    def test_percent_change(self):
        """Test the percentage formula."""
        assert percent_change(10.0, 12.5) == pytest.approx(25.0)
        assert percent_change(10.0, 8.0) == pytest.approx(-20.0)

    def test_zero_baseline(self):
        """Test a zero baseline yields no percentage."""
        assert percent_change(0.0, 5.0) is None

    def test_level_missing_one_side_is_omitted(self, stats_factory):
        """Test levels need both baseline and comparison data."""
        results = {
            "classical": {"1x": stats_factory(), "10x": stats_factory()},
            "hybrid": {"10x": stats_factory(), "100x": stats_factory()},
        }
        assert [f.level for f in ResultsAnalyzer("unused").findings(results)] == ["10x"]

    def test_formatting(self, stats_factory):
        """Test signs and n/a in the findings text."""
        results = {
            "classical": {"1x": stats_factory(mean=2.0, p99=4.0, throughput=0.0)},
            "hybrid": {"1x": stats_factory(mean=2.2, p99=3.0, throughput=10.0)},
        }
        analyzer = ResultsAnalyzer("unused")
        text = analyzer.format_findings(analyzer.findings(results))
        assert "At 1x load:" in text
        assert "+10.0% vs classical" in text
        assert "-25.0% vs classical" in text
        assert "n/a vs classical" in text


class TestRun:
    """Test the full analysis."""

    def test_run_writes_summary(self, results_dir, write_record):
        """Test run() writes the summary file and returns the report."""
        write_record("classical", "1x")
        write_record("hybrid", "100x")
        analyzer = ResultsAnalyzer(results_dir)

        report = analyzer.run()

        lines = analyzer.summary_path.read_text().splitlines()
        assert lines[0] == SUMMARY_HEADER
        assert [line.split(",")[:2] for line in lines[1:]] == [["classical", "1x"], ["hybrid", "100x"]]
        assert "LATENCY COMPARISON TABLE" in report
        assert "ASCII CHART" in report
        assert "RESEARCH FINDINGS" in report

    def test_unwritable_summary_is_fatal(self, tmp_path):
        """Test failing to write the summary raises."""
        blocker = tmp_path / "results"
        blocker.write_text("not a directory")
        with pytest.raises(BenchmarkExecutionError):
            ResultsAnalyzer(blocker).run()


class TestDegradedRecords:
    """Test records measured with fallback key-exchange groups."""

    def test_degraded_record_flagged(self, results_dir, write_record, stats_factory, caplog):
        """Test a degraded hybrid record is warned about in the log and the findings."""
        write_record("classical", "1x")
        write_record("hybrid", "1x", text=(
            "Mode: hybrid\nGroups: x25519\nRequested groups: X25519MLKEM768,x25519 (degraded)\n"
            f"CSV_OUTPUT:\n{RECORD_HEADER}\n1,1,1,0,1.000,1.000,1.000,1.000,1.000,1.000,10.00\n"
        ))
        analyzer = ResultsAnalyzer(results_dir)

        with caplog.at_level(logging.WARNING):
            results = analyzer.load()

        assert "fallback key-exchange groups" in caplog.text
        findings = analyzer.findings(results)
        assert findings[0].degraded is True
        assert "WARNING: a record at this load used fallback" in analyzer.format_findings(findings)

    def test_run_with_plot(self, results_dir, write_record):
        """Test run() also writes the chart when asked."""
        write_record("classical", "1x")
        chart = results_dir / "chart.png"
        ResultsAnalyzer(results_dir).run(chart)
        assert chart.exists()
