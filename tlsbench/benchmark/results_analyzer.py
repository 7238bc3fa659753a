"""Cross-run comparison of classical and hybrid handshake latency."""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from tlsbench.const import SUMMARY_FILE_NAME, DEFAULT_CHART_WIDTH
from .models import RunStatistics
from .constants import BenchmarkConstants
from .exceptions import ParseError, MissingData, BenchmarkExecutionError
from .result_exporter import ResultExporter


# Configure logging
logger = logging.getLogger(__name__)

Results = Dict[str, Dict[str, RunStatistics]]


@dataclass(frozen=True)
class Finding:
    """Percentage change of the comparison mode against the baseline at one load level."""
    level: str
    mean_pct: Optional[float]
    p99_pct: Optional[float]
    throughput_pct: Optional[float]
    degraded: bool = False


def percent_change(baseline: float, value: float) -> Optional[float]:
    """(value - baseline) / baseline * 100, or None when the baseline is zero."""
    if baseline == 0:
        return None
    return (value - baseline) / baseline * 100.0


def _fmt_pct(value: Optional[float]) -> str:
    return "n/a" if value is None else f"{value:+.1f}%"


class ResultsAnalyzer:
    """Builds comparison tables, charts and findings from persisted run records."""

    def __init__(self, results_dir: Union[Path, str] = "results",
                 modes: Optional[Sequence[str]] = None,
                 levels: Optional[Sequence[str]] = None,
                 baseline_mode: str = BenchmarkConstants.BASELINE_MODE,
                 comparison_mode: str = BenchmarkConstants.COMPARISON_MODE,
                 chart_width: int = DEFAULT_CHART_WIDTH,
                 log: Optional[logging.Logger] = None):
        self.results_dir = Path(results_dir)
        self.modes = list(modes or BenchmarkConstants.ANALYSIS_MODES)
        self.levels = list(levels or BenchmarkConstants.LOAD_LEVELS)
        self.baseline_mode = baseline_mode
        self.comparison_mode = comparison_mode
        self.chart_width = chart_width
        self.logger = log or logger

    @property
    def summary_path(self) -> Path:
        return self.results_dir / SUMMARY_FILE_NAME

    def load(self) -> Results:
        """
        Parse the run record of every (mode, level) pair.

        Missing and malformed records are logged and left out; they never
        abort the analysis.

        Returns:
            Insertion-ordered mapping mode -> level -> RunStatistics.
        """
        results: Results = {}
        for mode in self.modes:
            results[mode] = {}
            for level in self.levels:
                path = ResultExporter.record_path(self.results_dir, mode, level)
                try:
                    results[mode][level] = ResultExporter.load_record(path)
                    if results[mode][level].degraded:
                        self.logger.warning(f"{path} was measured with fallback key-exchange groups")
                except MissingData as e:
                    self.logger.debug(str(e))
                except ParseError as e:
                    self.logger.warning(f"Skipping malformed record: {e}")
        return results

    def comparison_table(self, results: Results) -> str:
        lines = [
            "=== LATENCY COMPARISON TABLE (ms) ===",
            "",
            f"{'Mode':<12} {'Load':<10} {'Mean':<10} {'Median':<10} {'p90':<10} {'p95':<10} {'p99':<10}",
            "-" * 72,
        ]
        for mode, by_level in results.items():
            for level in self.levels:
                s = by_level.get(level)
                if s is not None:
                    lines.append(
                        f"{mode:<12} {level:<10} {s.mean:<10.3f} {s.median:<10.3f} "
                        f"{s.p90:<10.3f} {s.p95:<10.3f} {s.p99:<10.3f}"
                    )
        return "\n".join(lines) + "\n"

    def ascii_chart(self, results: Results) -> str:
        """p99 per mode at each level, bars scaled to the largest p99 overall."""
        max_p99 = max((s.p99 for by_level in results.values() for s in by_level.values()), default=0.0)
        lines = ["=== p99 LATENCY COMPARISON (ASCII CHART) ===", ""]
        for level in self.levels:
            lines.append(f"Load: {level}")
            for mode, by_level in results.items():
                s = by_level.get(level)
                if s is None:
                    continue
                bar_len = int(s.p99 / max_p99 * self.chart_width) if max_p99 > 0 else 0
                lines.append(f"  {mode:<10} |{'#' * max(1, bar_len)} ({s.p99:.2f} ms)")
            lines.append("")
        return "\n".join(lines)

    def findings(self, results: Results) -> List[Finding]:
        """Overhead of the comparison mode for every level where both modes have data."""
        baseline = results.get(self.baseline_mode, {})
        comparison = results.get(self.comparison_mode, {})
        found = []
        for level in self.levels:
            base = baseline.get(level)
            other = comparison.get(level)
            if base is None or other is None:
                continue
            found.append(Finding(
                level=level,
                mean_pct=percent_change(base.mean, other.mean),
                p99_pct=percent_change(base.p99, other.p99),
                throughput_pct=percent_change(base.throughput, other.throughput),
                degraded=base.degraded or other.degraded,
            ))
        return found

    def format_findings(self, findings: List[Finding]) -> str:
        name = self.comparison_mode.capitalize()
        base = self.baseline_mode
        lines = ["=== RESEARCH FINDINGS ===", ""]
        for f in findings:
            lines.append(f"At {f.level} load:")
            lines.append(f"  - {name} mean latency: {_fmt_pct(f.mean_pct)} vs {base}")
            lines.append(f"  - {name} p99 latency:  {_fmt_pct(f.p99_pct)} vs {base}")
            lines.append(f"  - {name} throughput:   {_fmt_pct(f.throughput_pct)} vs {base}")
            if f.degraded:
                lines.append("  - WARNING: a record at this load used fallback key-exchange groups")
            lines.append("")
        if not findings:
            lines.append(f"No load level has data for both {base} and {self.comparison_mode}.")
            lines.append("")
        else:
            lines.append("KEY INSIGHT: compare p99 overhead growth with mean overhead growth across load;")
            lines.append("faster tail growth means extra capacity is needed to hold tail-latency SLAs.")
            lines.append("")
        return "\n".join(lines)

    def write_summary(self, results: Results) -> Path:
        """
        Write the summary table.

        Raises:
            BenchmarkExecutionError: If the file cannot be written.
        """
        try:
            ResultExporter.save_summary(results, self.levels, self.summary_path)
        except OSError as e:
            raise BenchmarkExecutionError(f"Cannot write summary {self.summary_path}: {e}") from e
        return self.summary_path

    def render_report(self, results: Results) -> str:
        banner = "=" * 43
        parts = [
            banner,
            f"    TAIL LATENCY ANALYSIS: {self.baseline_mode.upper()} vs {self.comparison_mode.upper()}",
            banner,
            "",
            self.comparison_table(results),
            self.ascii_chart(results),
            self.format_findings(self.findings(results)),
        ]
        return "\n".join(parts)

    def run(self, plot_path: Optional[Union[Path, str]] = None) -> str:
        """
        Load all records, write the summary file and return the text report.

        Args:
            plot_path: Where to also write the PNG chart, if anywhere.

        Raises:
            BenchmarkExecutionError: If the summary cannot be written.
        """
        results = self.load()
        present = sum(len(by_level) for by_level in results.values())
        self.logger.info(f"Loaded {present} run records from {self.results_dir}")
        summary_path = self.write_summary(results)

        if plot_path is not None:
            # matplotlib is only imported when a chart is requested
            from .visualization_generator import VisualizationGenerator
            VisualizationGenerator(self.levels).plot_results(results, plot_path)

        return self.render_report(results) + f"\nResults saved to: {summary_path}\n"
