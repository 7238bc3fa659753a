"""Handles persisted run records and the cross-run summary table."""
import logging
from dataclasses import replace
from pathlib import Path
from typing import Dict, Iterable, List, Sequence, Union

import pandas as pd

from tlsbench.const import RAW_DIR_NAME, RECORD_SUFFIX
from .models import RunStatistics, RunStatus
from .constants import BenchmarkConstants
from .exceptions import ParseError, MissingData


# Configure logging
logger = logging.getLogger(__name__)

_LAT = BenchmarkConstants.LATENCY_FORMAT
_TPUT = BenchmarkConstants.THROUGHPUT_FORMAT


class ResultExporter:
    """Reads and writes benchmark results."""

    @staticmethod
    def record_path(results_dir: Union[Path, str], mode: str, level: str) -> Path:
        """Location of the run record for one (mode, load level) pair."""
        return Path(results_dir) / RAW_DIR_NAME / f"{mode}_{level}{RECORD_SUFFIX}"

    @staticmethod
    def format_data_line(stats: RunStatistics) -> str:
        fields = [
            str(stats.concurrency), str(stats.runs_per_worker), str(stats.success), str(stats.fail),
            _LAT.format(stats.mean), _LAT.format(stats.median), _LAT.format(stats.p90),
            _LAT.format(stats.p95), _LAT.format(stats.p99), _LAT.format(stats.max),
            _TPUT.format(stats.throughput),
        ]
        return ",".join(fields)

    @classmethod
    def format_record(cls, stats: RunStatistics, preamble: Iterable[str] = ()) -> str:
        """
        Render a run record.

        Args:
            stats: Statistics of the run.
            preamble: Human-readable lines written before the CSV block.

        Returns:
            Record text ending with a newline.
        """
        lines = list(preamble)
        lines.append(BenchmarkConstants.CSV_MARKER)
        lines.append(",".join(BenchmarkConstants.RECORD_FIELDS))
        lines.append(cls.format_data_line(stats))
        return "\n".join(lines) + "\n"

    @classmethod
    def save_record(cls, stats: RunStatistics, output_path: Union[Path, str],
                    preamble: Iterable[str] = ()) -> None:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(cls.format_record(stats, preamble), encoding="utf-8")
        logger.info(f"Run record saved: {output_path}")

    @staticmethod
    def parse_data_line(line: str, source: str = "<record>") -> RunStatistics:
        """
        Parse the comma-separated data line of a run record.

        Raises:
            ParseError: On a wrong field count or a non-numeric field.
        """
        parts = [part.strip() for part in line.split(",")]
        expected = len(BenchmarkConstants.RECORD_FIELDS)
        if len(parts) != expected:
            raise ParseError(f"{source}: expected {expected} fields, found {len(parts)}", source)
        try:
            concurrency, runs, success, fail = (int(p) for p in parts[:4])
            mean, median, p90, p95, p99, max_ms, throughput = (float(p) for p in parts[4:])
        except ValueError as e:
            raise ParseError(f"{source}: non-numeric field ({e})", source) from e

        abandoned = max(concurrency * runs - success - fail, 0)
        return RunStatistics(
            concurrency=concurrency, runs_per_worker=runs, success=success, fail=fail,
            mean=mean, median=median, p90=p90, p95=p95, p99=p99, max=max_ms,
            throughput=throughput,
            status=RunStatus.PARTIAL if abandoned else RunStatus.COMPLETE,
            abandoned=abandoned,
        )

    @classmethod
    def parse_record_text(cls, text: str, source: str = "<record>") -> RunStatistics:
        """
        Locate the CSV marker, skip the header and parse the data line.

        A preamble naming the requested groups marks the run as degraded.
        """
        lines = text.splitlines()
        for index, line in enumerate(lines):
            if line.startswith(BenchmarkConstants.CSV_MARKER):
                if index + 2 >= len(lines) or not lines[index + 2].strip():
                    raise ParseError(f"{source}: no data line after {BenchmarkConstants.CSV_MARKER}", source)
                stats = cls.parse_data_line(lines[index + 2], source)
                if any(p.startswith(BenchmarkConstants.REQUESTED_GROUPS_LABEL) for p in lines[:index]):
                    stats = replace(stats, degraded=True)
                return stats
        raise ParseError(f"{source}: marker {BenchmarkConstants.CSV_MARKER} not found", source)

    @classmethod
    def load_record(cls, input_path: Union[Path, str]) -> RunStatistics:
        """
        Load a persisted run record.

        Raises:
            MissingData: If the file does not exist.
            ParseError: If the file is malformed.
        """
        input_path = Path(input_path)
        if not input_path.exists():
            raise MissingData(f"No run record at {input_path}")
        text = input_path.read_text(encoding="utf-8", errors="replace")
        return cls.parse_record_text(text, str(input_path))

    @staticmethod
    def summary_rows(results: Dict[str, Dict[str, RunStatistics]], levels: Sequence[str]) -> List[Dict[str, str]]:
        rows = []
        for mode, by_level in results.items():
            for level in levels:
                stats = by_level.get(level)
                if stats is None:
                    continue
                rows.append({
                    "mode": mode,
                    "load": level,
                    "concurrency": str(stats.concurrency),
                    "mean_ms": _LAT.format(stats.mean),
                    "median_ms": _LAT.format(stats.median),
                    "p90_ms": _LAT.format(stats.p90),
                    "p95_ms": _LAT.format(stats.p95),
                    "p99_ms": _LAT.format(stats.p99),
                    "max_ms": _LAT.format(stats.max),
                    "throughput": _TPUT.format(stats.throughput),
                })
        return rows

    @classmethod
    def save_summary(cls, results: Dict[str, Dict[str, RunStatistics]], levels: Sequence[str],
                     output_path: Union[Path, str]) -> None:
        """
        Save one summary row per present (mode, level) pair to CSV.

        Args:
            results: mode -> level -> RunStatistics.
            levels: Load levels in report order.
            output_path: Path to save CSV.
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        df = pd.DataFrame(cls.summary_rows(results, levels), columns=BenchmarkConstants.SUMMARY_FIELDS)
        df.to_csv(output_path, index=False)
        logger.info(f"Summary saved: {output_path}")

    @staticmethod
    def load_summary(input_path: Union[Path, str]) -> pd.DataFrame:
        """Load a summary table written by save_summary."""
        df = pd.read_csv(input_path, dtype={"mode": str, "load": str})
        logger.info(f"Summary loaded from CSV: {input_path}")
        return df
