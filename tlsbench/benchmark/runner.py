"""Benchmark runner to orchestrate one measured run and persist its record."""
from dataclasses import replace
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple
import logging

from tlsbench.shared.config import Config
from .models import ProbeTarget, RunStatistics
from .connection_probe import ConnectionProbe
from .tls_context import TlsContextFactory
from .concurrency_manager import BenchmarkCoordinator, Probe, groups_for_mode
from .constants import BenchmarkConstants
from .result_exporter import ResultExporter
from .exceptions import BenchmarkExecutionError


logger = logging.getLogger(__name__)


class BenchmarkRunner:
    """Runs the coordinator for one mode and writes the persisted run record."""

    def __init__(self, config: Config, probe_factory: Optional[Callable[[str], Probe]] = None,
                 context_factory: Optional[TlsContextFactory] = None,
                 log: Optional[logging.Logger] = None):
        self.config = config
        self.context_factory = context_factory
        self.logger = log or logger
        # mode -> key-exchange groups the probe could actually apply
        self.applied_groups: Dict[str, Tuple[str, ...]] = {}
        self.coordinator = BenchmarkCoordinator(
            probe_factory or self.build_probe,
            max_wait_seconds=config.max_wait_seconds,
            log=self.logger,
        )

    def probe_target(self, mode: str) -> ProbeTarget:
        return ProbeTarget(
            host=self.config.host,
            port=self.config.port,
            groups=groups_for_mode(mode),
            server_name=self.config.sni,
            protocol_version=self.config.protocol_version,
            timeout=self.config.probe_timeout,
        )

    def build_probe(self, mode: str) -> ConnectionProbe:
        probe = ConnectionProbe(self.probe_target(mode), context_factory=self.context_factory, log=self.logger)
        self.applied_groups[mode.lower()] = tuple(probe.groups)
        return probe

    def is_degraded(self, mode: str) -> bool:
        requested = self.probe_target(mode).groups
        return self.applied_groups.get(mode.lower(), requested) != requested

    def record_path(self, mode: str, label: str) -> Path:
        return ResultExporter.record_path(self.config.results_dir, mode.lower(), label)

    def preamble(self, mode: str, stats: RunStatistics) -> List[str]:
        target = self.probe_target(mode)
        applied = self.applied_groups.get(mode.lower(), target.groups)
        lines = [
            f"Mode: {mode.lower()}",
            f"Groups: {','.join(applied)}",
        ]
        if applied != target.groups:
            lines.append(f"{BenchmarkConstants.REQUESTED_GROUPS_LABEL} {','.join(target.groups)} (degraded)")
        lines += [
            f"Target: {target.host}:{target.port} (SNI {target.sni})",
            f"Protocol: {target.protocol_version}",
            f"Concurrency: {stats.concurrency}",
            f"Runs per worker: {stats.runs_per_worker}",
            f"Success: {stats.success}  Fail: {stats.fail}",
            f"Status: {stats.status.value}",
        ]
        if stats.elapsed_seconds is not None:
            lines.append(f"Elapsed: {stats.elapsed_seconds:.3f} s")
        if stats.abandoned:
            lines.append(f"Abandoned: {stats.abandoned}")
        if stats.success and stats.min is not None:
            lines.append(f"Min: {stats.min:.3f} ms")
        return lines

    def run(self, mode: str, concurrency: int = 1, runs_per_worker: int = 1,
            label: Optional[str] = None, save: bool = True) -> Tuple[RunStatistics, str]:
        """
        Run the benchmark and render its record.

        Args:
            mode: classical, hybrid or pqc.
            concurrency: Number of workers.
            runs_per_worker: Sequential probes per worker.
            label: Load level naming the record file, defaults to "{concurrency}x".
            save: Whether to write the record under the results directory.

        Returns:
            Tuple of (RunStatistics, record text).
        """
        stats = self.coordinator.run(mode.lower(), concurrency, runs_per_worker)
        if self.is_degraded(mode):
            stats = replace(stats, degraded=True)
            self.logger.warning(
                f"{mode.lower()} run measured with {','.join(self.applied_groups[mode.lower()])} only; "
                f"the record is marked degraded"
            )
        record = ResultExporter.format_record(stats, self.preamble(mode, stats))

        if save:
            path = self.record_path(mode, label or f"{concurrency}x")
            try:
                ResultExporter.save_record(stats, path, self.preamble(mode, stats))
            except OSError as e:
                raise BenchmarkExecutionError(f"Cannot write run record {path}: {e}") from e

        self.logger.info(
            f"{mode.lower()}: {stats.success} ok / {stats.fail} failed, "
            f"p99={stats.p99:.3f} ms, throughput={stats.throughput:.2f}/s"
        )
        return stats, record
