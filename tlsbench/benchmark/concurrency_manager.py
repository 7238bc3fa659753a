"""Manages concurrent handshake probes and aggregates their results."""
import logging
import queue
import threading
import time
import concurrent.futures
from typing import Callable, List, Optional, Protocol, Tuple

from .models import ConnectionResult, ProbeOutcome, RunStatistics, RunStatus
from .constants import BenchmarkConstants
from .exceptions import BenchmarkExecutionError, ConfigError
from .latency_analyzer import LatencyAnalyzer


# Configure logging
logger = logging.getLogger(__name__)


class Probe(Protocol):
    def probe(self, deadline: Optional[float] = None) -> ConnectionResult: ...


def groups_for_mode(mode: str) -> Tuple[str, ...]:
    """Key-exchange groups for a benchmark mode."""
    try:
        return BenchmarkConstants.MODE_GROUPS[mode.lower()]
    except KeyError:
        raise ConfigError(
            f"Unknown mode {mode!r}; expected one of {', '.join(BenchmarkConstants.MODE_GROUPS)}"
        ) from None


class BenchmarkCoordinator:
    """Runs concurrency x runs_per_worker probes on a fixed worker pool."""

    def __init__(self, probe_factory: Callable[[str], Probe],
                 max_wait_seconds: Optional[float] = 300.0,
                 latency_analyzer: Optional[LatencyAnalyzer] = None,
                 log: Optional[logging.Logger] = None):
        """
        Args:
            probe_factory: Builds the probe used for a mode. The probe is
                shared by all workers and must be safe to call concurrently.
            max_wait_seconds: Bound on the wait for all workers; None waits
                indefinitely.
            latency_analyzer: Statistics backend.
            log: Logger for this run.
        """
        self.probe_factory = probe_factory
        self.max_wait_seconds = max_wait_seconds
        self.latency_analyzer = latency_analyzer or LatencyAnalyzer()
        self.logger = log or logger

    def run(self, mode: str, concurrency: int, runs_per_worker: int) -> RunStatistics:
        """
        Run one benchmark.

        Each worker performs its probes strictly sequentially and publishes
        every ConnectionResult on a queue. When the wait ends the queue is
        drained once and folded into the statistics. If the wait bound
        expires first, workers are told to stop after their current probe
        and the run is reported as PARTIAL over what has completed. Every
        probe receives the run deadline, so a probe still in flight ends by
        then and cannot keep the process alive.

        Args:
            mode: Benchmark mode, used to build the probe.
            concurrency: Number of workers.
            runs_per_worker: Probes per worker.

        Returns:
            RunStatistics for the run.

        Raises:
            ConfigError: If concurrency or runs_per_worker is not positive.
            BenchmarkExecutionError: If the worker pool cannot be started.
        """
        if concurrency < 1:
            raise ConfigError(f"concurrency must be a positive integer, got {concurrency}")
        if runs_per_worker < 1:
            raise ConfigError(f"runs_per_worker must be a positive integer, got {runs_per_worker}")

        probe = self.probe_factory(mode)
        results: "queue.Queue[ConnectionResult]" = queue.Queue()
        stop = threading.Event()
        total = concurrency * runs_per_worker
        self.logger.info(f"Running {mode}: {concurrency} workers x {runs_per_worker} probes")

        try:
            executor = concurrent.futures.ThreadPoolExecutor(
                max_workers=concurrency, thread_name_prefix=f"probe-{mode}"
            )
        except (ValueError, RuntimeError) as e:
            raise BenchmarkExecutionError(f"Cannot create worker pool of {concurrency}: {e}") from e

        start = time.perf_counter()
        deadline = None if self.max_wait_seconds is None else time.monotonic() + self.max_wait_seconds
        try:
            futures = [
                executor.submit(self._worker, probe, runs_per_worker, results, stop, deadline)
                for _ in range(concurrency)
            ]
        except RuntimeError as e:
            stop.set()
            executor.shutdown(wait=False, cancel_futures=True)
            raise BenchmarkExecutionError(f"Cannot start worker pool of {concurrency}: {e}") from e

        done, not_done = concurrent.futures.wait(futures, timeout=self.max_wait_seconds)
        elapsed = time.perf_counter() - start

        if not_done:
            stop.set()
            self.logger.warning(
                f"Wait bound of {self.max_wait_seconds}s expired with {len(not_done)} of "
                f"{concurrency} workers still running; reporting partial results"
            )
            executor.shutdown(wait=False, cancel_futures=True)
        else:
            executor.shutdown(wait=True)

        for future in done:
            if future.exception() is not None:
                self.logger.error(f"Worker terminated unexpectedly: {future.exception()}")

        samples, success, fail = self._merge(results)
        abandoned = total - success - fail
        status = RunStatus.PARTIAL if abandoned > 0 else RunStatus.COMPLETE
        return self._build_statistics(concurrency, runs_per_worker, samples, success, fail,
                                      elapsed, status, abandoned)

    def _worker(self, probe: Probe, runs: int, results: "queue.Queue[ConnectionResult]",
                stop: threading.Event, deadline: Optional[float] = None) -> int:
        completed = 0
        for _ in range(runs):
            if stop.is_set():
                break
            try:
                result = probe.probe(deadline)
            except Exception as e:
                self.logger.error(f"Unexpected error in probe: {e}", exc_info=True)
                result = ConnectionResult(outcome=ProbeOutcome.TRANSPORT_ERROR, error=repr(e))
            results.put(result)
            completed += 1
        return completed

    @staticmethod
    def _merge(results: "queue.Queue[ConnectionResult]") -> Tuple[List[float], int, int]:
        """Fold every queued result exactly once."""
        samples: List[float] = []
        success = 0
        fail = 0
        while True:
            try:
                result = results.get_nowait()
            except queue.Empty:
                break
            if result.succeeded and result.latency_ms is not None:
                samples.append(result.latency_ms)
                success += 1
            else:
                fail += 1
        return samples, success, fail

    def _build_statistics(self, concurrency: int, runs_per_worker: int, samples: List[float],
                          success: int, fail: int, elapsed: float, status: RunStatus,
                          abandoned: int) -> RunStatistics:
        if not samples:
            self.logger.warning("No successful handshakes; latency statistics unavailable")
            return RunStatistics(
                concurrency=concurrency, runs_per_worker=runs_per_worker,
                success=success, fail=fail,
                mean=0.0, median=0.0, p90=0.0, p95=0.0, p99=0.0, max=0.0, min=0.0,
                throughput=0.0, elapsed_seconds=elapsed, status=status, abandoned=abandoned,
            )

        summary = self.latency_analyzer.summarize(samples)
        throughput = success / elapsed if elapsed > 0 else 0.0
        return RunStatistics(
            concurrency=concurrency, runs_per_worker=runs_per_worker,
            success=success, fail=fail,
            mean=summary.mean, median=summary.median, p90=summary.p90, p95=summary.p95,
            p99=summary.p99, max=summary.max, min=summary.min,
            throughput=throughput, elapsed_seconds=elapsed, status=status, abandoned=abandoned,
        )
