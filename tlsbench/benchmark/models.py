"""Data models for the benchmarking system."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class ProbeOutcome(Enum):
    """Classification of a single probe attempt."""
    SUCCESS = "success"
    TIMEOUT = "timeout"
    HANDSHAKE_FAILURE = "handshake_failure"
    TRANSPORT_ERROR = "transport_error"


class RunStatus(Enum):
    """Whether every probe of a run was accounted for."""
    COMPLETE = "complete"
    PARTIAL = "partial"


@dataclass(frozen=True)
class ProbeTarget:
    """Where and how a probe connects."""
    host: str
    port: int
    groups: Tuple[str, ...]
    server_name: Optional[str] = None
    protocol_version: str = "TLSv1.3"
    timeout: Optional[float] = None

    @property
    def sni(self) -> str:
        return self.server_name or self.host


@dataclass(frozen=True)
class ConnectionResult:
    """Outcome of one handshake probe."""
    outcome: ProbeOutcome
    latency_ms: Optional[float] = None
    protocol: Optional[str] = None
    cipher: Optional[str] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.outcome is ProbeOutcome.SUCCESS


@dataclass(frozen=True)
class LatencySummary:
    """Order statistics over a latency sample set, in milliseconds."""
    mean: float
    median: float
    p90: float
    p95: float
    p99: float
    min: float
    max: float


@dataclass(frozen=True)
class RunStatistics:
    """Summary of one benchmark run at a given concurrency."""
    concurrency: int
    runs_per_worker: int
    success: int
    fail: int
    mean: float
    median: float
    p90: float
    p95: float
    p99: float
    max: float
    throughput: float
    # None for statistics parsed from a record, which carries neither value
    min: Optional[float] = None
    elapsed_seconds: Optional[float] = None
    status: RunStatus = RunStatus.COMPLETE
    abandoned: int = 0
    degraded: bool = False

    @property
    def total_probes(self) -> int:
        return self.concurrency * self.runs_per_worker

    @property
    def is_partial(self) -> bool:
        return self.status is RunStatus.PARTIAL
