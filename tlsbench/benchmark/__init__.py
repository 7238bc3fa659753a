"""Benchmark package initialization."""
from .models import ProbeOutcome, RunStatus, ProbeTarget, ConnectionResult, LatencySummary, RunStatistics
from .constants import BenchmarkConstants
from .exceptions import (
    ProbeError, ProbeTimeout, HandshakeFailure, TransportError, ParseError, MissingData,
    NoDataError, ConfigError, BenchmarkExecutionError
)
from .tls_context import TlsContextFactory
from .connection_probe import ConnectionProbe
from .latency_analyzer import LatencyAnalyzer
from .concurrency_manager import BenchmarkCoordinator, groups_for_mode
from .result_exporter import ResultExporter
from .results_analyzer import ResultsAnalyzer, Finding
from .runner import BenchmarkRunner

__all__ = [
    'ProbeOutcome',
    'RunStatus',
    'ProbeTarget',
    'ConnectionResult',
    'LatencySummary',
    'RunStatistics',
    'BenchmarkConstants',
    'ProbeError',
    'ProbeTimeout',
    'HandshakeFailure',
    'TransportError',
    'ParseError',
    'MissingData',
    'NoDataError',
    'ConfigError',
    'BenchmarkExecutionError',
    'TlsContextFactory',
    'ConnectionProbe',
    'LatencyAnalyzer',
    'BenchmarkCoordinator',
    'groups_for_mode',
    'ResultExporter',
    'ResultsAnalyzer',
    'Finding',
    'BenchmarkRunner',
]
