"""Constants for the benchmarking system."""
from typing import Dict, List, Tuple


class BenchmarkConstants:
    """Centralized constants for benchmark configuration."""
    CLASSICAL_GROUP = "x25519"
    HYBRID_GROUP = "X25519MLKEM768"
    MODE_GROUPS: Dict[str, Tuple[str, ...]] = {
        "classical": (CLASSICAL_GROUP,),
        "hybrid": (HYBRID_GROUP, CLASSICAL_GROUP),
        "pqc": (HYBRID_GROUP,),
    }
    # Modes and load levels compared by the analyzer, in report order
    ANALYSIS_MODES: List[str] = ["classical", "hybrid"]
    LOAD_LEVELS: List[str] = ["1x", "10x", "100x"]
    BASELINE_MODE = "classical"
    COMPARISON_MODE = "hybrid"

    CSV_MARKER = "CSV_OUTPUT:"
    # Preamble line present only when fewer groups were applied than requested
    REQUESTED_GROUPS_LABEL = "Requested groups:"
    RECORD_FIELDS: List[str] = [
        "concurrency", "runs", "success", "fail", "mean_ms", "median_ms",
        "p90_ms", "p95_ms", "p99_ms", "max_ms", "throughput",
    ]
    SUMMARY_FIELDS: List[str] = [
        "mode", "load", "concurrency", "mean_ms", "median_ms", "p90_ms",
        "p95_ms", "p99_ms", "max_ms", "throughput",
    ]
    LATENCY_FORMAT = "{:.3f}"
    THROUGHPUT_FORMAT = "{:.2f}"
