"""Analyzes and computes latency statistics."""
import logging
import math
from typing import Sequence

import numpy as np

from .models import LatencySummary
from .exceptions import NoDataError


# Configure logging
logger = logging.getLogger(__name__)


class LatencyAnalyzer:
    """Analyzes and computes latency statistics."""

    @staticmethod
    def sort_samples(samples: Sequence[float]) -> np.ndarray:
        """Return an ascending, read-only copy of the sample set."""
        ordered = np.sort(np.asarray(samples, dtype=float))
        ordered.setflags(write=False)
        return ordered

    @staticmethod
    def percentile(ordered: Sequence[float], p: float) -> float:
        """
        Percentile of an ascending sample set with linear interpolation.

        rank = p/100 * (n-1); values at floor(rank) and ceil(rank) are
        blended by the fractional part of rank.

        Args:
            ordered: Samples sorted ascending.
            p: Percentile rank between 0 and 100.

        Returns:
            The interpolated value.
        """
        n = len(ordered)
        if n == 0:
            raise NoDataError("percentile of an empty sample set")
        if not 0 <= p <= 100:
            raise ValueError(f"percentile must be within [0, 100], got {p}")

        rank = (p / 100.0) * (n - 1)
        lo = math.floor(rank)
        hi = math.ceil(rank)
        if lo == hi:
            return float(ordered[lo])
        frac = rank - lo
        return float(ordered[lo]) * (1 - frac) + float(ordered[hi]) * frac

    @classmethod
    def summarize(cls, samples: Sequence[float]) -> LatencySummary:
        """
        Compute mean, median, p90, p95, p99, min and max.

        Args:
            samples: Latency measurements in milliseconds, any order.

        Returns:
            LatencySummary dataclass.

        Raises:
            NoDataError: If samples is empty.
        """
        if len(samples) == 0:
            raise NoDataError("no latency samples to summarize")

        ordered = cls.sort_samples(samples)
        return LatencySummary(
            mean=float(np.mean(ordered)),
            median=cls.percentile(ordered, 50),
            p90=cls.percentile(ordered, 90),
            p95=cls.percentile(ordered, 95),
            p99=cls.percentile(ordered, 99),
            min=float(ordered[0]),
            max=float(ordered[-1]),
        )
