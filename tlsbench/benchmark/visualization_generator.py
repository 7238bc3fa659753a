"""Generates charts from analyzed benchmark results."""
import logging
from pathlib import Path
from typing import Dict, Sequence, Union

import numpy as np
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from .models import RunStatistics


# Configure logging
logger = logging.getLogger(__name__)


class VisualizationGenerator:
    """Generates visualizations from benchmark results."""

    METRICS = ("mean", "p99")

    def __init__(self, levels: Sequence[str]):
        self.levels = list(levels)

    def plot_results(self, results: Dict[str, Dict[str, RunStatistics]], output_path: Union[Path, str]) -> bool:
        """
        Generate and save a latency comparison chart.

        One panel per metric with grouped bars per load level and mode.

        Args:
            results: mode -> level -> RunStatistics.
            output_path: Path to save plot.

        Returns:
            False when there was nothing to plot.
        """
        levels = [lvl for lvl in self.levels if any(lvl in by_level for by_level in results.values())]
        modes = [mode for mode, by_level in results.items() if by_level]
        if not levels or not modes:
            logger.warning("No data available for plotting. Skipping chart.")
            return False

        fig, axs = plt.subplots(1, len(self.METRICS), figsize=(6 * len(self.METRICS), 5))
        x = np.arange(len(levels))
        width = 0.8 / len(modes)

        for ax, metric in zip(axs, self.METRICS):
            for i, mode in enumerate(modes):
                values = [getattr(results[mode][lvl], metric) if lvl in results[mode] else 0.0 for lvl in levels]
                bars = ax.bar(x + (i - (len(modes) - 1) / 2) * width, values, width, label=mode)
                for bar, val in zip(bars, values):
                    if val > 0:
                        ax.text(bar.get_x() + bar.get_width() / 2, bar.get_height(), f'{val:.1f}',
                                ha='center', va='bottom', fontsize=8)
            ax.set_title(f"{metric.upper()} Handshake Latency")
            ax.set_xticks(x)
            ax.set_xticklabels(levels)
            ax.set_xlabel("Load")
            ax.set_ylabel("Latency (ms)")
            ax.legend()
            ax.grid(True, axis="y", alpha=0.3)

        plt.tight_layout()
        plt.savefig(output_path)
        plt.close(fig)
        logger.info(f"Graph saved: {output_path}")
        return True
