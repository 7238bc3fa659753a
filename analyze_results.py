#!/usr/bin/env python3
"""
Compare existing run records without executing new handshakes.
Reads results/raw/{mode}_{level}.log and writes results/tail_latency_summary.csv.
"""
import sys
from tlsbench.cli import analyze_main


if __name__ == "__main__":
    sys.exit(analyze_main())
