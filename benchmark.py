# Convenience entry point, equivalent to the tlsbench-client console script
# Usage: python benchmark.py classical|hybrid|pqc [concurrency] [runs] [port]

import sys
from tlsbench.cli import client_main


if __name__ == "__main__":
    sys.exit(client_main())
