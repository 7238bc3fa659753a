"""Main entry point for the TLS echo server used as the benchmark peer."""
# Usage: python main.py classical|hybrid|pqc [port] [--cert server.crt --key server.key]

import sys
from tlsbench.cli import server_main


if __name__ == "__main__":
    sys.exit(server_main())
