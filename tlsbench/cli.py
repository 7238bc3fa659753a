"""Command-line entry points for the client, the echo server and the analyzer."""
import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from tlsbench.const import APP_NAME, APP_VERSION, CONFIG_FILE_NAME, DEFAULT_PORT, CHART_FILE_NAME
from tlsbench.shared.config import Config
from tlsbench.shared.logging import LoggingManager
from tlsbench.benchmark.constants import BenchmarkConstants
from tlsbench.benchmark.concurrency_manager import groups_for_mode
from tlsbench.benchmark.exceptions import ConfigError, BenchmarkExecutionError
from tlsbench.benchmark.runner import BenchmarkRunner
from tlsbench.benchmark.results_analyzer import ResultsAnalyzer


logger = logging.getLogger(__name__)

MODES = ", ".join(BenchmarkConstants.MODE_GROUPS)


def parse_mode(value: Optional[str]) -> str:
    if not value:
        raise ConfigError(f"mode is required ({MODES})")
    groups_for_mode(value)
    return value.lower()


def parse_positive(name: str, value: Optional[str], default: int = 1) -> int:
    if value is None:
        return default
    try:
        number = int(value)
    except ValueError:
        raise ConfigError(f"{name} must be a positive integer, got {value!r}") from None
    if number < 1:
        raise ConfigError(f"{name} must be a positive integer, got {value!r}")
    return number


def parse_port(value: Optional[str], default: int = DEFAULT_PORT) -> int:
    """Port from the command line; invalid values fall back to the default with a warning."""
    if value is None:
        return default
    try:
        port = int(value)
    except ValueError:
        port = -1
    if not 0 < port < 65536:
        logger.warning(f"Invalid port {value!r}; using default {default}")
        return default
    return port


def _load_config(overrides: Dict[str, Any]) -> Config:
    # Command-line values take precedence over environment and config.json
    try:
        config = Config()
    except ValidationError as e:
        raise ConfigError(f"invalid TLSBENCH_* environment or {CONFIG_FILE_NAME} setting: {e}") from e
    updates = {key: value for key, value in overrides.items() if value is not None}
    return config.model_copy(update=updates) if updates else config


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR")
    parser.add_argument("--version", action="version", version=f"{APP_NAME} {APP_VERSION}")


def build_client_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tlsbench-client",
        description="Measure TLS handshake latency against an echo server.",
    )
    parser.add_argument("mode", nargs="?", help=f"key-exchange mode ({MODES})")
    parser.add_argument("concurrency", nargs="?", help="number of concurrent workers (default 1)")
    parser.add_argument("runs", nargs="?", help="sequential probes per worker (default 1)")
    parser.add_argument("port", nargs="?", help=f"server port (default {DEFAULT_PORT})")
    parser.add_argument("--host", default=None, help="server host")
    parser.add_argument("--server-name", default=None, help="SNI value, defaults to the host")
    parser.add_argument("--label", default=None, help="load level naming the record, default '<concurrency>x'")
    parser.add_argument("--timeout", type=float, default=None, help="per-probe time bound in seconds")
    parser.add_argument("--max-wait", type=float, default=None, help="bound on the whole run in seconds")
    parser.add_argument("--results-dir", type=Path, default=None, help="directory for run records")
    parser.add_argument("--no-record", action="store_true", help="do not write the run record file")
    _add_common_options(parser)
    return parser


def client_main(argv: Optional[List[str]] = None) -> int:
    parser = build_client_parser()
    args = parser.parse_args(argv)
    try:
        mode = parse_mode(args.mode)
        concurrency = parse_positive("concurrency", args.concurrency)
        runs = parse_positive("runs", args.runs)
        if args.timeout is not None and args.timeout <= 0:
            raise ConfigError(f"--timeout must be positive, got {args.timeout}")
        if args.max_wait is not None and args.max_wait <= 0:
            raise ConfigError(f"--max-wait must be positive, got {args.max_wait}")
        config = _load_config({
            "host": args.host,
            "server_name": args.server_name,
            "probe_timeout": args.timeout,
            "max_wait_seconds": args.max_wait,
            "results_dir": args.results_dir,
            "log_level": args.log_level,
        })
        LoggingManager.setup_logging(config.log_level, config)
        config = config.model_copy(update={"port": parse_port(args.port, config.port)})

        runner = BenchmarkRunner(config)
        stats, record = runner.run(mode, concurrency, runs, label=args.label, save=not args.no_record)
    except ConfigError as e:
        parser.print_usage(sys.stderr)
        print(f"error: {e}", file=sys.stderr)
        return 2
    except BenchmarkExecutionError as e:
        print(f"fatal: {e}", file=sys.stderr)
        return 1

    print(record, end="")
    return 0


def build_server_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tlsbench-server",
        description="Run a TLS echo server restricted to one key-exchange mode.",
    )
    parser.add_argument("mode", nargs="?", help=f"key-exchange mode ({MODES})")
    parser.add_argument("port", nargs="?", help=f"listen port (default {DEFAULT_PORT})")
    parser.add_argument("--host", default=None, help="bind address")
    parser.add_argument("--cert", type=Path, default=None, help="PEM certificate chain")
    parser.add_argument("--key", type=Path, default=None, help="PEM private key")
    _add_common_options(parser)
    return parser


def server_main(argv: Optional[List[str]] = None) -> int:
    from tlsbench.server import EchoServer, ServerIdentity

    parser = build_server_parser()
    args = parser.parse_args(argv)
    try:
        mode = parse_mode(args.mode)
        config = _load_config({
            "host": args.host,
            "cert_file": args.cert,
            "key_file": args.key,
            "log_level": args.log_level,
        })
        LoggingManager.setup_logging(config.log_level, config)
        port = parse_port(args.port, config.port)
        identity = ServerIdentity.load_or_ephemeral(config.cert_file, config.key_file)
        server = EchoServer(groups_for_mode(mode), identity, host=config.host, port=port,
                            protocol_version=config.protocol_version)
    except ConfigError as e:
        parser.print_usage(sys.stderr)
        print(f"error: {e}", file=sys.stderr)
        return 2
    except OSError as e:
        print(f"fatal: cannot listen: {e}", file=sys.stderr)
        return 1

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    return 0


def build_analyze_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tlsbench-analyze",
        description="Compare classical and hybrid run records.",
    )
    parser.add_argument("--results-dir", type=Path, default=None, help="directory holding raw/ records")
    parser.add_argument("--plot", action="store_true", help=f"also write {CHART_FILE_NAME}")
    _add_common_options(parser)
    return parser


def analyze_main(argv: Optional[List[str]] = None) -> int:
    parser = build_analyze_parser()
    args = parser.parse_args(argv)
    try:
        config = _load_config({"results_dir": args.results_dir, "log_level": args.log_level})
    except ConfigError as e:
        parser.print_usage(sys.stderr)
        print(f"error: {e}", file=sys.stderr)
        return 2
    LoggingManager.setup_logging(config.log_level, config)

    analyzer = ResultsAnalyzer(config.results_dir, chart_width=config.chart_width)
    plot_path = config.results_dir / CHART_FILE_NAME if args.plot else None
    try:
        report = analyzer.run(plot_path)
    except BenchmarkExecutionError as e:
        print(f"fatal: {e}", file=sys.stderr)
        return 1

    print(report, end="")
    return 0
