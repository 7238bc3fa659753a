"""Constants for the hybrid TLS handshake benchmark."""

# Default configuration values
DEFAULT_HOST = "localhost"
DEFAULT_PORT = 8443
DEFAULT_PROTOCOL_VERSION = "TLSv1.3"
DEFAULT_MAX_WAIT_SECONDS = 300.0
DEFAULT_RESULTS_DIR = "results"
DEFAULT_CERT_FILE = "server.crt"
DEFAULT_KEY_FILE = "server.key"
DEFAULT_CHART_WIDTH = 50

# Logging configuration
DEFAULT_LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Library log levels
LIBRARY_LOG_LEVELS = {
    "matplotlib": "WARNING",
    "PIL": "WARNING",
}

# File and directory names
CONFIG_FILE_NAME = "config.json"
RAW_DIR_NAME = "raw"
RECORD_SUFFIX = ".log"
SUMMARY_FILE_NAME = "tail_latency_summary.csv"
CHART_FILE_NAME = "tail_latency_chart.png"

# Application exchange
PROBE_TOKEN = b"hello\n"
ECHO_PREFIX = b"OK: "
MAX_LINE_BYTES = 4096

APP_NAME = "hybrid-tls-bench"
APP_VERSION = "0.1.0"
