"""Custom exceptions for the benchmarking system."""
from typing import Optional

from .models import ProbeOutcome


class ProbeError(Exception):
    """Base exception for a failed connection probe."""
    outcome = ProbeOutcome.TRANSPORT_ERROR


class ProbeTimeout(ProbeError):
    """Exception raised when a probe exceeds its time bound."""
    outcome = ProbeOutcome.TIMEOUT


class HandshakeFailure(ProbeError):
    """Exception raised when TLS negotiation fails."""
    outcome = ProbeOutcome.HANDSHAKE_FAILURE

    def __init__(self, message: str, missing_extension: bool = False):
        super().__init__(message)
        self.missing_extension = missing_extension


class TransportError(ProbeError):
    """Exception raised on connection-level I/O failure."""
    outcome = ProbeOutcome.TRANSPORT_ERROR


class ParseError(Exception):
    """Exception raised when a persisted run record is malformed."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class MissingData(Exception):
    """Exception raised when a persisted run record does not exist."""
    pass


class NoDataError(ValueError):
    """Exception raised when statistics are requested over an empty sample set."""
    pass


class ConfigError(Exception):
    """Exception raised for invalid benchmark configuration."""
    pass


class BenchmarkExecutionError(Exception):
    """Custom exception for benchmark execution failures."""
    pass
