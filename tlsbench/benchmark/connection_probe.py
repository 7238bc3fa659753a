"""Handles individual handshake probes and their timing."""
import logging
import re
import socket
import ssl
import time
from typing import Optional

from tlsbench.const import PROBE_TOKEN, MAX_LINE_BYTES
from .models import ConnectionResult, ProbeOutcome, ProbeTarget
from .exceptions import ProbeError, ProbeTimeout, HandshakeFailure, TransportError
from .tls_context import TlsContextFactory


# Configure logging
logger = logging.getLogger(__name__)

_MISSING_EXTENSION = re.compile(r"MISSING_\w*EXTENSION")


def is_missing_extension(error: ssl.SSLError) -> bool:
    """Whether OpenSSL reported a missing required extension."""
    text = f"{getattr(error, 'reason', None) or ''} {error}".upper().replace(" ", "_")
    return bool(_MISSING_EXTENSION.search(text))


class ConnectionProbe:
    """Performs one TLS handshake plus a one-line request/response."""

    def __init__(self, target: ProbeTarget, context_factory: Optional[TlsContextFactory] = None,
                 log: Optional[logging.Logger] = None):
        self.target = target
        self.logger = log or logger
        factory = context_factory or TlsContextFactory(target.protocol_version, self.logger)
        self.context, self.groups = factory.client_context(target.groups)

    @property
    def degraded(self) -> bool:
        """Whether fewer key-exchange groups were applied than the target asked for."""
        return tuple(self.groups) != tuple(self.target.groups)

    def probe(self, deadline: Optional[float] = None) -> ConnectionResult:
        """
        Run one probe, classifying failures instead of raising.

        Args:
            deadline: time.monotonic() value bounding the whole probe, on top
                of the target's own timeout.

        Returns:
            ConnectionResult with the handshake latency on success, or the
            failure outcome and message.
        """
        try:
            return self.handshake(deadline)
        except HandshakeFailure as e:
            if e.missing_extension:
                self.logger.warning(f"Handshake rejected, peer reports a missing required extension: {e}")
            else:
                self.logger.warning(f"Handshake failed: {e}")
            return ConnectionResult(outcome=e.outcome, error=str(e))
        except ProbeError as e:
            self.logger.warning(f"Probe failed ({e.outcome.value}): {e}")
            return ConnectionResult(outcome=e.outcome, error=str(e))

    def handshake(self, deadline: Optional[float] = None) -> ConnectionResult:
        """
        Run one probe.

        Only do_handshake() is timed: TCP connect happens before the clock
        starts and the request/response exchange after it stops.

        Args:
            deadline: As for probe().

        Returns:
            Successful ConnectionResult with latency in milliseconds.

        Raises:
            ProbeTimeout: If the per-probe bound or the deadline is exceeded.
            HandshakeFailure: If TLS negotiation fails.
            TransportError: On connection-level I/O failure.
        """
        target = self.target
        deadline = self._deadline(deadline)

        try:
            sock = socket.create_connection((target.host, target.port), timeout=self._remaining(deadline))
        except socket.timeout as e:
            raise ProbeTimeout(f"Connect to {target.host}:{target.port} timed out") from e
        except OSError as e:
            raise TransportError(f"Connect to {target.host}:{target.port} failed: {e}") from e

        with sock:
            ssock = self.context.wrap_socket(sock, server_hostname=target.sni, do_handshake_on_connect=False)
            with ssock:
                ssock.settimeout(self._remaining(deadline))
                start = time.perf_counter()
                try:
                    ssock.do_handshake()
                except socket.timeout as e:
                    raise ProbeTimeout(f"Handshake with {target.host}:{target.port} timed out") from e
                except (ssl.SSLEOFError, ssl.SSLSyscallError) as e:
                    raise TransportError(f"Connection lost during handshake: {e}") from e
                except ssl.SSLError as e:
                    raise HandshakeFailure(str(e), missing_extension=is_missing_extension(e)) from e
                except OSError as e:
                    raise TransportError(f"Handshake I/O failed: {e}") from e
                end = time.perf_counter()

                latency_ms = (end - start) * 1000.0
                protocol = ssock.version()
                cipher_info = ssock.cipher()
                cipher = cipher_info[0] if cipher_info else None
                self.logger.debug(f"Handshake {latency_ms:.3f} ms, protocol={protocol}, cipher={cipher}")

                self._exchange(ssock, deadline)

        return ConnectionResult(
            outcome=ProbeOutcome.SUCCESS,
            latency_ms=latency_ms,
            protocol=protocol,
            cipher=cipher,
        )

    def _exchange(self, ssock: ssl.SSLSocket, deadline: Optional[float]) -> bytes:
        """Send the probe token and read exactly one response line."""
        try:
            ssock.settimeout(self._remaining(deadline))
            ssock.sendall(PROBE_TOKEN)
            with ssock.makefile("rb") as reader:
                line = reader.readline(MAX_LINE_BYTES)
        except socket.timeout as e:
            raise ProbeTimeout("Response not received in time") from e
        except OSError as e:
            raise TransportError(f"Application exchange failed: {e}") from e

        if not line:
            raise TransportError("Connection closed before a response line was received")
        return line

    def _deadline(self, run_deadline: Optional[float]) -> Optional[float]:
        """Earlier of the per-probe bound and the caller's deadline."""
        own = None if self.target.timeout is None else time.monotonic() + self.target.timeout
        if run_deadline is None:
            return own
        if own is None:
            return run_deadline
        return min(own, run_deadline)

    @staticmethod
    def _remaining(deadline: Optional[float]) -> Optional[float]:
        if deadline is None:
            return None
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise ProbeTimeout("Probe time bound exceeded")
        return remaining
