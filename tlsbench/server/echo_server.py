"""TLS echo peer answering one line per connection."""
import logging
import socket
import socketserver
import ssl
import threading
import time
from typing import Optional, Sequence, Tuple

from tlsbench.const import ECHO_PREFIX, MAX_LINE_BYTES
from tlsbench.benchmark.tls_context import TlsContextFactory
from .identity import ServerIdentity


logger = logging.getLogger(__name__)


class _EchoHandler(socketserver.BaseRequestHandler):
    """Completes the handshake, reads one line and replies "OK: <line>"."""

    def handle(self) -> None:
        server: "_ThreadingTlsServer" = self.server  # type: ignore[assignment]
        log = server.log
        try:
            with server.ssl_context.wrap_socket(self.request, server_side=True,
                                                do_handshake_on_connect=False) as ssock:
                ssock.settimeout(server.connection_timeout)
                start = time.perf_counter()
                ssock.do_handshake()
                elapsed_ms = (time.perf_counter() - start) * 1000.0
                cipher = ssock.cipher()
                log.debug(
                    f"Handshake time (ms): {elapsed_ms:.3f}, protocol={ssock.version()}, "
                    f"cipher={cipher[0] if cipher else None}"
                )
                with ssock.makefile("rb") as reader:
                    line = reader.readline(MAX_LINE_BYTES)
                ssock.sendall(ECHO_PREFIX + line.rstrip(b"\r\n") + b"\n")
        except (ssl.SSLEOFError, ssl.SSLZeroReturnError) as e:
            log.debug(f"Peer {self.client_address[0]}:{self.client_address[1]} closed during handshake: {e}")
        except ssl.SSLError as e:
            log.warning(f"Handshake with {self.client_address[0]}:{self.client_address[1]} failed: {e}")
        except OSError as e:
            log.debug(f"Connection from {self.client_address[0]}:{self.client_address[1]} dropped: {e}")


class _ThreadingTlsServer(socketserver.ThreadingMixIn, socketserver.TCPServer):
    daemon_threads = True
    allow_reuse_address = True
    request_queue_size = 128

    def __init__(self, address: Tuple[str, int], ssl_context: ssl.SSLContext,
                 connection_timeout: Optional[float], log: logging.Logger):
        self.ssl_context = ssl_context
        self.connection_timeout = connection_timeout
        self.log = log
        super().__init__(address, _EchoHandler)


class EchoServer:
    """TLS server pinned to one protocol version and key-exchange group list."""

    def __init__(self, groups: Sequence[str], identity: ServerIdentity, host: str = "localhost",
                 port: int = 0, protocol_version: str = "TLSv1.3",
                 connection_timeout: Optional[float] = 30.0,
                 log: Optional[logging.Logger] = None):
        self.logger = log or logger
        factory = TlsContextFactory(protocol_version, self.logger)
        self.ssl_context = factory.server_context(identity, groups)
        self.groups = tuple(groups)
        self.host = host
        self.requested_port = port
        self.connection_timeout = connection_timeout
        self._server: Optional[_ThreadingTlsServer] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        """Bound port; resolves port 0 once the server is started."""
        if self._server is None:
            return self.requested_port
        return self._server.server_address[1]

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _bind(self) -> _ThreadingTlsServer:
        if self._server is None:
            self._server = _ThreadingTlsServer((self.host, self.requested_port), self.ssl_context,
                                               self.connection_timeout, self.logger)
        return self._server

    def start(self) -> "EchoServer":
        """Start accepting connections on a background thread."""
        server = self._bind()
        self._thread = threading.Thread(target=server.serve_forever, name=f"echo-{self.port}", daemon=True)
        self._thread.start()
        self.logger.info(f"Server listening on {self.host}:{self.port} (groups {', '.join(self.groups)})")
        return self

    def serve_forever(self) -> None:
        """Serve on the calling thread until stop() is called or the process is interrupted."""
        server = self._bind()
        self.logger.info(f"Server listening on {self.host}:{self.port} (groups {', '.join(self.groups)})")
        try:
            server.serve_forever()
        finally:
            server.server_close()

    def stop(self) -> None:
        if self._server is None:
            return
        if self.is_running:
            self._server.shutdown()
        self._server.server_close()
        if self._thread is not None:
            self._thread.join(timeout=5)
        self._server = None
        self._thread = None
        self.logger.info("Server stopped")

    def __enter__(self) -> "EchoServer":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()


def wait_until_listening(host: str, port: int, timeout: float = 5.0) -> bool:
    """Poll until a TCP connect succeeds or the timeout elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        try:
            with socket.create_connection((host, port), timeout=0.2):
                return True
        except OSError:
            time.sleep(0.05)
    return False
