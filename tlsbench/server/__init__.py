"""TLS echo peer used as the benchmark target."""
from .identity import ServerIdentity
from .echo_server import EchoServer, wait_until_listening

__all__ = [
    'ServerIdentity',
    'EchoServer',
    'wait_until_listening',
]
