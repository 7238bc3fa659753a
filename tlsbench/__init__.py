"""Hybrid TLS handshake latency benchmark."""

__version__ = "0.1.0"
