"""Unit tests for the server identity."""

import io
import logging
import ssl

import pytest
from cryptography import x509

from tlsbench.server.identity import ServerIdentity
from tlsbench.benchmark.exceptions import ConfigError
from ..test_const import TEST_SERVER_NAME


class TestServerIdentity:
    """Test loading and generating server credentials."""

    def test_ephemeral_identity(self, server_identity):
        """Test the generated certificate names the host."""
        cert = x509.load_pem_x509_certificate(server_identity.cert_pem)
        san = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName)
        assert san.value.get_values_for_type(x509.DNSName) == [TEST_SERVER_NAME]
        assert server_identity.is_ephemeral

    def test_from_streams(self, server_identity):
        """Test credentials can be read from in-memory streams."""
        identity = ServerIdentity.from_streams(
            io.BytesIO(server_identity.cert_pem), io.BytesIO(server_identity.key_pem)
        )
        assert identity.cert_pem == server_identity.cert_pem
        assert identity.source == "stream"
        assert not identity.is_ephemeral

    def test_invalid_stream(self, server_identity):
        """Test unparsable credentials are a configuration error."""
        with pytest.raises(ConfigError):
            ServerIdentity.from_streams(io.BytesIO(b"not a certificate"), io.BytesIO(server_identity.key_pem))

    def test_load_or_ephemeral_falls_back(self, tmp_path, caplog):
        """Test absent files produce an ephemeral identity and a warning."""
        with caplog.at_level(logging.WARNING):
            identity = ServerIdentity.load_or_ephemeral(tmp_path / "server.crt", tmp_path / "server.key")
        assert identity.is_ephemeral
        assert "ephemeral" in caplog.text

    def test_load_or_ephemeral_reads_files(self, tmp_path, server_identity):
        """Test present files are loaded."""
        cert_file = tmp_path / "server.crt"
        key_file = tmp_path / "server.key"
        cert_file.write_bytes(server_identity.cert_pem)
        key_file.write_bytes(server_identity.key_pem)

        identity = ServerIdentity.load_or_ephemeral(cert_file, key_file)

        assert identity.source == str(cert_file)
        assert identity.key_pem == server_identity.key_pem

    def test_load_into_server_context(self, server_identity):
        """Test the identity installs into a real server context."""
        ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
        server_identity.load_into(ctx)

    def test_mismatched_key_rejected(self, server_identity):
        """Test a certificate with another key fails to install."""
        other = ServerIdentity.ephemeral()
        mismatched = ServerIdentity(server_identity.cert_pem, other.key_pem)
        with pytest.raises(ConfigError):
            mismatched.load_into(ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER))
