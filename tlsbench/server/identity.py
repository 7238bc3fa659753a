"""Server certificate and private key used by the echo peer."""
import datetime
import logging
import os
import ssl
import tempfile
from pathlib import Path
from typing import BinaryIO, Optional, Union

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from tlsbench.benchmark.exceptions import ConfigError


logger = logging.getLogger(__name__)


class ServerIdentity:
    """PEM certificate chain plus private key presented by the server."""

    def __init__(self, cert_pem: bytes, key_pem: bytes, password: Optional[bytes] = None,
                 source: str = "memory"):
        self.cert_pem = cert_pem
        self.key_pem = key_pem
        self.password = password
        self.source = source

    @property
    def is_ephemeral(self) -> bool:
        return self.source == "ephemeral"

    @classmethod
    def from_streams(cls, cert_stream: BinaryIO, key_stream: BinaryIO,
                     password: Optional[bytes] = None, source: str = "stream") -> "ServerIdentity":
        """
        Build an identity from already opened binary streams.

        Args:
            cert_stream: Stream holding the PEM certificate chain.
            key_stream: Stream holding the PEM private key.
            password: Key password, if the key is encrypted.
            source: Label used in log messages.

        Raises:
            ConfigError: If either document cannot be parsed.
        """
        cert_pem = cert_stream.read()
        key_pem = key_stream.read()
        try:
            x509.load_pem_x509_certificate(cert_pem)
            serialization.load_pem_private_key(key_pem, password=password)
        except (ValueError, TypeError) as e:
            raise ConfigError(f"Invalid server identity from {source}: {e}") from e
        return cls(cert_pem, key_pem, password=password, source=source)

    @classmethod
    def from_files(cls, cert_file: Union[str, Path], key_file: Union[str, Path],
                   password: Optional[bytes] = None) -> "ServerIdentity":
        with open(cert_file, "rb") as cert_stream, open(key_file, "rb") as key_stream:
            return cls.from_streams(cert_stream, key_stream, password=password, source=str(cert_file))

    @classmethod
    def ephemeral(cls, common_name: str = "localhost") -> "ServerIdentity":
        """Generate a self-signed identity valid for one day."""
        key = ec.generate_private_key(ec.SECP256R1())
        name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
        now = datetime.datetime.now(datetime.timezone.utc)
        cert = (
            x509.CertificateBuilder()
            .subject_name(name)
            .issuer_name(name)
            .public_key(key.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(now - datetime.timedelta(hours=1))
            .not_valid_after(now + datetime.timedelta(days=1))
            .add_extension(x509.SubjectAlternativeName([x509.DNSName(common_name)]), critical=False)
            .sign(key, hashes.SHA256())
        )
        cert_pem = cert.public_bytes(serialization.Encoding.PEM)
        key_pem = key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
        return cls(cert_pem, key_pem, source="ephemeral")

    @classmethod
    def load_or_ephemeral(cls, cert_file: Union[str, Path], key_file: Union[str, Path],
                          password: Optional[bytes] = None,
                          log: Optional[logging.Logger] = None) -> "ServerIdentity":
        """Load the configured identity, or fall back to an ephemeral one when the files are absent."""
        log = log or logger
        if Path(cert_file).exists() and Path(key_file).exists():
            identity = cls.from_files(cert_file, key_file, password=password)
            log.info(f"Loaded server identity from {cert_file}")
            return identity

        log.warning(f"{cert_file} / {key_file} not found; using an ephemeral self-signed identity")
        return cls.ephemeral()

    def load_into(self, ctx: ssl.SSLContext) -> None:
        """Install certificate and key into an SSL context."""
        with tempfile.TemporaryDirectory() as tmp:
            cert_path = os.path.join(tmp, "cert.pem")
            key_path = os.path.join(tmp, "key.pem")
            with open(cert_path, "wb") as f:
                f.write(self.cert_pem)
            with open(key_path, "wb") as f:
                f.write(self.key_pem)
            try:
                ctx.load_cert_chain(cert_path, key_path, password=self.password)
            except ssl.SSLError as e:
                raise ConfigError(f"Server identity from {self.source} rejected: {e}") from e
