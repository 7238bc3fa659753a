"""Builds TLS contexts pinned to one protocol version and a key-exchange group list."""
import logging
import ssl
from typing import Optional, Sequence, Tuple, TYPE_CHECKING

from .exceptions import ConfigError

if TYPE_CHECKING:
    from tlsbench.server.identity import ServerIdentity


# Configure logging
logger = logging.getLogger(__name__)

PROTOCOL_VERSIONS = {
    "TLSv1.2": ssl.TLSVersion.TLSv1_2,
    "TLSv1.3": ssl.TLSVersion.TLSv1_3,
}


class TlsContextFactory:
    """Creates client and server SSL contexts for handshake probes."""

    def __init__(self, protocol_version: str = "TLSv1.3", log: Optional[logging.Logger] = None):
        if protocol_version not in PROTOCOL_VERSIONS:
            raise ConfigError(
                f"Unsupported protocol version {protocol_version!r}; "
                f"expected one of {', '.join(PROTOCOL_VERSIONS)}"
            )
        self.protocol_version = protocol_version
        self.logger = log or logger

    def client_context(self, groups: Sequence[str]) -> Tuple[ssl.SSLContext, Tuple[str, ...]]:
        """
        Create a client context for benchmarking.

        Peers present self-signed identities, so certificate and hostname
        verification are disabled. SNI is still sent by the caller.

        Args:
            groups: Acceptable key-exchange groups, most preferred first.

        Returns:
            Tuple of (configured client SSLContext, groups actually applied).
            The applied groups can be fewer than requested when the local
            OpenSSL lacks some of them.
        """
        ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
        self._pin_version(ctx)
        applied = self.apply_groups(ctx, groups)
        return ctx, applied

    def server_context(self, identity: "ServerIdentity", groups: Sequence[str]) -> ssl.SSLContext:
        """Create a server context presenting the given identity."""
        ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
        self._pin_version(ctx)
        self.apply_groups(ctx, groups)
        identity.load_into(ctx)
        return ctx

    def _pin_version(self, ctx: ssl.SSLContext) -> None:
        version = PROTOCOL_VERSIONS[self.protocol_version]
        ctx.minimum_version = version
        ctx.maximum_version = version

    def apply_groups(self, ctx: ssl.SSLContext, groups: Sequence[str]) -> Tuple[str, ...]:
        """
        Restrict key exchange to the given groups.

        The whole ordered list is applied when the interpreter exposes
        SSLContext.set_groups. Otherwise only one group can be configured, so
        the first group OpenSSL accepts through set_ecdh_curve wins.

        Args:
            ctx: Context to configure.
            groups: Group identifiers, most preferred first.

        Returns:
            The groups actually applied.

        Raises:
            ConfigError: If none of the groups is supported locally.
        """
        groups = tuple(groups)
        if not groups:
            return ()

        set_groups = getattr(ctx, "set_groups", None)
        if set_groups is not None:
            try:
                set_groups(":".join(groups))
                return groups
            except (ValueError, ssl.SSLError) as e:
                self.logger.warning(f"Group list {':'.join(groups)} rejected ({e}); trying groups one by one")

        for group in groups:
            for candidate in dict.fromkeys((group, group.upper(), group.lower())):
                try:
                    ctx.set_ecdh_curve(candidate)
                except (ValueError, ssl.SSLError):
                    continue
                dropped = [g for g in groups if g != group]
                if dropped:
                    self.logger.warning(
                        f"Key-exchange restricted to {group}; "
                        f"not available with {ssl.OPENSSL_VERSION}: {', '.join(dropped)}"
                    )
                return (group,)

        raise ConfigError(
            f"None of the key-exchange groups {', '.join(groups)} is supported by {ssl.OPENSSL_VERSION}"
        )
