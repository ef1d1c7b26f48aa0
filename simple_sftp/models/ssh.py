"""SSH-related data models."""

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import asyncssh


@dataclass(frozen=True)
class ConnectionTarget:
    """Remote host a session is opened against."""

    host: str
    username: str
    port: int = 22

    def __str__(self) -> str:
        return f"{self.username}@{self.host}:{self.port}"


@dataclass(frozen=True)
class KeyPair:
    """Public/private key pair used for public key authentication."""

    private_key: "asyncssh.SSHKey"
    public_key: "asyncssh.SSHKey"

    @property
    def algorithm(self) -> str:
        """Key algorithm name, e.g. ssh-rsa."""
        return self.public_key.get_algorithm()

    @property
    def fingerprint(self) -> str:
        """SHA256 fingerprint of the public half."""
        return self.public_key.get_fingerprint()


@dataclass(frozen=True)
class HostTrust:
    """How the server's host key is verified.

    ``fingerprint`` is compared verbatim against the fingerprint of the key
    the server presents. ``None`` accepts any host key.
    """

    fingerprint: str | None = None

    @classmethod
    def off(cls) -> "HostTrust":
        """Trust that accepts any host key. Never use in production."""
        return cls(fingerprint=None)

    @property
    def verification_enabled(self) -> bool:
        """True unless host key verification is switched off."""
        return self.fingerprint is not None
