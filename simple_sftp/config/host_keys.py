"""SSH host key trust configuration.

Turns a configured host identity into a HostTrust and checks presented
host keys against it.
"""

import logging

import asyncssh

from simple_sftp.exceptions import ConfigurationError
from simple_sftp.models import HostTrust

logger = logging.getLogger(__name__)

VERIFICATION_OFF = "OFF"

_KEY_LITERAL_PREFIXES = ("ssh-", "ecdsa-sha2-", "sk-")


def load_host_trust(value: str) -> HostTrust:
    """Resolve a configured host identity.

    Accepts a fingerprint (anything containing ``:``, e.g.
    ``43:51:43:a1:...`` or ``SHA256:...``), an OpenSSH public key literal
    (``ssh-rsa AAAA...``) or ``OFF``.

    Args:
        value: Configured host identity

    Returns:
        HostTrust holding a fingerprint, or the unsafe trust for OFF

    Raises:
        ConfigurationError: If the value is none of the accepted forms
    """
    value = value.strip()

    if ":" in value:
        return HostTrust(fingerprint=value)

    if value.startswith(_KEY_LITERAL_PREFIXES):
        try:
            key = asyncssh.import_public_key(value)
        except (asyncssh.KeyImportError, ValueError) as e:
            raise ConfigurationError(f"Invalid host public key: {e}") from e
        fingerprint = md5_fingerprint(key)
        logger.debug("Host %s key resolved to %s", key.get_algorithm(), fingerprint)
        return HostTrust(fingerprint=fingerprint)

    if value == VERIFICATION_OFF:
        return HostTrust.off()

    raise ConfigurationError(
        f"Host fingerprint must be a fingerprint, a public key or "
        f"{VERIFICATION_OFF!r}, got {value!r}"
    )


def md5_fingerprint(key: asyncssh.SSHKey) -> str:
    """Colon separated MD5 fingerprint without the ``MD5:`` prefix."""
    return key.get_fingerprint("md5").removeprefix("MD5:")


def fingerprint_for(key: asyncssh.SSHKey, like: str) -> str:
    """Compute the fingerprint of ``key`` in the same format as ``like``.

    Args:
        key: Host key presented by the server
        like: Configured fingerprint

    Returns:
        Fingerprint string directly comparable to ``like``
    """
    if like.startswith("SHA256:"):
        return key.get_fingerprint("sha256")
    if like.startswith("MD5:"):
        return key.get_fingerprint("md5")
    return md5_fingerprint(key)


def host_key_matches(trust: HostTrust, key: asyncssh.SSHKey) -> bool:
    """Check a presented host key against the configured trust."""
    if trust.fingerprint is None:
        return True
    return fingerprint_for(key, trust.fingerprint) == trust.fingerprint
