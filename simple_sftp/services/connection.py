"""SSH connection opening with host key verification."""

import logging
from collections.abc import Awaitable, Callable
from functools import partial
from typing import Any

import asyncssh

from simple_sftp.config.host_keys import fingerprint_for, host_key_matches
from simple_sftp.exceptions import AuthenticationError, SftpConnectionError
from simple_sftp.models import ConnectionTarget, HostTrust, KeyPair

logger = logging.getLogger(__name__)

Connector = Callable[..., Awaitable[asyncssh.SSHClientConnection]]

# Empty trusted key set: every host key goes through validate_host_public_key
_NO_TRUSTED_KEYS: tuple[list[Any], list[Any], list[Any]] = ([], [], [])


class HostKeyVerifyingClient(asyncssh.SSHClient):
    """SSH client that only trusts host keys matching a fingerprint."""

    def __init__(self, trust: HostTrust) -> None:
        self._trust = trust

    def validate_host_public_key(
        self, host: str, addr: str, port: int, key: asyncssh.SSHKey
    ) -> bool:
        if host_key_matches(self._trust, key):
            logger.debug("Host key for %s:%d verified", host, port)
            return True

        logger.error(
            "Host key verification failed for %s:%d: expected %s, got %s",
            host,
            port,
            self._trust.fingerprint,
            fingerprint_for(key, self._trust.fingerprint or ""),
        )
        return False


async def open_connection(
    target: ConnectionTarget,
    trust: HostTrust,
    credential: KeyPair,
    connector: Connector = asyncssh.connect,
    keepalive_interval: int = 0,
) -> asyncssh.SSHClientConnection:
    """Connect to the target and authenticate with the key pair.

    asyncssh performs the TCP connect, host key check and user
    authentication in one call, and shuts its transport down itself when
    any of those steps fails.

    Args:
        target: Host, port and username
        trust: Host key trust; unsafe trust disables verification
        credential: Key pair used for public key authentication
        connector: Coroutine function with the signature of asyncssh.connect
        keepalive_interval: Seconds between keepalives, 0 to disable

    Returns:
        Authenticated SSH connection

    Raises:
        SftpConnectionError: Host unreachable, refused or host key rejected
        AuthenticationError: Key pair rejected by the server
    """
    if trust.verification_enabled:
        known_hosts: tuple[list[Any], list[Any], list[Any]] | None = _NO_TRUSTED_KEYS
    else:
        known_hosts = None
        logger.warning(
            "HOST VERIFICATION IS OFF for %s - vulnerable to MITM attacks. "
            "Turn it on in production.",
            target,
        )

    logger.info("Opening SSH connection to %s", target)

    try:
        conn = await connector(
            target.host,
            port=target.port,
            username=target.username,
            client_factory=partial(HostKeyVerifyingClient, trust),
            known_hosts=known_hosts,
            client_keys=[credential.private_key],
            agent_path=None,
            preferred_auth="publickey",
            keepalive_interval=keepalive_interval,
        )
    except asyncssh.PermissionDenied as e:
        logger.error("Authentication failed for %s: %s", target, e)
        raise AuthenticationError(target, e) from e
    except (OSError, asyncssh.Error) as e:
        logger.error("Connection to %s failed: %s", target, e)
        raise SftpConnectionError(target, e) from e

    logger.info("SSH connection established to %s", target)
    return conn
