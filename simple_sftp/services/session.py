"""Scoped SFTP sessions.

A session owns one SSH connection and one SFTP client bound to it. Both are
released on every exit path, SFTP client first. Failures while releasing are
logged and never replace an error raised inside the session.
"""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import TypeVar

import asyncssh

from simple_sftp.exceptions import SftpConnectionError
from simple_sftp.models import ConnectionTarget, HostTrust, KeyPair
from simple_sftp.services.connection import Connector, open_connection

logger = logging.getLogger(__name__)

T = TypeVar("T")

SftpAction = Callable[[asyncssh.SFTPClient], Awaitable[T]]


async def _close_sftp(sftp: asyncssh.SFTPClient) -> None:
    sftp.exit()
    await sftp.wait_closed()


async def _close_connection(conn: asyncssh.SSHClientConnection) -> None:
    conn.close()
    await conn.wait_closed()


async def _release(what: str, target: ConnectionTarget, closing: Awaitable[None]) -> bool:
    """Await a close step, logging instead of raising on failure.

    Returns:
        True if the close step succeeded
    """
    try:
        await closing
    except Exception:
        logger.warning("Failed to close %s for %s", what, target, exc_info=True)
        return False
    return True


@asynccontextmanager
async def sftp_session(
    target: ConnectionTarget,
    trust: HostTrust,
    credential: KeyPair,
    connector: Connector = asyncssh.connect,
    keepalive_interval: int = 0,
) -> AsyncIterator[asyncssh.SFTPClient]:
    """Open a verified, authenticated SFTP session.

    Example:
        >>> async with sftp_session(target, trust, key_pair) as sftp:
        ...     await sftp.put("report.csv", "/in/report.csv")

    Args:
        target: Host, port and username
        trust: Host key trust
        credential: Key pair for authentication
        connector: Coroutine function with the signature of asyncssh.connect
        keepalive_interval: Seconds between keepalives, 0 to disable

    Yields:
        SFTP client valid until the block exits

    Raises:
        SftpConnectionError: Connect, host key or SFTP subsystem failure
        AuthenticationError: Key pair rejected
    """
    conn = await open_connection(
        target,
        trust,
        credential,
        connector=connector,
        keepalive_interval=keepalive_interval,
    )
    try:
        try:
            sftp = await conn.start_sftp_client()
        except (OSError, asyncssh.Error) as e:
            logger.error("SFTP subsystem unavailable on %s: %s", target, e)
            raise SftpConnectionError(target, e) from e

        logger.debug("SFTP session started on %s", target)
        try:
            yield sftp
        finally:
            await _release("SFTP client", target, _close_sftp(sftp))
    finally:
        if await _release("SSH connection", target, _close_connection(conn)):
            logger.info("Closed SSH connection to %s", target)


async def run_in_session(
    target: ConnectionTarget,
    trust: HostTrust,
    credential: KeyPair,
    action: "SftpAction[T]",
    connector: Connector = asyncssh.connect,
    keepalive_interval: int = 0,
) -> T:
    """Run ``action`` with the SFTP client of a fresh session.

    Errors raised by ``action`` propagate unchanged once the session is
    closed.
    """
    async with sftp_session(
        target,
        trust,
        credential,
        connector=connector,
        keepalive_interval=keepalive_interval,
    ) as sftp:
        return await action(sftp)
