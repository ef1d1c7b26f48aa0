"""A really basic SFTP client.

Every call opens its own verified session, does its work and disconnects.
Downloads are all-or-nothing: if any file fails, the files already fetched
by that call are deleted before the error is raised.
"""

import errno
import logging
import os
import warnings
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TypeVar

import asyncssh

from simple_sftp.config import Settings, load_host_trust, load_key_pair
from simple_sftp.exceptions import ConfigurationError
from simple_sftp.models import ConnectionTarget, FileFilter, HostTrust, KeyPair
from simple_sftp.services.connection import Connector
from simple_sftp.services.session import SftpAction, run_in_session, sftp_session
from simple_sftp.services.transfer import (
    fetch_files,
    list_regular_files,
    put_file,
    remove_local_files,
)
from simple_sftp.utils.console import configure_logging

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SftpClient:
    """Upload and download files over SFTP with key authentication."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        host_trust: HostTrust | str,
        key_pair: KeyPair,
        connector: Connector = asyncssh.connect,
        keepalive_interval: int = 0,
    ) -> None:
        """Initialize client.

        Args:
            host: Remote hostname or address
            port: Remote SSH port
            username: Remote user
            host_trust: HostTrust, or a fingerprint / public key / "OFF"
                string resolved with load_host_trust
            key_pair: Key pair for public key authentication
            connector: Coroutine function with the signature of
                asyncssh.connect, used to open every session
            keepalive_interval: Seconds between transport keepalives,
                0 to disable

        Raises:
            ConfigurationError: If host_trust is a string that cannot be
                resolved
        """
        if isinstance(host_trust, str):
            host_trust = load_host_trust(host_trust)

        self.target = ConnectionTarget(host=host, port=port, username=username)
        self.host_trust = host_trust
        self._key_pair = key_pair
        self._connector = connector
        self._keepalive_interval = keepalive_interval

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "SftpClient":
        """Create a client from settings (environment by default).

        Also applies the logging settings to the simple_sftp logger.

        Raises:
            ConfigurationError: If required settings are missing or the key
                pair / host fingerprint is invalid
        """
        settings = settings or Settings.from_env()

        missing = settings.missing()
        if missing:
            raise ConfigurationError(f"Missing required settings: {', '.join(missing)}")

        configure_logging(settings.log_level, settings.log_colors)

        return cls(
            host=settings.host,
            port=settings.port,
            username=settings.username,
            host_trust=load_host_trust(settings.host_fingerprint),
            key_pair=load_key_pair(
                settings.private_key_path,
                passphrase=settings.private_key_passphrase,
            ),
            keepalive_interval=settings.keepalive_interval,
        )

    @asynccontextmanager
    async def session(self) -> AsyncIterator[asyncssh.SFTPClient]:
        """Open a session against this client's host."""
        async with sftp_session(
            self.target,
            self.host_trust,
            self._key_pair,
            connector=self._connector,
            keepalive_interval=self._keepalive_interval,
        ) as sftp:
            yield sftp

    async def do_sftp(self, action: "SftpAction[T]") -> T:
        """Run ``action`` in a fresh session, then disconnect.

        The caller is responsible for cleaning up anything ``action``
        leaves behind on failure.
        """
        return await run_in_session(
            self.target,
            self.host_trust,
            self._key_pair,
            action,
            connector=self._connector,
            keepalive_interval=self._keepalive_interval,
        )

    async def upload(self, local_file: str | os.PathLike[str], remote_path: str) -> None:
        """Upload a file.

        Args:
            local_file: The file to upload
            remote_path: The file name of the target

        Raises:
            FileNotFoundError: If local_file is not a regular file
            TransferError: If the server rejects the write
            SftpConnectionError: If the session cannot be opened
            AuthenticationError: If the key pair is rejected
        """
        local_path = Path(local_file)
        if not local_path.is_file():
            raise FileNotFoundError(errno.ENOENT, "Local file not found", str(local_path))

        async with self.session() as sftp:
            await put_file(sftp, local_path, remote_path)

        logger.info("Uploaded %s -> %s:%s", local_path, self.target.host, remote_path)

    async def write(self, local_file: str | os.PathLike[str], remote_path: str) -> None:
        """Upload a file.

        Deprecated: use upload().
        """
        warnings.warn(
            "SftpClient.write() is deprecated, use upload()",
            DeprecationWarning,
            stacklevel=2,
        )
        await self.upload(local_file, remote_path)

    async def download(
        self,
        folder: str,
        local_storage: str | os.PathLike[str],
        file_filter: FileFilter | None = None,
    ) -> list[Path]:
        """List a directory and download every regular file the filter keeps.

        Args:
            folder: The remote folder to list (not recursive)
            local_storage: Local folder the files are written to
            file_filter: Takes the regular files found and returns the ones
                you actually want; None keeps them all

        Returns:
            Local files after they have been downloaded, in fetch order

        Raises:
            TransferError: If listing or fetching fails; files already
                downloaded by this call are deleted first
            SftpConnectionError: If the session cannot be opened
            AuthenticationError: If the key pair is rejected
        """
        storage = Path(local_storage)
        downloaded: list[Path] = []

        try:
            async with self.session() as sftp:
                entries = await list_regular_files(sftp, folder)
                selected = list(file_filter(entries)) if file_filter else entries
                logger.debug(
                    "Filter selected %d of %d files in %s",
                    len(selected),
                    len(entries),
                    folder,
                )
                await fetch_files(sftp, selected, storage, downloaded)
        except BaseException as e:
            if downloaded:
                logger.warning(
                    "Download from %s failed (%s), rolling back %d local file(s)",
                    folder,
                    e,
                    len(downloaded),
                )
                remove_local_files(downloaded)
            raise

        logger.info(
            "Downloaded %d file(s) from %s:%s to %s",
            len(downloaded),
            self.target.host,
            folder,
            storage,
        )
        return downloaded

    async def download_all(
        self, folder: str, local_storage: str | os.PathLike[str]
    ) -> list[Path]:
        """Download every regular file in ``folder``."""
        return await self.download(folder, local_storage)
