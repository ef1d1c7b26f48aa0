"""SFTP transfer steps used by SftpClient."""

import logging
from collections.abc import Iterable
from pathlib import Path

import asyncssh

from simple_sftp.exceptions import TransferError
from simple_sftp.models import RemoteEntry

logger = logging.getLogger(__name__)


async def list_regular_files(sftp: asyncssh.SFTPClient, folder: str) -> list[RemoteEntry]:
    """List the regular files directly inside ``folder``.

    Directories, links and other special entries are dropped.

    Raises:
        TransferError: If the server cannot list the folder
    """
    try:
        names = await sftp.readdir(folder)
    except asyncssh.Error as e:
        raise TransferError("list", folder, e) from e

    entries = [RemoteEntry.from_sftp_name(folder, name) for name in names]
    regular = [entry for entry in entries if entry.is_regular_file]
    logger.debug(
        "Listed %s: %d entries, %d regular files",
        folder,
        len(entries),
        len(regular),
    )
    return regular


async def put_file(sftp: asyncssh.SFTPClient, local_file: Path, remote_path: str) -> None:
    """Upload one file, creating or overwriting ``remote_path``.

    Source permissions and timestamps are not copied.

    Raises:
        TransferError: If the server rejects the write
        OSError: If the local file cannot be read
    """
    try:
        await sftp.put(str(local_file), remote_path, preserve=False)
    except asyncssh.Error as e:
        raise TransferError("upload", remote_path, e) from e


async def fetch_files(
    sftp: asyncssh.SFTPClient,
    entries: Iterable[RemoteEntry],
    local_storage: Path,
    downloaded: list[Path],
) -> None:
    """Download entries in order, recording each local file in ``downloaded``.

    ``downloaded`` is the caller's accumulator so the caller can roll back
    whatever was fetched before a failure. Stops at the first failure; a
    partial file left by the failing fetch is removed before raising. A
    target that already existed is left as the SFTP client left it, which
    may be truncated; only files this call created are removed.

    Raises:
        TransferError: If the server fails to deliver a file
        OSError: If a local file cannot be written
    """
    for index, entry in enumerate(entries):
        target = local_storage / entry.name
        existed = target.exists()
        logger.debug("Fetching(%d) %s -> %s", index, entry.path, target)
        try:
            await sftp.get(entry.path, str(target))
        except asyncssh.Error as e:
            if not existed:
                remove_local_files([target])
            raise TransferError("download", entry.path, e) from e
        except BaseException:
            if not existed:
                remove_local_files([target])
            raise
        downloaded.append(target)


def remove_local_files(paths: Iterable[Path]) -> list[Path]:
    """Delete local files, logging any that cannot be removed.

    Returns:
        Paths that could not be deleted
    """
    failed: list[Path] = []
    for path in paths:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove %s during rollback: %s", path, e)
            failed.append(path)
        else:
            logger.debug("Removed %s", path)
    return failed
