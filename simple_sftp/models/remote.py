"""Remote directory listing models."""

import posixpath
import stat
from collections.abc import Callable, Iterable
from dataclasses import dataclass

import asyncssh


@dataclass(frozen=True)
class RemoteEntry:
    """One entry of a remote directory listing."""

    name: str
    path: str
    is_regular_file: bool

    @classmethod
    def from_sftp_name(cls, folder: str, entry: asyncssh.SFTPName) -> "RemoteEntry":
        """Build an entry from an asyncssh readdir result.

        Args:
            folder: Directory that was listed
            entry: Name and attributes returned by the server

        Returns:
            RemoteEntry with its full remote path
        """
        name = entry.filename
        return cls(
            name=name,
            path=posixpath.join(folder, name),
            is_regular_file=_is_regular(entry.attrs),
        )


def _is_regular(attrs: asyncssh.SFTPAttrs) -> bool:
    """Check file type, falling back to permission bits for SFTPv3 servers."""
    if attrs.type == asyncssh.FILEXFER_TYPE_REGULAR:
        return True
    if attrs.type not in (None, asyncssh.FILEXFER_TYPE_UNKNOWN):
        return False
    return attrs.permissions is not None and stat.S_ISREG(attrs.permissions)


# Caller supplied selection of the regular files to download
FileFilter = Callable[[list[RemoteEntry]], Iterable[RemoteEntry]]
