"""Data models for simple_sftp."""

from simple_sftp.models.remote import FileFilter, RemoteEntry
from simple_sftp.models.ssh import ConnectionTarget, HostTrust, KeyPair

__all__ = [
    "ConnectionTarget",
    "FileFilter",
    "HostTrust",
    "KeyPair",
    "RemoteEntry",
]
