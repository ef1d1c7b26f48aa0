"""A really basic SFTP client.

Example:
    >>> import asyncio
    >>> from simple_sftp import SftpClient, load_key_pair
    >>> client = SftpClient(
    ...     "sftp.example.com", 22, "nightly",
    ...     "43:51:43:a1:b5:fc:8b:b7:0a:3a:a9:b1:0f:66:73:a8",
    ...     load_key_pair("~/.ssh/id_rsa"),
    ... )
    >>> files = asyncio.run(client.download_all("/outbox", "/var/spool/in"))
"""

from simple_sftp.client import SftpClient
from simple_sftp.config import Settings, load_host_trust, load_key_pair
from simple_sftp.exceptions import (
    AuthenticationError,
    ConfigurationError,
    SftpConnectionError,
    SftpError,
    TransferError,
)
from simple_sftp.models import ConnectionTarget, FileFilter, HostTrust, KeyPair, RemoteEntry
from simple_sftp.utils import configure_logging

__all__ = [
    "AuthenticationError",
    "ConfigurationError",
    "ConnectionTarget",
    "FileFilter",
    "HostTrust",
    "KeyPair",
    "RemoteEntry",
    "Settings",
    "SftpClient",
    "SftpConnectionError",
    "SftpError",
    "TransferError",
    "configure_logging",
    "load_host_trust",
    "load_key_pair",
]
