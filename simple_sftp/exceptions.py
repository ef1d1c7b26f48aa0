"""Error types raised by simple_sftp."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from simple_sftp.models import ConnectionTarget


class SftpError(Exception):
    """Base class for all simple_sftp errors."""


class ConfigurationError(SftpError):
    """Invalid key files, host fingerprint input or settings."""


class SftpConnectionError(SftpError):
    """Failed to open a verified SSH/SFTP session."""

    def __init__(self, target: "ConnectionTarget", original_error: Exception):
        """Initialize connection error.

        Args:
            target: Host the session was being opened against
            original_error: Original exception that caused the failure
        """
        self.host_name = target.host
        self.target = target
        self.original_error = original_error
        super().__init__(f"Cannot connect to {target}: {original_error}")


class AuthenticationError(SftpError):
    """The server rejected the supplied key pair."""

    def __init__(self, target: "ConnectionTarget", original_error: Exception):
        self.host_name = target.host
        self.target = target
        self.original_error = original_error
        super().__init__(f"Authentication failed for {target}: {original_error}")


class TransferError(SftpError):
    """A remote list/get/put operation failed."""

    def __init__(self, operation: str, path: str, original_error: Exception):
        """Initialize transfer error.

        Args:
            operation: One of "list", "download", "upload"
            path: Remote path the operation was working on
            original_error: Exception raised by the SFTP client
        """
        self.operation = operation
        self.path = path
        self.original_error = original_error
        super().__init__(f"SFTP {operation} failed for {path}: {original_error}")
