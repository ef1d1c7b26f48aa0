"""Client settings from environment variables.

Centralized environment variable parsing and validation.
"""

import logging
import os
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    """Client settings from environment.

    Handles parsing, validation, and defaults for all env vars.
    """

    # Remote host
    host: str = field(default="")
    port: int = field(default=22)
    username: str = field(default="")

    # Security
    host_fingerprint: str = field(default="")
    private_key_path: str = field(default="~/.ssh/id_rsa")
    private_key_passphrase: str | None = field(default=None, repr=False)

    # Transport
    keepalive_interval: int = field(default=0)

    # Logging
    log_level: str = field(default="INFO")
    log_colors: bool = field(default=True)

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from SFTP_* environment variables.

        Returns:
            Settings instance with values from environment
        """
        return cls(
            host=os.getenv("SFTP_HOST", "").strip(),
            port=cls._get_int("SFTP_PORT", 22),
            username=os.getenv("SFTP_USERNAME", "").strip(),
            host_fingerprint=os.getenv("SFTP_HOST_FINGERPRINT", "").strip(),
            private_key_path=os.getenv("SFTP_PRIVATE_KEY", "~/.ssh/id_rsa"),
            private_key_passphrase=os.getenv("SFTP_PRIVATE_KEY_PASSPHRASE") or None,
            keepalive_interval=cls._get_int("SFTP_KEEPALIVE_INTERVAL", 0),
            log_level=os.getenv("SFTP_LOG_LEVEL", "INFO").upper(),
            log_colors=cls._get_bool("SFTP_LOG_COLORS", True),
        )

    @staticmethod
    def _get_int(key: str, default: int) -> int:
        """Get integer from environment.

        Args:
            key: Environment variable key
            default: Default value if not set

        Returns:
            Integer value from environment or default
        """
        value = os.getenv(key)
        if value is None:
            return default

        try:
            return int(value)
        except ValueError:
            logger.warning("Invalid int for %s: %s, using default %d", key, value, default)
            return default

    @staticmethod
    def _get_bool(key: str, default: bool) -> bool:
        """Get boolean from environment.

        Args:
            key: Environment variable key
            default: Default value if not set

        Returns:
            Boolean value from environment or default
        """
        value = os.getenv(key)
        if value is None:
            return default
        return value.lower() in ("1", "true", "yes", "on")

    def missing(self) -> list[str]:
        """Names of required settings that are empty."""
        required = {
            "SFTP_HOST": self.host,
            "SFTP_USERNAME": self.username,
            "SFTP_HOST_FINGERPRINT": self.host_fingerprint,
        }
        return [name for name, value in required.items() if not value]
