"""Configuration module for simple_sftp.

- Settings: Environment variable configuration
- load_host_trust: Resolves the configured host identity
- load_key_pair: Loads the authentication key pair
"""

from simple_sftp.config.credentials import load_key_pair
from simple_sftp.config.host_keys import (
    VERIFICATION_OFF,
    host_key_matches,
    load_host_trust,
)
from simple_sftp.config.settings import Settings

__all__ = [
    "Settings",
    "VERIFICATION_OFF",
    "host_key_matches",
    "load_host_trust",
    "load_key_pair",
]
