"""Key pair loading for public key authentication."""

import logging
from pathlib import Path

import asyncssh

from simple_sftp.exceptions import ConfigurationError
from simple_sftp.models import KeyPair

logger = logging.getLogger(__name__)


def load_key_pair(
    private_key_file: str | Path,
    passphrase: str | None = None,
) -> KeyPair:
    """Load a key pair from an OpenSSH private key and its ``.pub`` file.

    The public key must sit next to the private key, named like it plus
    ``.pub``.

    Args:
        private_key_file: Path to the private key
        passphrase: Passphrase for an encrypted private key

    Returns:
        KeyPair for authentication

    Raises:
        ConfigurationError: If either file cannot be read or parsed, or the
            two halves do not belong together
    """
    private_path = Path(private_key_file).expanduser()
    public_path = private_path.with_name(private_path.name + ".pub")

    try:
        public_text = public_path.read_text(encoding="utf-8")
        private_text = private_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Cannot read key pair {private_path}: {e}") from e

    try:
        public_key = asyncssh.import_public_key(public_text)
        private_key = asyncssh.import_private_key(private_text, passphrase)
    except (asyncssh.KeyImportError, asyncssh.KeyEncryptionError, ValueError) as e:
        raise ConfigurationError(f"Invalid key pair {private_path}: {e}") from e

    if private_key.public_data != public_key.public_data:
        raise ConfigurationError(
            f"Public key {public_path} does not match private key {private_path}"
        )

    logger.debug(
        "Loaded %s key pair from %s (%s)",
        public_key.get_algorithm(),
        private_path,
        public_key.get_fingerprint(),
    )
    return KeyPair(private_key=private_key, public_key=public_key)
