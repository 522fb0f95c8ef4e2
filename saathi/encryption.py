"""
This module handles the encryption key used for Saathi's data files.

It uses the `cryptography` library (specifically Fernet symmetric encryption) so that
the account and preference files written to the data directory are never stored in
plain text. The module is responsible for:
- Generating a secret key for encryption if one does not already exist.
- Storing and loading the secret key from the configured key file.
- Providing `get_encryptor`, which returns one Fernet instance per key file.

Security Note: The key file is critical. It must be kept secure and should not be
committed to version control. The default data directory `.saathi/` is meant to be
listed in `.gitignore`.
"""
# saathi/encryption.py

import logging
import os
from functools import lru_cache

from cryptography.fernet import Fernet

from saathi.exceptions import StorageUnavailableError

logger = logging.getLogger(__name__)


def write_key(key_path: str) -> bytes:
    """Generates a new Fernet key and saves it to `key_path`.

    Args:
        key_path: The file the key is written to. Parent directories are created.

    Returns:
        bytes: The newly generated key.
    """
    key = Fernet.generate_key()
    directory = os.path.dirname(key_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(key_path, "wb") as key_file:
        key_file.write(key)
    return key


def load_key(key_path: str) -> bytes:
    """Loads the Fernet key from `key_path`.

    Returns:
        bytes: The encryption key.
    """
    with open(key_path, "rb") as key_file:
        return key_file.read()


def load_or_create_key(key_path: str) -> bytes:
    """Returns the key stored at `key_path`, generating one on first run."""
    try:
        return load_key(key_path)
    except FileNotFoundError:
        logger.warning("Encryption key not found at %s. Generating a new one.", key_path)
        return write_key(key_path)


@lru_cache(maxsize=None)
def get_encryptor(key_path: str) -> Fernet:
    """Returns the shared Fernet instance for a key file.

    Raises:
        StorageUnavailableError: If the key file cannot be read or created, or does not
            hold a valid Fernet key.
    """
    try:
        return Fernet(load_or_create_key(key_path))
    except (OSError, ValueError) as exc:
        raise StorageUnavailableError(f"Unusable encryption key at {key_path}") from exc
