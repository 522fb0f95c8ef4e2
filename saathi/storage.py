"""
Encrypted JSON files used as Saathi's local, device-bound storage.

Both the account registry and the preference store keep their data in a single
Fernet-encrypted JSON document. Reads of a missing, empty or corrupt file start
from an empty document; I/O failures are reported as `StorageUnavailableError` so
callers can decide whether to degrade or surface the problem.
"""
# saathi/storage.py

import json
import logging
import os
import threading

from cryptography.fernet import InvalidToken

from saathi.encryption import get_encryptor
from saathi.exceptions import StorageUnavailableError

logger = logging.getLogger(__name__)


class EncryptedJSONFile:
    """A JSON document stored encrypted on disk.

    Access from several Streamlit sessions is serialized through `lock`, which
    callers hold around read-modify-write sequences.
    """

    def __init__(self, path: str, encryptor):
        self.path = path
        self._encryptor = encryptor
        self.lock = threading.RLock()

    def load(self) -> dict:
        """Loads and decrypts the document.

        Returns:
            dict: The stored document, or an empty dict if the file is missing or corrupt.

        Raises:
            StorageUnavailableError: If the file exists but cannot be read.
        """
        with self.lock:
            try:
                with open(self.path, "r", encoding="utf-8") as f:
                    encrypted_data = f.read()
            except FileNotFoundError:
                return {}
            except OSError as exc:
                raise StorageUnavailableError(f"Cannot read {self.path}") from exc

            if not encrypted_data:
                return {}
            try:
                decrypted_data = self._encryptor.decrypt(encrypted_data.encode()).decode()
                data = json.loads(decrypted_data)
            except (InvalidToken, json.JSONDecodeError, UnicodeDecodeError) as exc:
                logger.warning("Could not load %s (%s). Starting with an empty document.", self.path, exc)
                return {}
            if not isinstance(data, dict):
                logger.warning("Ignoring %s: top-level value is not an object.", self.path)
                return {}
            return data

    def save(self, data: dict) -> None:
        """Encrypts and writes the document.

        Raises:
            StorageUnavailableError: If the file cannot be written.
        """
        with self.lock:
            payload = self._encryptor.encrypt(json.dumps(data, indent=4).encode()).decode()
            try:
                directory = os.path.dirname(self.path)
                if directory:
                    os.makedirs(directory, exist_ok=True)
                with open(self.path, "w", encoding="utf-8") as f:
                    f.write(payload)
            except OSError as exc:
                raise StorageUnavailableError(f"Cannot write {self.path}") from exc


class DisabledStorage:
    """Stand-in used when local storage is switched off; every access fails."""

    path = None

    def __init__(self):
        self.lock = threading.RLock()

    def load(self) -> dict:
        raise StorageUnavailableError("Local storage is disabled")

    def save(self, data: dict) -> None:
        raise StorageUnavailableError("Local storage is disabled")


def open_storage(settings, path: str):
    """Opens an encrypted file in the data directory, or a disabled stand-in.

    Storage is disabled when configured off, and when the encryption key is
    missing and cannot be created, or is corrupt.
    """
    if not settings.storage_enabled:
        return DisabledStorage()
    try:
        return EncryptedJSONFile(path, get_encryptor(settings.key_file))
    except StorageUnavailableError as e:
        logger.warning("Local storage unavailable (%s). Falling back to defaults.", e)
        return DisabledStorage()
