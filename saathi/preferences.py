"""
This module provides the Preference Store used by every page shell.

Preferences are plain string values kept per user in the shared encrypted
preference file. The store never raises: when storage is unavailable, `get`
returns None and `set` does nothing, and callers fall back to the defaults in
`UserPreferences`.
"""
# saathi/preferences.py

import logging
from typing import Optional

from saathi.exceptions import StorageUnavailableError
from saathi.models import UserPreferences

logger = logging.getLogger(__name__)

DARK_MODE_KEY = "darkMode"
FONT_SIZE_KEY = "fontSize"
CONTRAST_KEY = "contrast"


class PreferenceStore:
    """Durable key-value preferences for one user on this device."""

    def __init__(self, backend, namespace: str):
        """
        Args:
            backend: An `EncryptedJSONFile` (or `DisabledStorage`) shared by all sessions.
            namespace (str): The user the preferences belong to.
        """
        self._backend = backend
        self.namespace = namespace

    def get(self, key: str) -> Optional[str]:
        """Returns the stored string for `key`, or None if absent or unreadable."""
        try:
            data = self._backend.load()
        except StorageUnavailableError as exc:
            logger.warning("Preference storage unavailable, reading %s as absent: %s", key, exc)
            return None
        scoped = data.get(self.namespace)
        if not isinstance(scoped, dict):
            return None
        value = scoped.get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value) -> None:
        """Stores `value` as a string under `key`. Failures are logged and ignored."""
        try:
            with self._backend.lock:
                data = self._backend.load()
                scoped = data.get(self.namespace)
                if not isinstance(scoped, dict):
                    scoped = data[self.namespace] = {}
                scoped[key] = _to_stored(value)
                self._backend.save(data)
        except StorageUnavailableError as exc:
            logger.warning("Preference storage unavailable, %s not saved: %s", key, exc)


def _to_stored(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _parse_bool(raw: Optional[str], default: bool) -> bool:
    if raw is None:
        return default
    lowered = raw.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    logger.warning("Unparsable boolean preference %r, using default.", raw)
    return default


def _parse_float(raw: Optional[str], default: float) -> float:
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Unparsable numeric preference %r, using default.", raw)
        return default
    if value != value or value in (float("inf"), float("-inf")):
        return default
    return value


def read_preferences(store: PreferenceStore) -> UserPreferences:
    """Hydrates a `UserPreferences` from the store, clamping numeric values."""
    defaults = UserPreferences()
    return UserPreferences(
        dark_mode=_parse_bool(store.get(DARK_MODE_KEY), defaults.dark_mode),
        font_size=_parse_float(store.get(FONT_SIZE_KEY), defaults.font_size),
        contrast=_parse_float(store.get(CONTRAST_KEY), defaults.contrast),
    )
