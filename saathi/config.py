"""
Runtime configuration for Saathi.

Values are looked up in this order:
1. Environment variables (a local `.env` file is loaded first).
2. Streamlit secrets (`.streamlit/secrets.toml` or the Streamlit Cloud secrets store).
3. The defaults below.
"""
# saathi/config.py

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

import streamlit as st
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = ".saathi"
DEFAULT_LANGUAGE = "en"
WELCOME_SECONDS = 3.0
LOCATION_TIMEOUT_SECONDS = 2.0
LOCATION_PROMPT_SECONDS = 20.0

_TRUTHY = {"1", "true", "yes", "on"}


def _get_secret(name: str) -> str:
    """Reads a setting from the environment first, then from `st.secrets`."""
    value = (os.environ.get(name) or "").strip()
    if value:
        return value
    try:
        value = st.secrets.get(name)
    except Exception as exc:
        # No secrets file is the normal local setup.
        logger.debug("Streamlit secrets unavailable for %s: %s", name, exc)
        return ""
    return str(value).strip() if value is not None else ""


def _get_float(name: str, default: float) -> float:
    raw = _get_secret(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring invalid value %r for %s; using %s.", raw, name, default)
        return default


@dataclass(frozen=True)
class Settings:
    """Resolved application settings.

    Attributes:
        data_dir (str): Directory holding the account file, preference file and key.
        storage_enabled (bool): When False the preference store behaves as unavailable.
        welcome_seconds (float): Duration of the landing page welcome animation.
        default_language (str): Locale code used for new sessions.
        location_timeout (float): How long a rerun waits for a pending location lookup.
        location_prompt_seconds (float): How long a lookup waits for the browser to answer
            the location prompt.
        log_level (str): Name of the root logging level.
    """
    data_dir: str = DEFAULT_DATA_DIR
    storage_enabled: bool = True
    welcome_seconds: float = WELCOME_SECONDS
    default_language: str = DEFAULT_LANGUAGE
    location_timeout: float = LOCATION_TIMEOUT_SECONDS
    location_prompt_seconds: float = LOCATION_PROMPT_SECONDS
    log_level: str = "INFO"

    @property
    def accounts_file(self) -> str:
        return os.path.join(self.data_dir, "accounts.json")

    @property
    def preferences_file(self) -> str:
        return os.path.join(self.data_dir, "preferences.json")

    @property
    def key_file(self) -> str:
        return os.path.join(self.data_dir, "secret.key")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Builds the settings once per process."""
    load_dotenv()
    storage_flag = _get_secret("SAATHI_STORAGE_ENABLED")
    return Settings(
        data_dir=_get_secret("SAATHI_DATA_DIR") or DEFAULT_DATA_DIR,
        storage_enabled=storage_flag.lower() in _TRUTHY if storage_flag else True,
        welcome_seconds=max(0.0, _get_float("SAATHI_WELCOME_SECONDS", WELCOME_SECONDS)),
        default_language=_get_secret("SAATHI_DEFAULT_LANGUAGE") or DEFAULT_LANGUAGE,
        location_timeout=max(0.0, _get_float("SAATHI_LOCATION_TIMEOUT", LOCATION_TIMEOUT_SECONDS)),
        location_prompt_seconds=max(0.0, _get_float("SAATHI_LOCATION_PROMPT_SECONDS", LOCATION_PROMPT_SECONDS)),
        log_level=(_get_secret("SAATHI_LOG_LEVEL") or "INFO").upper(),
    )
