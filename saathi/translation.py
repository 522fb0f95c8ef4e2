"""
This module provides translated UI text for Saathi.

`TranslationCatalog` loads one JSON file per locale from `saathi/locales/`.
`TranslationProvider` holds the active language for a browser session, resolves keys
with `t()`, and notifies its subscribers when the language changes.

Missing keys never raise: a key absent from the active locale falls back to English,
and a key absent from English resolves to the key itself.
"""
# saathi/translation.py

from __future__ import annotations

import json
import logging
import os
from typing import Callable, Dict, List

from saathi.events import Subscribers

logger = logging.getLogger(__name__)

LOCALES_DIR = os.path.join(os.path.dirname(__file__), "locales")
FALLBACK_LANGUAGE = "en"


class TranslationCatalog:
    """All known locales, keyed by language code."""

    def __init__(self, messages: Dict[str, Dict[str, str]], names: Dict[str, str] = None):
        self._messages = messages
        self._names = names or {}

    @classmethod
    def load(cls, directory: str = LOCALES_DIR) -> "TranslationCatalog":
        """Reads every `<code>.json` file in `directory`.

        Each file holds a `_language_name` entry (the language's own name) plus the
        message keys. Unreadable files are skipped with a warning.
        """
        messages: Dict[str, Dict[str, str]] = {}
        names: Dict[str, str] = {}
        for filename in sorted(os.listdir(directory)):
            code, ext = os.path.splitext(filename)
            if ext != ".json":
                continue
            try:
                with open(os.path.join(directory, filename), "r", encoding="utf-8") as f:
                    entries = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                logger.warning("Skipping locale file %s: %s", filename, e)
                continue
            names[code] = entries.pop("_language_name", code)
            messages[code] = {k: v for k, v in entries.items() if isinstance(v, str)}
        return cls(messages, names)

    @property
    def languages(self) -> List[str]:
        return list(self._messages)

    def language_name(self, code: str) -> str:
        return self._names.get(code, code)

    def supports(self, code: str) -> bool:
        return code in self._messages

    def lookup(self, code: str, key: str) -> str:
        text = self._messages.get(code, {}).get(key)
        if text is None and code != FALLBACK_LANGUAGE:
            text = self._messages.get(FALLBACK_LANGUAGE, {}).get(key)
        if text is None:
            logger.debug("Missing translation for %r in %s", key, code)
            return key
        return text


class TranslationProvider:
    """The active language of one browser session."""

    def __init__(self, catalog: TranslationCatalog, language: str = FALLBACK_LANGUAGE):
        self._catalog = catalog
        self._language = language if catalog.supports(language) else FALLBACK_LANGUAGE
        self._subscribers = Subscribers()

    @property
    def language(self) -> str:
        return self._language

    @property
    def catalog(self) -> TranslationCatalog:
        return self._catalog

    def t(self, key: str) -> str:
        return self._catalog.lookup(self._language, key)

    def set_language(self, code: str) -> None:
        """Switches the language and notifies subscribers.

        Unsupported codes are ignored with a warning.
        """
        if not self._catalog.supports(code):
            logger.warning("Ignoring unsupported language %r", code)
            return
        if code == self._language:
            return
        self._language = code
        logger.info("Language switched to %s", code)
        self._subscribers.notify()

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        return self._subscribers.subscribe(callback)
