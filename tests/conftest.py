"""
Pytest configuration file for the Saathi test suite.

This file defines shared fixtures and test doubles used across the test modules.
It includes logic to:
- Point every encrypted data file at a temporary directory with a freshly generated
  Fernet key, so tests never touch a developer's real `.saathi/` directory.
- Build isolated account registries, preference files and per-session `AppContext`
  objects.
- Provide controllable locators for exercising the Location Provider and the page
  shell's lookup and cancellation behaviour.
"""
import concurrent.futures
import threading

import pytest
from cryptography.fernet import Fernet

from saathi.auth import AccountService, AuthSessionProvider
from saathi.config import Settings
from saathi.context import AppContext
from saathi.location import BrowserLocator, LocationProvider
from saathi.models import Coordinates
from saathi.storage import EncryptedJSONFile
from saathi.translation import TranslationCatalog, TranslationProvider


STRONG_PASSWORD = "V4lid!Pass"
CONNAUGHT_PLACE = Coordinates(28.6315, 77.2167)


class CountingStorage:
    """Wraps a storage backend and records every load and save."""

    def __init__(self, inner):
        self._inner = inner
        self.lock = inner.lock
        self.loads = 0
        self.saves = 0

    def load(self):
        self.loads += 1
        return self._inner.load()

    def save(self, data):
        self.saves += 1
        self._inner.save(data)


class FakeLocator:
    """A locator returning fixed coordinates (or raising), optionally blocking until released."""

    def __init__(self, result=CONNAUGHT_PLACE, error=None, block=False):
        self.result = result
        self.error = error
        self.calls = 0
        self.started = threading.Event()
        self.release = threading.Event()
        if not block:
            self.release.set()

    def __call__(self):
        self.calls += 1
        self.started.set()
        self.release.wait(timeout=5)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def encryptor():
    """Provides a Fernet instance with a throwaway key."""
    return Fernet(Fernet.generate_key())


@pytest.fixture
def settings(tmp_path):
    return Settings(data_dir=str(tmp_path), welcome_seconds=0.0, location_timeout=0.5, location_prompt_seconds=0.2)


@pytest.fixture
def account_storage(tmp_path, encryptor):
    return EncryptedJSONFile(str(tmp_path / "accounts.json"), encryptor)


@pytest.fixture
def preference_backend(tmp_path, encryptor):
    return CountingStorage(EncryptedJSONFile(str(tmp_path / "preferences.json"), encryptor))


@pytest.fixture
def accounts(account_storage):
    """Provides an account registry with one registered user, `asha`, and no contact for `ravi`."""
    service = AccountService(account_storage)
    assert service.register_user("asha", STRONG_PASSWORD, "Asha Devi", "Meena", "+91 99999 11111") is True
    assert service.register_user("ravi", STRONG_PASSWORD, "Ravi Kumar") is True
    return service


@pytest.fixture(scope="session")
def catalog():
    return TranslationCatalog.load()


@pytest.fixture
def executor():
    pool = concurrent.futures.ThreadPoolExecutor(max_workers=2)
    yield pool
    pool.shutdown(wait=True, cancel_futures=True)


@pytest.fixture
def make_context(settings, accounts, catalog, preference_backend, executor):
    """
    Factory for per-session contexts.

    Args (of the returned callable):
        username (str | None): Signs this user in before returning; None leaves the
            session unauthenticated.
        resolve (bool): When False the auth status stays UNKNOWN.
        locator: The locator backing the Location Provider.
        session (dict): The per-browser mapping; a fresh dict by default.
    """
    def _make(username=None, resolve=True, locator=None, session=None, route="/"):
        session = {} if session is None else session
        auth = AuthSessionProvider(accounts, session)
        if username is not None:
            assert auth.login(username, STRONG_PASSWORD).username == username
        elif resolve:
            auth.resolve()
        locator = locator or FakeLocator()
        context = AppContext(
            settings=settings,
            auth=auth,
            translation=TranslationProvider(catalog, "en"),
            location=LocationProvider(locator, executor),
            preference_backend=preference_backend,
            locator=locator if isinstance(locator, BrowserLocator) else None,
            initial_route=route,
        )
        return context

    return _make
