"""
Wiring of the providers for one browser session.

Process-wide resources (the account registry, translation catalog, preference file and
location worker pool) are created once by `main.py` and shared. Everything a single
browser session owns (its auth session, language, location and router) lives in the
`AppContext` built here and kept in `st.session_state`.
"""
# saathi/context.py

from __future__ import annotations

import concurrent.futures
from typing import MutableMapping

from saathi.auth import AccountService, AuthSessionProvider
from saathi.config import Settings
from saathi.location import BrowserLocator, LocationProvider
from saathi.preferences import PreferenceStore
from saathi.routing import HOME_ROUTE, Router
from saathi.shell import PageShell
from saathi.translation import TranslationCatalog, TranslationProvider


class AppContext:
    """The providers injected into every page shell of one browser session."""

    def __init__(self, settings: Settings, auth: AuthSessionProvider, translation: TranslationProvider,
                 location: LocationProvider, preference_backend, locator: BrowserLocator = None,
                 initial_route: str = HOME_ROUTE):
        self.settings = settings
        self.auth = auth
        self.translation = translation
        self.location = location
        self.locator = locator
        self._preference_backend = preference_backend
        self.router = Router(self.make_shell, initial_route)

    def preference_store(self, user) -> PreferenceStore:
        """Returns the preference store scoped to `user`."""
        return PreferenceStore(self._preference_backend, user.username)

    def make_shell(self, route, navigate) -> PageShell:
        welcome_seconds = self.settings.welcome_seconds if route == HOME_ROUTE else 0.0
        return PageShell(route, self, navigate, welcome_seconds=welcome_seconds)


def create_app_context(settings: Settings, accounts: AccountService, catalog: TranslationCatalog,
                       preference_backend, executor: concurrent.futures.Executor,
                       session: MutableMapping, initial_route: str = HOME_ROUTE) -> AppContext:
    """Builds a fresh context for a new browser session and resolves its auth state."""
    locator = BrowserLocator(timeout=settings.location_prompt_seconds)
    context = AppContext(
        settings=settings,
        auth=AuthSessionProvider(accounts, session),
        translation=TranslationProvider(catalog, settings.default_language),
        location=LocationProvider(locator, executor),
        preference_backend=preference_backend,
        locator=locator,
        initial_route=initial_route,
    )
    context.auth.resolve()
    return context
