"""
Route table and the per-session router.

The router owns the current route and at most one mounted page shell. Navigating
anywhere unmounts that shell first, so overlay state and pending location lookups
never outlive the page they belong to.
"""
# saathi/routing.py

from __future__ import annotations

import logging
from typing import Callable, Optional

from saathi.modes import MODES_BY_ROUTE
from saathi.shell import LOGIN_ROUTE, PageShell

logger = logging.getLogger(__name__)

HOME_ROUTE = "/"
REGISTER_ROUTE = "/register"

PUBLIC_ROUTES = (LOGIN_ROUTE, REGISTER_ROUTE)
PROTECTED_ROUTES = (HOME_ROUTE,) + tuple(MODES_BY_ROUTE)
ROUTES = PROTECTED_ROUTES + PUBLIC_ROUTES


def normalize_route(route: Optional[str]) -> str:
    """Maps unknown or malformed routes to the landing page."""
    if not route:
        return HOME_ROUTE
    if not route.startswith("/"):
        route = "/" + route
    if len(route) > 1:
        route = route.rstrip("/")
    return route if route in ROUTES else HOME_ROUTE


class Router:
    """Current route plus the shell mounted for it."""

    def __init__(self, shell_factory: Callable[[str, Callable[[str], None]], PageShell], route: str = HOME_ROUTE):
        """
        Args:
            shell_factory: Builds an unmounted shell for a protected route, given the
                route and this router's `navigate`.
            route (str): The initial route.
        """
        self._shell_factory = shell_factory
        self._route = normalize_route(route)
        self._shell: Optional[PageShell] = None
        self.return_to: Optional[str] = None

    @property
    def route(self) -> str:
        return self._route

    @property
    def is_protected(self) -> bool:
        return self._route in PROTECTED_ROUTES

    def navigate(self, route: str) -> None:
        """Leaves the current page (unmounting its shell) and switches to `route`."""
        route = normalize_route(route)
        shell, self._shell = self._shell, None
        if shell is not None:
            shell.unmount()
            if route == LOGIN_ROUTE:
                self.return_to = shell.route
        logger.debug("Navigating %s -> %s", self._route, route)
        self._route = route

    def current_shell(self) -> Optional[PageShell]:
        """Returns the mounted shell for a protected route, mounting one if needed.

        Returns None on public routes, and when mounting redirected away.
        """
        if not self.is_protected:
            return None
        if self._shell is None:
            shell = self._shell_factory(self._route, self.navigate)
            self._shell = shell
            shell.mount()
        return self._shell

    def after_login(self) -> None:
        """Sends a freshly signed-in user back to the page they were turned away from."""
        target, self.return_to = self.return_to or HOME_ROUTE, None
        self.navigate(target)
