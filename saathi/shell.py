"""
This module defines the Page Shell, the per-route controller behind every protected page.

A shell is created and mounted when a route is visited and unmounted when the user
navigates away. While mounted it:
- Waits for the session to resolve and redirects to the login page when the user is
  not signed in, without exposing any protected content.
- Hydrates the user's visual preferences once, on entering READY.
- Requests the user's location at most once, and only if none is known yet.
- Owns the settings panel and emergency-call overlay flags for this mount.

State flow: WELCOME (landing route only) -> LOADING -> GATING -> READY, or
GATING -> REDIRECTED when the session is unauthenticated.
"""
# saathi/shell.py

from __future__ import annotations

import logging
import threading
import time
from enum import Enum
from typing import Callable, List, Optional

from saathi.models import (
    CONTRAST_RANGE,
    DEFAULT_EMERGENCY_CONTACT,
    FONT_SIZE_RANGE,
    AuthStatus,
    AvatarMood,
    EmergencyContact,
    ModeProps,
    UserPreferences,
    clamp,
)
from saathi.modes import MODES_BY_ROUTE, ModeContent, build_mode_content
from saathi.preferences import CONTRAST_KEY, DARK_MODE_KEY, FONT_SIZE_KEY, read_preferences

logger = logging.getLogger(__name__)

LOGIN_ROUTE = "/login"
HEADING_SCALE = 1.5


class ShellState(Enum):
    WELCOME = "welcome"
    LOADING = "loading"
    GATING = "gating"
    READY = "ready"
    REDIRECTED = "redirected"


class UIOverlayState:
    """Overlay flags owned by one shell mount. Never persisted or shared.

    Attributes:
        show_settings (bool): Whether the settings panel is open.
        show_emergency_call (bool): Whether the emergency-call overlay is open.
        avatar_mood (AvatarMood): Cosmetic avatar expression.
    """
    def __init__(self, avatar_mood=AvatarMood.NEUTRAL):
        self.show_settings = False
        self.show_emergency_call = False
        self.avatar_mood = avatar_mood


class PageShell:
    """Guarded, hydrated view state for one mount of one route."""

    def __init__(self, route: str, context, navigate: Callable[[str], None],
                 welcome_seconds: float = 0.0, clock: Callable[[], float] = time.monotonic):
        """
        Args:
            route (str): The route this shell renders.
            context: The session's `AppContext` (auth, translation, location, preferences).
            navigate: Called with a route to leave this page.
            welcome_seconds (float): Length of the welcome animation; 0 skips it.
            clock: Monotonic time source, in seconds.
        """
        self.route = route
        self.mode = MODES_BY_ROUTE.get(route)
        self._ctx = context
        self._navigate = navigate
        self._welcome_seconds = welcome_seconds
        self._clock = clock

        self.state: Optional[ShellState] = None
        self.preferences = UserPreferences()
        self.overlay = UIOverlayState(self._ready_mood() if welcome_seconds <= 0 else AvatarMood.NEUTRAL)
        self.location = None
        self.language = context.translation.language
        self.render_version = 0
        self.redirect_count = 0
        self.location_request_count = 0

        self._mounted = False
        self._lock = threading.RLock()
        self._store = None
        self._location_request = None
        self._welcome_started: Optional[float] = None
        self._unsubscribes: List[Callable[[], None]] = []

    @property
    def mounted(self) -> bool:
        return self._mounted

    @property
    def is_ready(self) -> bool:
        return self.state is ShellState.READY

    # Lifecycle

    def mount(self) -> None:
        if self._mounted:
            return
        self._mounted = True
        self._unsubscribes = [
            self._ctx.auth.subscribe(self._on_auth_change),
            self._ctx.translation.subscribe(self._on_language_change),
            self._ctx.location.subscribe(self._on_location_change),
        ]
        if self._welcome_seconds > 0:
            self._welcome_started = self._clock()
            self._set_state(ShellState.WELCOME)
            return
        self._set_state(ShellState.LOADING)
        self._evaluate()

    def unmount(self) -> None:
        """Detaches from the providers and cancels a pending location lookup."""
        with self._lock:
            if not self._mounted:
                return
            self._mounted = False
            for unsubscribe in self._unsubscribes:
                unsubscribe()
            self._unsubscribes = []
            if self._location_request is not None and not self._location_request.done():
                self._location_request.cancel()
        logger.debug("Shell for %s unmounted in state %s", self.route, self.state)

    def tick(self) -> None:
        """Advances the welcome timer; call on every rerun of the landing page."""
        if not self._mounted or self.state is not ShellState.WELCOME:
            return
        if self.welcome_remaining > 0:
            return
        self.overlay.avatar_mood = AvatarMood.HAPPY
        self._set_state(ShellState.LOADING)
        self._evaluate()

    @property
    def welcome_remaining(self) -> float:
        if self.state is not ShellState.WELCOME or self._welcome_started is None:
            return 0.0
        return max(0.0, self._welcome_seconds - (self._clock() - self._welcome_started))

    @property
    def location_request(self):
        return self._location_request

    def _set_state(self, state: ShellState) -> None:
        if state is not self.state:
            logger.debug("Shell %s: %s -> %s", self.route, self.state, state)
            self.state = state
            self.render_version += 1

    def _evaluate(self) -> None:
        if not self._mounted or self.state in (ShellState.WELCOME, ShellState.REDIRECTED):
            return
        status = self._ctx.auth.status
        if status is AuthStatus.UNKNOWN:
            self._set_state(ShellState.LOADING)
            return
        if self.state is ShellState.READY and status is AuthStatus.AUTHENTICATED:
            return
        self._set_state(ShellState.GATING)
        if status is AuthStatus.UNAUTHENTICATED:
            self._redirect_to_login()
            return
        self._enter_ready()

    def _enter_ready(self) -> None:
        self._store = self._ctx.preference_store(self._ctx.auth.user)
        self.preferences = read_preferences(self._store)
        self._set_state(ShellState.READY)
        self.location = self._ctx.location.location
        if self.location is None and self.location_request_count == 0:
            self.location_request_count += 1
            self._location_request = self._ctx.location.request_location()

    def _redirect_to_login(self) -> None:
        self._reset_overlay()
        self._set_state(ShellState.REDIRECTED)
        self.redirect_count += 1
        logger.info("Unauthenticated access to %s, redirecting to login", self.route)
        self._navigate(LOGIN_ROUTE)

    def _reset_overlay(self) -> None:
        self.overlay.show_settings = False
        self.overlay.show_emergency_call = False

    def _ready_mood(self) -> AvatarMood:
        return self.mode.avatar_mood if self.mode else AvatarMood.HAPPY

    # Provider notifications

    def _on_auth_change(self) -> None:
        if self._mounted:
            self._evaluate()

    def _on_language_change(self) -> None:
        if self._mounted:
            self.language = self._ctx.translation.language
            self.render_version += 1

    def _on_location_change(self) -> None:
        # Runs on a location worker thread.
        with self._lock:
            if self._mounted and self.state is ShellState.READY:
                self.location = self._ctx.location.location
                self.render_version += 1

    # Header and settings controls

    def toggle_settings(self) -> None:
        if self.is_ready:
            self.overlay.show_settings = not self.overlay.show_settings

    def open_emergency_call(self) -> None:
        if self.is_ready:
            self.overlay.show_emergency_call = True

    def close_emergency_call(self) -> None:
        self.overlay.show_emergency_call = False

    @property
    def emergency_contact(self) -> EmergencyContact:
        user = self._ctx.auth.user
        if user is not None and user.emergency_contact:
            return user.emergency_contact
        return DEFAULT_EMERGENCY_CONTACT

    def toggle_dark_mode(self) -> None:
        self.set_dark_mode(not self.preferences.dark_mode)

    def set_dark_mode(self, enabled: bool) -> None:
        if not self.is_ready:
            return
        self.preferences.dark_mode = bool(enabled)
        self._store.set(DARK_MODE_KEY, self.preferences.dark_mode)

    def set_font_size(self, value: float) -> None:
        if not self.is_ready:
            return
        self.preferences.font_size = clamp(value, FONT_SIZE_RANGE)
        self._store.set(FONT_SIZE_KEY, self.preferences.font_size)

    def set_contrast(self, value: float) -> None:
        if not self.is_ready:
            return
        self.preferences.contrast = clamp(value, CONTRAST_RANGE)
        self._store.set(CONTRAST_KEY, self.preferences.contrast)

    def set_language(self, code: str) -> None:
        self._ctx.translation.set_language(code)

    def logout(self) -> None:
        self._reset_overlay()
        self._ctx.auth.logout()
        # logout() is silent when the session was already cleared elsewhere.
        if self._mounted and self.state is not ShellState.REDIRECTED:
            self._evaluate()

    # Render helpers

    def t(self, key: str) -> str:
        return self._ctx.translation.t(key)

    @property
    def user(self):
        return self._ctx.auth.user if self.is_ready else None

    @property
    def heading_scale(self) -> float:
        return HEADING_SCALE * self.preferences.font_size

    @property
    def mode_props(self) -> ModeProps:
        return ModeProps(self.preferences.dark_mode, self.preferences.font_size, self.location)

    def mode_content(self) -> Optional[ModeContent]:
        if self.mode is None or not self.is_ready:
            return None
        return build_mode_content(self.mode, self.mode_props)
