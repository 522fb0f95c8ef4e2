"""
Integration tests for the Saathi application.

These tests verify that the page shell, the router and the providers work together:
authentication gating and redirects, preference hydration and write-through, the
one-shot location request and its cancellation, the overlay controls and language
switching without a remount.
"""
import dataclasses

import pytest

from saathi.auth import AuthSessionProvider
from saathi.context import AppContext
from saathi.exceptions import LocationPermissionDenied
from saathi.location import LocationProvider
from saathi.models import AvatarMood, EmergencyContact
from saathi.preferences import PreferenceStore
from saathi.shell import PageShell, ShellState
from saathi.storage import DisabledStorage
from saathi.translation import TranslationProvider

from conftest import CONNAUGHT_PLACE, FakeLocator


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


def visit(context, route):
    """Navigates to `route` and returns the shell mounted for it (None if it redirected)."""
    context.router.navigate(route)
    return context.router.current_shell()


def wait_for_location(shell):
    assert shell.location_request.wait(timeout=5)


# Gating

def test_unauthenticated_protected_route_redirects_once(make_context, preference_backend):
    """
    An unauthenticated visit to /shopping redirects to /login exactly once, without
    reading preferences or requesting a location.
    """
    locator = FakeLocator()
    context = make_context(locator=locator, route="/shopping")

    assert context.router.current_shell() is None
    assert context.router.route == "/login"

    navigations = []
    shell = context.make_shell("/shopping", navigations.append)
    shell.mount()
    context.auth.logout()

    assert shell.state is ShellState.REDIRECTED
    assert navigations == ["/login"]
    assert shell.mode_content() is None
    assert locator.calls == 0
    assert preference_backend.loads == 0


def test_unknown_auth_does_not_redirect_until_resolved(make_context):
    context = make_context(resolve=False, route="/wellness")
    shell = context.router.current_shell()

    assert shell.state is ShellState.LOADING
    assert shell.redirect_count == 0
    assert shell.user is None
    assert shell.mode_content() is None

    context.auth.resolve()

    assert shell.state is ShellState.REDIRECTED
    assert shell.redirect_count == 1
    assert not shell.mounted
    assert context.router.route == "/login"
    assert context.router.return_to == "/wellness"


def test_unknown_auth_resolving_to_signed_in_enters_ready(make_context, accounts):
    context = make_context(resolve=False, route="/schemes", session={"saathi_username": "asha"})
    shell = context.router.current_shell()
    assert shell.state is ShellState.LOADING

    context.auth.resolve()

    assert shell.state is ShellState.READY
    assert shell.user.username == "asha"


def test_redirected_shell_ignores_later_notifications(make_context):
    context = make_context(resolve=False, route="/religious")
    shell = context.router.current_shell()
    context.auth.resolve()
    version = shell.render_version

    context.auth.logout()
    context.translation.set_language("hi")

    assert shell.redirect_count == 1
    assert shell.render_version == version


def test_login_returns_to_requested_page(make_context, accounts):
    context = make_context(route="/shopping")
    assert context.router.current_shell() is None

    context.auth.login("asha", "V4lid!Pass")
    context.router.after_login()

    assert context.router.route == "/shopping"
    shell = context.router.current_shell()
    assert shell.is_ready
    assert shell.overlay.avatar_mood is AvatarMood.SHOPPING


# Preferences

def test_stored_font_size_sets_heading_scale(make_context, preference_backend):
    PreferenceStore(preference_backend, "asha").set("fontSize", "1.2")
    context = make_context(username="asha")

    shell = context.router.current_shell()

    assert shell.is_ready
    assert shell.heading_scale == pytest.approx(1.8)


def test_font_size_round_trips_through_a_fresh_mount(make_context):
    context = make_context(username="asha")
    shell = visit(context, "/wellness")

    shell.set_font_size(4.0)
    assert shell.preferences.font_size == 1.5

    shell = visit(context, "/wellness")
    assert shell.preferences.font_size == 1.5

    shell.set_font_size(0.1)
    shell = visit(context, "/")
    assert shell.preferences.font_size == 0.8


def test_contrast_is_clamped_and_persisted(make_context, preference_backend):
    context = make_context(username="asha")
    shell = context.router.current_shell()

    shell.set_contrast(2.0)

    assert shell.preferences.contrast == 1.2
    assert PreferenceStore(preference_backend, "asha").get("contrast") == "1.2"


def test_dark_mode_persists_across_pages(make_context):
    context = make_context(username="asha")
    home = context.router.current_shell()
    home.toggle_dark_mode()
    assert home.preferences.dark_mode is True

    shopping = visit(context, "/shopping")
    assert shopping.preferences.dark_mode is True
    assert shopping.mode_props.dark_mode is True
    assert shopping.mode_content().dark_mode is True


def test_preferences_are_not_shared_between_users(make_context):
    asha = make_context(username="asha")
    asha.router.current_shell().set_dark_mode(True)

    ravi = make_context(username="ravi")
    assert ravi.router.current_shell().preferences.dark_mode is False


def test_controls_are_ignored_until_ready(make_context, preference_backend):
    context = make_context(resolve=False)
    shell = context.router.current_shell()

    shell.toggle_dark_mode()
    shell.set_font_size(1.4)
    shell.toggle_settings()
    shell.open_emergency_call()

    assert shell.preferences.dark_mode is False
    assert shell.preferences.font_size == 1.0
    assert not shell.overlay.show_settings
    assert not shell.overlay.show_emergency_call
    assert preference_backend.saves == 0


def test_write_through_survives_unavailable_storage(settings, accounts, catalog, executor):
    """
    With storage disabled the controls still update the page and nothing is raised.
    """
    session = {}
    auth = AuthSessionProvider(accounts, session)
    auth.login("asha", "V4lid!Pass")
    context = AppContext(
        settings=settings,
        auth=auth,
        translation=TranslationProvider(catalog, "en"),
        location=LocationProvider(FakeLocator(), executor),
        preference_backend=DisabledStorage(),
    )
    shell = context.router.current_shell()

    shell.toggle_dark_mode()
    shell.set_font_size(1.3)

    assert shell.preferences.dark_mode is True
    assert shell.preferences.font_size == 1.3
    assert visit(context, "/").preferences.font_size == 1.0


# Location

def test_location_requested_once_when_absent(make_context):
    locator = FakeLocator()
    context = make_context(username="asha", locator=locator, route="/shopping")
    shell = context.router.current_shell()
    wait_for_location(shell)

    assert shell.location_request_count == 1
    assert locator.calls == 1
    assert shell.location == CONNAUGHT_PLACE
    assert shell.mode_content().sections[0].items[0].distance_km == 0.0

    # Reruns reuse the mounted shell.
    assert context.router.current_shell() is shell
    assert locator.calls == 1


def test_location_not_requested_when_present(make_context):
    locator = FakeLocator()
    context = make_context(username="asha", locator=locator)
    wait_for_location(context.router.current_shell())

    shell = visit(context, "/religious")

    assert shell.location_request is None
    assert shell.location_request_count == 0
    assert shell.location == CONNAUGHT_PLACE
    assert locator.calls == 1


def test_location_denied_degrades_mode_content(make_context):
    context = make_context(username="asha", locator=FakeLocator(error=LocationPermissionDenied()),
                           route="/shopping")
    shell = context.router.current_shell()
    wait_for_location(shell)

    assert shell.location is None
    assert shell.mode_content().sections[0].note_key == "location_unavailable"


def test_no_late_write_after_unmount(make_context):
    locator = FakeLocator(block=True)
    context = make_context(username="asha", locator=locator, route="/shopping")
    shell = context.router.current_shell()
    request = shell.location_request
    assert locator.started.wait(timeout=5)
    version = shell.render_version

    context.router.navigate("/")
    locator.release.set()
    assert request.wait(timeout=5)

    assert request.cancelled
    assert shell.location is None
    assert shell.render_version == version
    assert context.location.location is None


def test_location_arriving_while_leaving_the_page_is_ignored(make_context):
    """
    The page is left from inside the provider's notification, after the result was
    stored but before the shell's own callback runs. The shell must stay untouched.
    """
    locator = FakeLocator(block=True)
    context = make_context(username="asha", locator=locator, route="/shopping")
    context.location.subscribe(lambda: context.router.navigate("/"))
    shell = context.router.current_shell()
    request = shell.location_request
    version = shell.render_version

    locator.release.set()
    assert request.wait(timeout=5)

    assert not shell.mounted
    assert shell.location is None
    assert shell.render_version == version
    assert context.router.route == "/"


def test_late_location_updates_mounted_shell(make_context):
    locator = FakeLocator(block=True)
    context = make_context(username="asha", locator=locator)
    shell = context.router.current_shell()
    version = shell.render_version

    locator.release.set()
    wait_for_location(shell)

    assert shell.location == CONNAUGHT_PLACE
    assert shell.render_version == version + 1


# Overlays, language and logout

def test_emergency_contact_falls_back_to_default(make_context):
    shell = make_context(username="ravi").router.current_shell()
    shell.open_emergency_call()

    assert shell.overlay.show_emergency_call
    assert shell.emergency_contact == EmergencyContact("Rahul", "+91 98765 43210")

    shell.close_emergency_call()
    assert not shell.overlay.show_emergency_call
    assert shell.is_ready


def test_emergency_contact_uses_saved_contact(make_context):
    context = make_context(username="ravi")
    shell = context.router.current_shell()

    assert context.auth.update_emergency_contact("Priya", "+91 90000 00000")

    assert shell.emergency_contact == EmergencyContact("Priya", "+91 90000 00000")
    assert shell.is_ready


def test_overlay_state_is_fresh_per_mount(make_context):
    context = make_context(username="asha")
    shell = context.router.current_shell()
    shell.toggle_settings()
    shell.open_emergency_call()

    shell = visit(context, "/")

    assert not shell.overlay.show_settings
    assert not shell.overlay.show_emergency_call


def test_language_switch_without_remount(make_context):
    context = make_context(username="asha")
    shell = context.router.current_shell()
    version = shell.render_version
    assert shell.t("settings") == "Settings"

    shell.set_language("hi")

    assert context.router.current_shell() is shell
    assert shell.language == "hi"
    assert shell.t("settings") == "सेटिंग्स"
    assert shell.render_version == version + 1


def test_logout_clears_overlay_and_redirects(make_context):
    session = {}
    context = make_context(username="asha", session=session)
    shell = context.router.current_shell()
    shell.toggle_settings()

    shell.logout()

    assert not shell.overlay.show_settings
    assert shell.state is ShellState.REDIRECTED
    assert shell.redirect_count == 1
    assert context.router.route == "/login"
    assert "saathi_username" not in session

    shell.logout()
    assert shell.redirect_count == 1


# Welcome animation

def test_welcome_timer_then_gate(make_context):
    context = make_context(username="asha")
    clock = FakeClock()

    shell = PageShell("/", context, context.router.navigate, welcome_seconds=3.0, clock=clock)
    shell.mount()
    assert shell.state is ShellState.WELCOME
    assert shell.overlay.avatar_mood is AvatarMood.NEUTRAL
    assert shell.location_request is None

    clock.now += 1.0
    shell.tick()
    assert shell.state is ShellState.WELCOME
    assert shell.welcome_remaining == pytest.approx(2.0)

    clock.now += 2.5
    shell.tick()
    assert shell.state is ShellState.READY
    assert shell.overlay.avatar_mood is AvatarMood.HAPPY
    shell.unmount()


def test_welcome_timer_then_redirect(make_context):
    context = make_context()
    clock = FakeClock()

    shell = PageShell("/", context, context.router.navigate, welcome_seconds=3.0, clock=clock)
    shell.mount()
    assert shell.redirect_count == 0

    clock.now += 3.0
    shell.tick()
    assert shell.redirect_count == 1
    assert context.router.route == "/login"


def test_welcome_only_on_landing_route(make_context, settings):
    context = make_context(username="asha")
    context.settings = dataclasses.replace(settings, welcome_seconds=3.0)

    assert visit(context, "/").state is ShellState.WELCOME
    assert visit(context, "/wellness").state is ShellState.READY


def test_mode_routes_use_mode_avatar(make_context):
    context = make_context(username="asha")
    assert visit(context, "/religious").overlay.avatar_mood is AvatarMood.RELIGIOUS
    assert visit(context, "/").overlay.avatar_mood is AvatarMood.HAPPY
