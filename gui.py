"""
This module defines the graphical user interface (GUI) for the Saathi application using Streamlit.

It renders the public pages (login, register) and every protected page through its
`PageShell`: the header controls, the settings panel, the emergency-call overlay, the
landing page mode cards, the four mode pages and the browser location prompt. All state decisions (gating, preference
hydration, overlay flags, location lookups) are made by the shell; this module only draws
them and forwards user input.

The main entry point for the UI is `show_app`, which routes to the page for the
session's current route.
"""
# gui.py

import html

import streamlit as st
from streamlit_autorefresh import st_autorefresh
from streamlit_js_eval import get_geolocation

from saathi.exceptions import StorageUnavailableError
from saathi.models import AvatarMood, User
from saathi.modes import MODES
from saathi.routing import HOME_ROUTE, REGISTER_ROUTE
from saathi.shell import LOGIN_ROUTE, ShellState

AVATARS = {
    AvatarMood.NEUTRAL: "🙂",
    AvatarMood.HAPPY: "😊",
    AvatarMood.THINKING: "🤔",
    AvatarMood.RELIGIOUS: "🙏",
    AvatarMood.WELLNESS: "🧘",
    AvatarMood.SHOPPING: "🛍️",
    AvatarMood.SCHEMES: "📋",
}

LIGHT_BACKGROUND = "linear-gradient(to bottom, #fffbeb, #ffedd5)"
DARK_BACKGROUND = "linear-gradient(to bottom, #111827, #1f2937)"


def show_app(context):
    """
    The main router that displays the page for the session's current route.

    Protected routes are drawn through their page shell; if the shell redirects while
    mounting (or when its welcome timer ends), the login page is drawn instead.

    Args:
        context: The session's `AppContext`.
    """
    _report_browser_location(context)
    router = context.router
    shell = router.current_shell()
    if shell is not None:
        shell.tick()

    if router.route == LOGIN_ROUTE:
        show_login_form(context)
    elif router.route == REGISTER_ROUTE:
        show_register_form(context)
    elif shell is not None and shell.mounted:
        show_page_shell(context, shell)


def _report_browser_location(context):
    """Passes coordinates the browser reported in the URL to the session's locator."""
    params = st.query_params
    if context.locator is not None and "lat" in params and "lng" in params:
        context.locator.report(params["lat"], params["lng"])


def _t(context, key):
    return context.translation.t(key)


def _render_language_selector(context, shell=None):
    """Renders the language picker. Changing it re-resolves every visible key."""
    catalog = context.translation.catalog
    languages = catalog.languages
    current = context.translation.language
    choice = st.selectbox(
        _t(context, "language"),
        options=languages,
        index=languages.index(current) if current in languages else 0,
        format_func=catalog.language_name,
    )
    if choice != current:
        if shell is not None:
            shell.set_language(choice)
        else:
            context.translation.set_language(choice)
        st.rerun()


# Authentication Pages
def show_login_form(context):
    """Displays the login form and handles user authentication.

    Args:
        context: The session's `AppContext`.
    """
    router = context.router
    col1, col2, col3 = st.columns([1, 2, 1])
    with col2:
        st.markdown(f"<h1 style='text-align: center;'>🙏 {html.escape(_t(context, 'app_name'))}</h1>", unsafe_allow_html=True)
        _render_language_selector(context)
        with st.form("login_form"):
            username = st.text_input(_t(context, "username"))
            password = st.text_input(_t(context, "password"), type="password")
            submitted = st.form_submit_button(_t(context, "login"), use_container_width=True)

            if submitted:
                if not username or not password:
                    st.error(_t(context, "fields_required"))
                else:
                    result = context.auth.login(username.strip(), password)
                    if isinstance(result, User):
                        router.after_login()
                        st.rerun()
                    elif result == 'error':
                        st.error(_t(context, "login_error"))
                    else:
                        st.error(_t(context, "login_failed"))

        st.button(_t(context, "no_account"), on_click=router.navigate, args=(REGISTER_ROUTE,), use_container_width=True)


def show_register_form(context):
    """Displays the registration form and handles new account creation.

    Args:
        context: The session's `AppContext`.
    """
    router = context.router
    accounts = context.auth.accounts
    col1, col2, col3 = st.columns([1, 2, 1])
    with col2:
        st.markdown(f"<h2 style='text-align: center;'>{html.escape(_t(context, 'register'))}</h2>", unsafe_allow_html=True)
        with st.form("register_form"):
            full_name = st.text_input(_t(context, "full_name"))
            username = st.text_input(_t(context, "username"))
            password = st.text_input(_t(context, "password"), type="password", help=_t(context, "weak_password"))
            st.markdown("---")
            st.markdown(f"**{_t(context, 'emergency_contact')}**")
            contact_name = st.text_input(_t(context, "emergency_contact_name"))
            contact_phone = st.text_input(_t(context, "emergency_contact_phone"))

            submitted = st.form_submit_button(_t(context, "register"), use_container_width=True)

            if submitted:
                if not full_name or not username or not password:
                    st.error(_t(context, "fields_required"))
                else:
                    try:
                        result = accounts.register_user(username.strip(), password, full_name.strip(), contact_name, contact_phone)
                    except StorageUnavailableError:
                        result = 'storage_error'
                    if result == 'invalid_username':
                        st.error(_t(context, "invalid_username"))
                    elif result == 'weak_password':
                        st.error(_t(context, "weak_password"))
                    elif result == 'storage_error':
                        st.error(_t(context, "storage_error"))
                    elif result:
                        st.success(_t(context, "registered"))
                    else:
                        st.error(_t(context, "account_exists"))

        st.button(_t(context, "have_account"), on_click=router.navigate, args=(LOGIN_ROUTE,), use_container_width=True)


# Protected Pages
def show_page_shell(context, shell):
    """Draws a protected page according to its shell state.

    Args:
        context: The session's `AppContext`.
        shell: The mounted `PageShell` for the current route.
    """
    if shell.state is ShellState.WELCOME:
        _render_welcome_animation(context, shell)
        return
    if not shell.is_ready:
        # Nothing protected is drawn until the session is resolved.
        st.caption(_t(context, "loading"))
        return

    request = shell.location_request
    if request is not None and not request.done():
        if context.locator is None or _ask_browser_for_location(context, shell):
            request.wait(context.settings.location_timeout)

    _apply_theme(shell.preferences)
    _render_header(context, shell)
    if shell.overlay.show_settings:
        _render_settings_panel(context, shell)
    if shell.overlay.show_emergency_call:
        _render_emergency_call(context, shell)

    if shell.mode is None:
        _render_home(context, shell)
    else:
        _render_mode_page(context, shell)


def _ask_browser_for_location(context, shell):
    """Renders the browser's location prompt. Returns True once the browser has answered."""
    payload = get_geolocation(component_key=f"geolocation_{id(shell)}")
    return context.locator.receive(payload)


def _render_welcome_animation(context, shell):
    """Shows the landing splash and schedules a rerun for when its timer ends."""
    st.markdown(
        f"""
        <div style='text-align: center; padding-top: 20vh;'>
            <div style='font-size: 6rem;'>{AVATARS[shell.overlay.avatar_mood]}</div>
            <h1>{html.escape(_t(context, 'app_name'))}</h1>
        </div>
        """,
        unsafe_allow_html=True
    )
    interval_ms = int(shell.welcome_remaining * 1000) + 100
    st_autorefresh(interval=interval_ms, key=f"welcome_refresh_{id(shell)}")


def _apply_theme(preferences):
    """Injects the CSS for dark mode, text size and contrast."""
    background = DARK_BACKGROUND if preferences.dark_mode else LIGHT_BACKGROUND
    color = "#ffffff" if preferences.dark_mode else "#1f2937"
    st.markdown(
        f"""
        <style>
        .stApp {{
            background: {background};
            color: {color};
            filter: contrast({preferences.contrast:.2f});
            transition: background 0.3s;
        }}
        .stApp p, .stApp li, .stApp label, .stApp span {{
            font-size: {preferences.font_size:.2f}rem;
        }}
        div.stButton > button {{
            font-size: {preferences.font_size:.2f}rem;
            border-radius: 9999px;
        }}
        </style>
        """,
        unsafe_allow_html=True
    )


def _render_header(context, shell):
    """Renders the title, back button and the always-visible header controls."""
    router = context.router
    title_key = shell.mode.title_key if shell.mode else "app_name"
    back_col, title_col, call_col, settings_col, theme_col = st.columns([1, 5, 1, 1, 1])
    with back_col:
        if shell.mode is not None:
            st.button("←", key="back_btn", help=_t(context, "back"), on_click=router.navigate, args=(HOME_ROUTE,))
    with title_col:
        st.markdown(
            f"<h1 style='font-size: {shell.heading_scale:.2f}rem; margin: 0;'>{html.escape(_t(context, title_key))}</h1>",
            unsafe_allow_html=True
        )
    with call_col:
        st.button("📞", key="emergency_btn", help=_t(context, "emergency_call"), on_click=shell.open_emergency_call)
    with settings_col:
        st.button("⚙️", key="settings_btn", help=_t(context, "settings"), on_click=shell.toggle_settings)
    with theme_col:
        st.button("☀️" if shell.preferences.dark_mode else "🌙", key="theme_btn",
                  help=_t(context, "dark_mode"), on_click=shell.toggle_dark_mode)
    _render_language_selector(context, shell)


def _render_settings_panel(context, shell):
    """Renders the live-bound settings controls. Every change is saved immediately."""
    preferences = shell.preferences
    with st.container(border=True):
        st.markdown(
            f"<h2 style='font-size: {1.25 * preferences.font_size:.2f}rem;'>{html.escape(_t(context, 'settings'))}</h2>",
            unsafe_allow_html=True
        )
        dark_mode = st.toggle(_t(context, "dark_mode"), value=preferences.dark_mode)
        if dark_mode != preferences.dark_mode:
            shell.set_dark_mode(dark_mode)
            st.rerun()

        font_size = st.slider(
            f"{_t(context, 'text_size')} ({round(preferences.font_size * 100)}%)",
            min_value=0.8, max_value=1.5, value=round(preferences.font_size, 1), step=0.1,
        )
        if round(font_size, 1) != round(preferences.font_size, 1):
            shell.set_font_size(font_size)
            st.rerun()

        contrast = st.slider(
            f"{_t(context, 'contrast')} ({round(preferences.contrast * 100)}%)",
            min_value=0.8, max_value=1.2, value=round(preferences.contrast, 1), step=0.1,
        )
        if round(contrast, 1) != round(preferences.contrast, 1):
            shell.set_contrast(contrast)
            st.rerun()

        _render_emergency_contact_form(context, shell)
        st.button(_t(context, "logout"), key="logout_btn", on_click=shell.logout, use_container_width=True)


def _render_emergency_contact_form(context, shell):
    """Lets the user save the contact shown in the emergency-call overlay."""
    contact = shell.user.emergency_contact if shell.user else None
    with st.expander(_t(context, "emergency_contact")):
        with st.form("emergency_contact_form"):
            name = st.text_input(_t(context, "emergency_contact_name"), value=contact.name if contact else "")
            phone = st.text_input(_t(context, "emergency_contact_phone"), value=contact.phone if contact else "")
            if st.form_submit_button(_t(context, "save")):
                if context.auth.update_emergency_contact(name, phone):
                    st.success(_t(context, "saved"))
                else:
                    st.error(_t(context, "storage_error"))


def _render_emergency_call(context, shell):
    """Renders the emergency-call overlay seeded with the user's (or the default) contact."""
    contact = shell.emergency_contact
    with st.container(border=True):
        st.markdown(
            f"<h2 style='color: #dc2626; font-size: {1.5 * shell.preferences.font_size:.2f}rem;'>"
            f"🚨 {html.escape(_t(context, 'emergency_call'))}</h2>",
            unsafe_allow_html=True
        )
        st.markdown(f"### {contact.name}")
        st.markdown(f"**{contact.phone}**")
        st.link_button(f"📞 {_t(context, 'call_now')}", f"tel:{contact.phone.replace(' ', '')}", type="primary",
                       use_container_width=True)
        st.caption(_t(context, "calling_hint"))
        st.button(_t(context, "close"), key="close_emergency_btn", on_click=shell.close_emergency_call,
                  use_container_width=True)


def _render_avatar(shell, message=None):
    font_size = shell.preferences.font_size
    caption = f"<p style='font-size: {1.2 * font_size:.2f}rem;'>{html.escape(message)}</p>" if message else ""
    st.markdown(
        f"<div style='text-align: center;'><div style='font-size: 4rem;'>{AVATARS[shell.overlay.avatar_mood]}</div>{caption}</div>",
        unsafe_allow_html=True
    )


def _render_home(context, shell):
    """Renders the greeting and a card for each assistant mode."""
    _render_avatar(shell, _t(context, "welcome_message"))
    st.divider()
    for mode in MODES:
        st.button(
            f"{mode.icon} {_t(context, mode.title_key)}",
            key=f"mode_btn_{mode.key}",
            on_click=context.router.navigate,
            args=(mode.route,),
            use_container_width=True,
        )
        st.caption(_t(context, mode.description_key))


def _render_mode_page(context, shell):
    """Renders a mode's sections from its view model."""
    _render_avatar(shell)
    content = shell.mode_content()
    for section in content.sections:
        st.subheader(_t(context, section.heading_key))
        if section.note_key:
            st.info(_t(context, section.note_key))
        for item in section.items:
            line = f"**{item.title}** · {_t(context, item.detail_key)}"
            if item.distance_km is not None:
                line += f" · {item.distance_km} {_t(context, 'km_away')}"
            st.markdown(line)
        st.divider()
