"""
This is the main entry point for the Saathi Streamlit application.

This script handles the following key responsibilities:
- Configures logging and the Streamlit page.
- Creates the process-wide resources once: the account registry, the translation
  catalog, the shared preference file and the location worker pool.
- Builds a fresh `AppContext` (auth session, language, location, router) for each
  new browser session and keeps it in the session state.
- Hands rendering over to `gui.show_app`, which draws the page for the current route.

Run with `streamlit run main.py`.
"""
# main.py

import concurrent.futures
import logging

import streamlit as st

import gui
from saathi.auth import AccountService
from saathi.config import get_settings
from saathi.context import create_app_context
from saathi.storage import open_storage
from saathi.translation import TranslationCatalog

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Set the basic configuration for the Streamlit page.
st.set_page_config(
    page_title="Saathi",
    page_icon="🙏",
    layout="centered"
)


# Shared resources
@st.cache_resource
def get_account_service():
    """
    Initializes and returns the account registry.

    Decorated with `@st.cache_resource` so every browser session shares one
    instance and one view of the account file.

    Returns:
        AccountService: The shared account registry.
    """
    return AccountService(open_storage(settings, settings.accounts_file))


@st.cache_resource
def get_preference_backend():
    """Returns the preference file shared by all sessions on this machine."""
    return open_storage(settings, settings.preferences_file)


@st.cache_resource
def get_translation_catalog():
    return TranslationCatalog.load()


@st.cache_resource
def get_location_executor():
    return concurrent.futures.ThreadPoolExecutor(max_workers=4, thread_name_prefix="saathi-location")


# Session State Management
# Each browser session gets its own providers and router.
if 'saathi' not in st.session_state:
    st.session_state.saathi = create_app_context(
        settings=settings,
        accounts=get_account_service(),
        catalog=get_translation_catalog(),
        preference_backend=get_preference_backend(),
        executor=get_location_executor(),
        session=st.session_state,
        initial_route=st.query_params.get("page"),
    )

# Main App Router
gui.show_app(st.session_state.saathi)
