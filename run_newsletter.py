"""Convenience launcher for the Streamlit app.

Usage:
  streamlit run run_newsletter.py

Automatically imports every module in ``newsletter_app/pages`` so each page
decorated with ``@register_page`` registers itself without manual edits here.
"""

import logging
from importlib import import_module
from pathlib import Path

import streamlit as st

from newsletter_app.app import main

st.set_page_config(layout="wide")
logger = logging.getLogger(__name__)


def _auto_init_newsletter_service():
    """Initialize the newsletter service from Streamlit secrets if available."""
    if "newsletter_service" in st.session_state:
        return

    from newsletter_app.pages.setup import connect, secrets_settings

    settings = secrets_settings()
    if settings.missing_jira_credentials:
        st.sidebar.warning("Jira secrets not found. Please use the Setup page.")
        return
    st.sidebar.info("Secrets found, attempting to connect to Jira...")
    try:
        connect(settings)
        st.sidebar.success("Jira connection successful!")
    except Exception as e:
        st.sidebar.error(f"Jira connection failed: {e}")
        # Clear any partial state so the user lands on setup
        st.session_state.pop("newsletter_service", None)


PAGES_DIR = Path(__file__).parent / "newsletter_app" / "pages"
for py in sorted(PAGES_DIR.glob("[!_]*.py")):
    mod_name = f"newsletter_app.pages.{py.stem}"
    try:
        import_module(mod_name)
    except Exception as e:  # pragma: no cover
        logger.error("Failed importing page %s: %s", mod_name, e)

_auto_init_newsletter_service()

if __name__ == "__main__":
    main()
