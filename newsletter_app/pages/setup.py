"""Connection setup page: collect Jira/OpenAI credentials and initialize NewsletterService."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping

import streamlit as st

from newsletter_app.app import SETUP_PAGE, register_page
from newsletter_app.core.config import NewsletterSettings
from newsletter_app.core.jira_client import JiraAPI
from newsletter_app.core.service import NewsletterService
from newsletter_app.editorial.generator import build_text_generator

logger = logging.getLogger(__name__)


def secrets_settings() -> NewsletterSettings:
    """Settings from Streamlit secrets (a ``[jira]`` section wins over top-level keys).

    Environment variables fill in whatever the secrets do not set.
    """
    merged: dict[str, str] = dict(os.environ)
    try:
        for key, value in st.secrets.items():
            if not isinstance(value, Mapping):
                merged[key] = str(value)
        for key, value in st.secrets.get("jira", {}).items():
            merged[key] = str(value)
    except Exception as e:
        # No secrets.toml; environment only
        logger.debug("Streamlit secrets unavailable: %s", e)
    return NewsletterSettings.from_env(merged)


def connect(settings: NewsletterSettings) -> NewsletterService:
    api = JiraAPI(settings.jira_server, settings.jira_email, settings.jira_api_token)
    service = NewsletterService(api, generator=build_text_generator(settings), settings=settings)
    st.session_state["newsletter_settings"] = settings
    st.session_state["newsletter_service"] = service
    return service


@register_page(SETUP_PAGE)
def setup_page():
    st.title("Jira Connection Setup")
    st.caption("Enter credentials (use secrets manager in production).")

    defaults = st.session_state.get("newsletter_settings") or secrets_settings()

    server = st.text_input("Jira Domain or URL", value=defaults.jira_domain or "")
    email = st.text_input("Email / Username", value=defaults.jira_email or "")
    token = st.text_input("API Token", type="password", value=defaults.jira_api_token or "")
    projects = st.text_input("Project keys (comma separated)", value=", ".join(defaults.project_keys))
    statuses = st.text_input("Statuses (comma separated)", value=", ".join(defaults.statuses))
    quick_wins = st.text_input(
        "Quick Wins projects (comma separated)", value=", ".join(defaults.quick_wins_projects)
    )
    openai_key = st.text_input(
        "OpenAI API Key (optional)",
        type="password",
        value=defaults.openai_api_key or "",
        help="Without a key the newsletter uses deterministic copy.",
    )
    init_btn = st.button("Initialize Connection", type="primary")

    if init_btn:
        if not (server and email and token):
            st.error("Jira domain, email and API token are required.")
            return
        settings = NewsletterSettings.from_env(
            {
                "JIRA_DOMAIN": server,
                "JIRA_EMAIL": email,
                "JIRA_API_TOKEN": token,
                "JIRA_PROJECT_KEY": projects,
                "JIRA_STATUSES": statuses,
                "QUICK_WINS_PROJECTS": quick_wins,
                "QUICK_WINS_ISSUE_TYPE": defaults.quick_wins_issue_type,
                "OPENAI_API_KEY": openai_key,
                "OPENAI_MODEL": defaults.openai_model,
                "OPENAI_PRIORITIES_CACHE_DAYS": str(defaults.priorities_cache_days),
                "NEWSLETTER_CACHE_DIR": defaults.cache_dir,
                "NEWSLETTER_EXCLUDE": ",".join(defaults.excluded_terms),
                "NEWSLETTER_TIMEZONE": defaults.timezone,
            }
        )
        try:
            connect(settings)
            st.success("Connection initialized.")
        except Exception as e:  # pragma: no cover
            st.error(f"Failed to initialize Jira client: {e}")

    if "newsletter_service" in st.session_state:
        service = st.session_state["newsletter_service"]
        mode = "OpenAI" if service.generator.available else "offline fallbacks"
        st.info(f"NewsletterService ready (editorial text: {mode}).")
