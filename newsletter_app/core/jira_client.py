"""Jira API client wrapper (REST v3 enhanced search pagination + issue comments)."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from jira import JIRA

from .config import JIRA_SEARCH_MAX_RESULTS, JIRA_SEARCH_PAGE_SIZE
from .errors import JiraRequestError

logger = logging.getLogger(__name__)


def _quote_all(values: Sequence[str]) -> str:
    return ", ".join(f'"{v}"' for v in values)


def build_jql(
    project_keys: Sequence[str],
    statuses: Sequence[str],
    *,
    updated_between: tuple[str, str] | None = None,
) -> str:
    """JQL for the main newsletter query, newest updates first.

    >>> build_jql(["EBP"], ["Done"])
    'project = "EBP" AND status in ("Done") ORDER BY updated DESC'
    """
    parts: list[str] = []
    if len(project_keys) == 1:
        parts.append(f'project = "{project_keys[0]}"')
    elif len(project_keys) > 1:
        parts.append(f"project in ({_quote_all(project_keys)})")
    if statuses:
        parts.append(f"status in ({_quote_all(statuses)})")
    if updated_between:
        start, end = updated_between
        parts.append(f"updated >= '{start}' AND updated < '{end}'")
    return f"{' AND '.join(parts)} ORDER BY updated DESC".strip()


def build_quick_wins_jql(project_keys: Sequence[str], issue_type: str, lookback: str) -> str:
    if len(project_keys) == 1:
        projects = f'project = "{project_keys[0]}"'
    else:
        projects = f"project IN ({_quote_all(project_keys)})"
    return (
        f'{projects} AND issuetype = "{issue_type}" AND resolutiondate >= {lookback} '
        "ORDER BY resolutiondate DESC"
    )


class JiraAPI:
    def __init__(self, server: str, email: str, token: str):
        self.server = server.rstrip("/")
        self.client = JIRA(
            basic_auth=(email, token), options={"server": self.server, "rest_api_version": "3"}
        )

    def _session(self):
        session = getattr(self.client, "_session", None)
        if session is None:
            raise RuntimeError("JIRA session unavailable")
        return session

    def _get_json(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        url = f"{self.server}{path}"
        resp = self._session().get(url, params=params or {}, headers={"Accept": "application/json"})
        if resp.status_code >= 400:
            raise JiraRequestError(
                f"GET {path} failed {resp.status_code}: {resp.text[:200]}",
                status_code=resp.status_code,
            )
        return resp.json()

    def browse_url(self, issue_key: str) -> str:
        return f"{self.server}/browse/{issue_key}"

    def search_enhanced(
        self,
        jql: str,
        fields: Sequence[str] | None = None,
        page_size: int = JIRA_SEARCH_PAGE_SIZE,
        max_results: int = JIRA_SEARCH_MAX_RESULTS,
    ) -> list[dict[str, Any]]:
        """Collect every page of ``/rest/api/3/search/jql`` up to ``max_results`` issues.

        Pagination follows ``nextPageToken`` until the server reports the last
        page. A failed page aborts the whole search; nothing is retried.
        """
        params: dict[str, Any] = {"jql": jql, "maxResults": page_size}
        if fields:
            params["fields"] = ",".join(fields)
        out: list[dict[str, Any]] = []
        token = None
        while True:
            qp = dict(params)
            if token:
                qp["nextPageToken"] = token
            data = self._get_json("/rest/api/3/search/jql", params=qp)
            issues = data.get("issues") or []
            out.extend(issues)
            if len(out) >= max_results:
                logger.warning("Search capped at %s results for JQL: %s", max_results, jql)
                return out[:max_results]
            token = data.get("nextPageToken")
            if not token or not issues or data.get("isLast") is True:
                break
        logger.debug("Search returned %s issue(s) for JQL: %s", len(out), jql)
        return out

    def fetch_comments(self, issue_key: str) -> list[dict[str, Any]]:
        """Raw comment objects (ADF bodies) for one issue."""
        data = self._get_json(f"/rest/api/3/issue/{issue_key}/comment")
        return list(data.get("comments") or [])
