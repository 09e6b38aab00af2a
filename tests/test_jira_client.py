from types import SimpleNamespace

import pytest

from newsletter_app.core.errors import JiraRequestError
from newsletter_app.core.jira_client import JiraAPI, build_jql, build_quick_wins_jql


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code
        self.text = str(payload)

    def json(self):
        return self._payload


class FakeSession:
    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def get(self, url, params=None, headers=None):
        self.calls.append((url, dict(params or {})))
        return self.responses.pop(0)


class SessionAPI(JiraAPI):
    def __init__(self, responses):
        self.server = "https://example.atlassian.net"
        self.client = SimpleNamespace(_session=FakeSession(responses))


def _page(keys, token=None, is_last=None):
    data = {"issues": [{"key": k} for k in keys]}
    if token:
        data["nextPageToken"] = token
    if is_last is not None:
        data["isLast"] = is_last
    return FakeResponse(data)


def test_build_jql_single_and_multi_project():
    assert build_jql(["EBP"], ["Done"]) == 'project = "EBP" AND status in ("Done") ORDER BY updated DESC'
    jql = build_jql(["A", "B"], ["In Progress", "UAT"])
    assert jql == 'project in ("A", "B") AND status in ("In Progress", "UAT") ORDER BY updated DESC'


def test_build_jql_updated_window():
    jql = build_jql(["A"], [], updated_between=("2025-03-01", "2025-09-01"))
    assert jql == "project = \"A\" AND updated >= '2025-03-01' AND updated < '2025-09-01' ORDER BY updated DESC"


def test_build_quick_wins_jql():
    jql = build_quick_wins_jql(["QW", "OPS"], "Quick Wins", "-4w")
    assert jql.startswith('project IN ("QW", "OPS") AND issuetype = "Quick Wins"')
    assert "resolutiondate >= -4w" in jql


def test_search_follows_next_page_token():
    api = SessionAPI([_page(["A-1", "A-2"], token="t1"), _page(["A-3"], token="t2", is_last=True)])
    issues = api.search_enhanced("project = A", fields=["summary", "status"])
    assert [i["key"] for i in issues] == ["A-1", "A-2", "A-3"]
    calls = api.client._session.calls
    assert calls[0][0] == "https://example.atlassian.net/rest/api/3/search/jql"
    assert calls[0][1]["fields"] == "summary,status"
    assert "nextPageToken" not in calls[0][1]
    assert calls[1][1]["nextPageToken"] == "t1"


def test_search_stops_without_token_or_issues():
    api = SessionAPI([_page(["A-1"])])
    assert len(api.search_enhanced("x")) == 1
    api = SessionAPI([_page(["A-1"], token="t"), _page([], token="t2")])
    assert len(api.search_enhanced("x")) == 1


def test_search_truncates_at_cap(caplog):
    api = SessionAPI([_page(["A-1", "A-2"], token="t1"), _page(["A-3", "A-4"], token="t2")])
    with caplog.at_level("WARNING"):
        issues = api.search_enhanced("x", max_results=3)
    assert [i["key"] for i in issues] == ["A-1", "A-2", "A-3"]
    assert "capped" in caplog.text


def test_http_error_raises():
    api = SessionAPI([FakeResponse({"errorMessages": ["bad jql"]}, status_code=400)])
    with pytest.raises(JiraRequestError) as exc:
        api.search_enhanced("x")
    assert exc.value.status_code == 400
    assert isinstance(exc.value, RuntimeError)


def test_fetch_comments_and_browse_url():
    api = SessionAPI([FakeResponse({"comments": [{"id": "1"}]})])
    assert api.fetch_comments("EBP-7") == [{"id": "1"}]
    assert api.client._session.calls[0][0].endswith("/rest/api/3/issue/EBP-7/comment")
    assert api.browse_url("EBP-7") == "https://example.atlassian.net/browse/EBP-7"


def test_missing_session_raises_runtime_error():
    api = SessionAPI([])
    api.client = SimpleNamespace()
    with pytest.raises(RuntimeError):
        api.fetch_comments("EBP-1")
