"""Test configuration ensuring local package import when editable install not active.

If users invoke `pytest` outside the project's virtualenv, we still add the project
root to sys.path so `import jira_timeline` works. Also provides a routed fake of
``JiraAPI`` serving recorded JSON payloads.
"""

from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from jira_timeline.core.errors import OperationCancelled  # noqa: E402
from jira_timeline.core.jira_client import JiraAPI  # noqa: E402


class FakeAPI(JiraAPI):
    """Serves payloads by path.

    A route value may be a dict (returned as-is), an exception (raised), or a
    callable taking the request params and returning either.
    """

    def __init__(self, routes=None):
        self.server = "https://example.atlassian.net"
        self.routes = dict(routes or {})
        self.calls: list[tuple[str, str, dict]] = []

    def get_json(self, path, *, params=None, api_version="3", operation="request", cancel=None):
        if cancel is not None and cancel.is_set():
            raise OperationCancelled(f"{operation}: cancelled")
        params = dict(params or {})
        self.calls.append((api_version, path, params))
        if path not in self.routes:
            raise AssertionError(f"unexpected request: {path} {params}")
        value = self.routes[path]
        if callable(value) and not isinstance(value, dict):
            value = value(params)
        if isinstance(value, Exception):
            raise value
        return value


def history(hid, created, *items, author="alice"):
    return {
        "id": str(hid),
        "author": {"name": author, "displayName": author.title(), "emailAddress": f"{author}@example.com"}
        if author
        else None,
        "created": created,
        "items": [
            {"field": field, "fieldtype": "jira", "from": None, "fromString": src, "to": None, "toString": dst}
            for field, src, dst in items
        ],
    }


def issue_payload(key="DEMO-1", *, created="2024-01-01T09:00:00.000+0000", changelog=None, reporter="reggie"):
    return {
        "key": key,
        "fields": {
            "summary": f"Summary of {key}",
            "created": created,
            "updated": "2024-01-10T09:00:00.000+0000",
            "status": {"name": "Done"},
            "issuetype": {"name": "Task"},
            "priority": {"name": "High"},
            "reporter": {"name": reporter, "displayName": reporter.title()} if reporter else None,
            "assignee": None,
            "labels": ["x"],
        },
        "changelog": changelog if changelog is not None else {"startAt": 0, "maxResults": 100, "total": 0, "histories": []},
    }


# Five histories, newest first, served two per page.
MULTI_PAGE_HISTORIES = [
    history(5, "2024-01-10T10:00:00.000+0000", ("status", "In Review", "Done")),
    history(4, "2024-01-08T10:00:00.000+0000", ("summary", "old", "new")),
    history(3, "2024-01-06T10:00:00.000+0000", ("status", "In Progress", "In Review"), author="bob"),
    history(2, "2024-01-04T10:00:00.000+0000", ("status", "To Do", "In Progress")),
    history(1, "2024-01-02T10:00:00.000+0000", ("status", "Backlog", "To Do")),
]


def multi_page_routes(key="DEMO-1", *, fail_at=None, page_size=2):
    total = len(MULTI_PAGE_HISTORIES)

    def changelog(params):
        start = int(params["startAt"])
        if fail_at is not None and start == fail_at:
            return ConnectionError("connection reset")
        return {
            "startAt": start,
            "maxResults": page_size,
            "total": total,
            "histories": MULTI_PAGE_HISTORIES[start : start + page_size],
        }

    embedded = {
        "startAt": 0,
        "maxResults": page_size,
        "total": total,
        "histories": MULTI_PAGE_HISTORIES[:page_size],
    }
    return {
        f"issue/{key}": issue_payload(key, changelog=embedded),
        f"issue/{key}/changelog": changelog,
    }
