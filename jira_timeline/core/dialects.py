"""API dialects: cloud (REST v3, bounded /search/jql) and server (REST v2, /search).

A dialect is chosen once, from the installation type, and injected into
``PaginatedSearch`` and ``ChangelogPager``. Each exposes the same three calls:
``search``, ``fetch_issue`` and ``fetch_changelog_page``.
"""

from __future__ import annotations

import logging
from threading import Event
from typing import Any

from .config import (
    API_VERSION_CLOUD,
    API_VERSION_LOCAL,
    INSTALLATION_CLOUD,
    INSTALLATION_LOCAL,
    SEARCH_ALL_FIELDS,
)
from .errors import DecodeError
from .jira_client import JiraAPI
from .jql import DEFAULT_BINDER, QueryBinder
from .mappers import map_changelog_page, map_issue, map_search_page
from .models import ChangelogPage, IssueModel, SearchPage, Total

logger = logging.getLogger(__name__)


def _decode(operation: str, mapper, *args, **kwargs):
    try:
        return mapper(*args, **kwargs)
    except (TypeError, ValueError, AttributeError) as exc:
        raise DecodeError(operation, str(exc)) from exc


class ServerDialect:
    """Legacy (server / data center) dialect: offset paging with exact totals."""

    name = INSTALLATION_LOCAL
    api_version = API_VERSION_LOCAL
    search_path = "search"

    def __init__(self, api: JiraAPI):
        self.api = api

    def _search_params(self, jql: str, start_at: int, max_results: int) -> dict[str, Any]:
        return {"jql": jql, "startAt": start_at, "maxResults": max_results}

    def _total(self, raw: dict[str, Any], start_at: int) -> Total | None:
        return None  # reported total is exact

    def prepare_query(self, jql: str | None) -> str:
        return (jql or "").strip()

    def search(self, jql: str | None, start_at: int = 0, max_results: int = 50, *, cancel: Event | None = None) -> SearchPage:
        operation = "search"
        query = self.prepare_query(jql)
        raw = self.api.get_json(
            self.search_path,
            params=self._search_params(query, start_at, max_results),
            api_version=self.api_version,
            operation=operation,
            cancel=cancel,
        )
        return _decode(
            operation,
            map_search_page,
            raw,
            start_at=start_at,
            max_results=max_results,
            total=self._total(raw, start_at),
        )

    def fetch_issue_raw(self, issue_key: str, *, cancel: Event | None = None) -> dict[str, Any]:
        return self.api.get_json(
            f"issue/{issue_key}",
            params={"expand": "changelog"},
            api_version=self.api_version,
            operation=f"fetch issue {issue_key}",
            cancel=cancel,
        )

    def fetch_issue(self, issue_key: str, *, cancel: Event | None = None) -> tuple[IssueModel, ChangelogPage]:
        """Fetch an issue with its first changelog page embedded."""
        operation = f"fetch issue {issue_key}"
        raw = self.fetch_issue_raw(issue_key, cancel=cancel)
        issue = _decode(operation, map_issue, raw)
        changelog = _decode(operation, map_changelog_page, raw.get("changelog") or {})
        return issue, changelog

    def fetch_changelog_page(self, issue_key: str, start_at: int, *, cancel: Event | None = None) -> ChangelogPage:
        operation = f"fetch changelog {issue_key}@{start_at}"
        raw = self.api.get_json(
            f"issue/{issue_key}/changelog",
            params={"startAt": start_at},
            api_version=self.api_version,
            operation=operation,
            cancel=cancel,
        )
        return _decode(operation, map_changelog_page, raw, start_at=start_at)


class CloudDialect(ServerDialect):
    """Cloud dialect: bounded JQL and a possibly-missing search total."""

    name = INSTALLATION_CLOUD
    api_version = API_VERSION_CLOUD
    search_path = "search/jql"

    def __init__(self, api: JiraAPI, binder: QueryBinder = DEFAULT_BINDER):
        super().__init__(api)
        self.binder = binder

    def prepare_query(self, jql: str | None) -> str:
        bound = self.binder.bind(jql)
        if bound != (jql or "").strip():
            logger.debug("Added default bound to unbounded JQL: %s", bound)
        return bound

    def _search_params(self, jql: str, start_at: int, max_results: int) -> dict[str, Any]:
        params = super()._search_params(jql, start_at, max_results)
        params["fields"] = SEARCH_ALL_FIELDS
        return params

    def _total(self, raw: dict[str, Any], start_at: int) -> Total | None:
        if not isinstance(raw, dict):
            return None
        reported = raw.get("total")
        issues = raw.get("issues") or []
        count = len(issues) if isinstance(issues, list) else 0
        if isinstance(reported, int) and reported > 0:
            return Total.exact(reported)
        if count == 0:
            if raw.get("isLast") or reported == 0:
                return Total.exact(start_at)
            return Total.unknown()
        if raw.get("isLast"):
            return Total.exact(start_at + count)
        return Total.at_least(start_at + count)


def dialect_for(api: JiraAPI, installation_type: str = INSTALLATION_CLOUD) -> ServerDialect:
    if installation_type == INSTALLATION_LOCAL:
        return ServerDialect(api)
    return CloudDialect(api)
