"""Mapping raw Jira JSON payloads into model instances."""

from __future__ import annotations

from typing import Any

from .models import (
    Actor,
    ChangelogPage,
    FieldChangeItem,
    HistoryEntry,
    IssueModel,
    SearchPage,
    Total,
)


def _require_mapping(value: Any, what: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"expected JSON object for {what}, got {type(value).__name__}")
    return value


def _require_list(value: Any, what: str) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"expected JSON array for {what}, got {type(value).__name__}")
    return value


def _as_int(value: Any, default: int = 0) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _name_of(value: Any) -> str | None:
    if isinstance(value, dict):
        return value.get("name")
    return None


def _text(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def map_actor(raw: Any) -> Actor | None:
    if not isinstance(raw, dict) or not raw:
        return None
    return Actor(
        name=raw.get("name"),
        email_address=raw.get("emailAddress"),
        display_name=raw.get("displayName"),
        account_id=raw.get("accountId"),
    )


def map_issue(raw: Any) -> IssueModel:
    raw = _require_mapping(raw, "issue")
    key = raw.get("key")
    if not key:
        raise ValueError("issue payload has no key")
    fields = raw.get("fields") or {}
    fields = _require_mapping(fields, f"{key} fields")
    return IssueModel(
        key=key,
        summary=fields.get("summary"),
        status=_name_of(fields.get("status")),
        issuetype=_name_of(fields.get("issuetype")),
        priority=_name_of(fields.get("priority")),
        assignee=map_actor(fields.get("assignee")),
        reporter=map_actor(fields.get("reporter")),
        created_raw=fields.get("created"),
        updated_raw=fields.get("updated"),
        labels=list(fields.get("labels") or []),
        fields=fields,
    )


def map_field_change(raw: Any) -> FieldChangeItem:
    raw = _require_mapping(raw, "history item")
    return FieldChangeItem(
        field=raw.get("field"),
        fieldtype=raw.get("fieldtype"),
        from_value=_text(raw.get("from")),
        from_string=_text(raw.get("fromString")),
        to_value=_text(raw.get("to")),
        to_string=_text(raw.get("toString")),
    )


def map_history(raw: Any) -> HistoryEntry:
    raw = _require_mapping(raw, "history entry")
    return HistoryEntry(
        id=_text(raw.get("id")),
        author=map_actor(raw.get("author")),
        created=raw.get("created"),
        items=[map_field_change(item) for item in _require_list(raw.get("items"), "history items")],
    )


def map_changelog_page(raw: Any, *, start_at: int = 0) -> ChangelogPage:
    """Map a changelog block (embedded or from the changelog endpoint).

    The paged ``issue/{key}/changelog`` endpoint names its array ``values``;
    the block embedded by ``expand=changelog`` uses ``histories``.
    """
    raw = _require_mapping(raw, "changelog")
    entries = raw.get("histories")
    if entries is None:
        entries = raw.get("values")
    histories = [map_history(h) for h in _require_list(entries, "changelog histories")]
    return ChangelogPage(
        start_at=_as_int(raw.get("startAt"), start_at),
        max_results=_as_int(raw.get("maxResults"), len(histories)),
        total=_as_int(raw.get("total"), start_at + len(histories)),
        histories=histories,
    )


def map_search_page(raw: Any, *, start_at: int, max_results: int, total: Total | None = None) -> SearchPage:
    """Map a search response body.

    ``total`` overrides the reported total; the cloud dialect derives its own.
    """
    raw = _require_mapping(raw, "search result")
    issues = [map_issue(i) for i in _require_list(raw.get("issues"), "issues")]
    if total is None:
        total = Total.exact(_as_int(raw.get("total"), start_at + len(issues)))
    return SearchPage(
        issues=issues,
        start_at=_as_int(raw.get("startAt"), start_at),
        max_results=_as_int(raw.get("maxResults"), max_results),
        total=total,
        is_last=bool(raw.get("isLast", False)),
        next_page_token=raw.get("nextPageToken"),
    )
