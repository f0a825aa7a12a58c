"""Domain data models for issues, search pages, change histories, and status timelines."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

TOTAL_EXACT = "exact"
TOTAL_AT_LEAST = "at_least"
TOTAL_UNKNOWN = "unknown"


@dataclass(slots=True)
class Actor:
    name: str | None = None
    email_address: str | None = None
    display_name: str | None = None
    account_id: str | None = None

    @property
    def label(self) -> str:
        return self.display_name or self.name or self.account_id or ""


@dataclass(slots=True)
class IssueModel:
    key: str
    summary: str | None = None
    status: str | None = None
    issuetype: str | None = None
    priority: str | None = None
    assignee: Actor | None = None
    reporter: Actor | None = None
    created_raw: str | None = None
    updated_raw: str | None = None
    labels: list[str] = field(default_factory=list)
    fields: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Total:
    """Search total reported by the server.

    The cloud search endpoint often omits the total; ``at_least`` means more
    issues may exist beyond ``value`` and ``unknown`` means nothing is known.
    """

    kind: str
    value: int = 0

    @classmethod
    def exact(cls, value: int) -> Total:
        return cls(TOTAL_EXACT, value)

    @classmethod
    def at_least(cls, value: int) -> Total:
        return cls(TOTAL_AT_LEAST, value)

    @classmethod
    def unknown(cls) -> Total:
        return cls(TOTAL_UNKNOWN, 0)

    @property
    def is_exact(self) -> bool:
        return self.kind == TOTAL_EXACT


@dataclass(slots=True)
class SearchPage:
    issues: list[IssueModel]
    start_at: int
    max_results: int
    total: Total
    is_last: bool = False
    next_page_token: str | None = None

    @property
    def end(self) -> int:
        return self.start_at + len(self.issues)

    @property
    def has_more(self) -> bool:
        """Whether another page may hold further matches."""
        if not self.issues:
            return False
        if self.total.is_exact:
            return self.end < self.total.value
        if self.is_last:
            return False
        return len(self.issues) >= self.max_results


@dataclass(slots=True)
class FieldChangeItem:
    field: str | None
    fieldtype: str | None = None
    from_value: str | None = None
    from_string: str | None = None
    to_value: str | None = None
    to_string: str | None = None


@dataclass(slots=True)
class HistoryEntry:
    id: str | None
    author: Actor | None
    created: str | None
    items: list[FieldChangeItem] = field(default_factory=list)


@dataclass(slots=True)
class ChangelogPage:
    start_at: int
    max_results: int
    total: int
    histories: list[HistoryEntry] = field(default_factory=list)

    @property
    def end(self) -> int:
        return self.start_at + len(self.histories)


@dataclass(slots=True)
class HistoryPageSet:
    """All changelog pages fetched for one issue, in fetch order."""

    issue: IssueModel
    pages: list[ChangelogPage] = field(default_factory=list)
    # Continuation failure tolerated while paging, if any
    error: Exception | None = None

    @property
    def histories(self) -> list[HistoryEntry]:
        return [h for page in self.pages for h in page.histories]

    @property
    def retrieved(self) -> int:
        return sum(len(page.histories) for page in self.pages)

    @property
    def total(self) -> int:
        return self.pages[-1].total if self.pages else 0

    @property
    def complete(self) -> bool:
        return self.error is None and self.retrieved >= self.total


@dataclass(slots=True)
class StatusChange:
    timestamp: datetime
    author: Actor | None
    from_status: str
    to_status: str

    @property
    def is_creation(self) -> bool:
        return self.from_status == ""

    @property
    def author_name(self) -> str:
        return self.author.label if self.author else ""


@dataclass(slots=True)
class BatchResult:
    timelines: dict[str, list[StatusChange]] = field(default_factory=dict)
    failures: dict[str, Exception] = field(default_factory=dict)

    @property
    def succeeded(self) -> list[str]:
        return list(self.timelines)

    @property
    def failed(self) -> list[str]:
        return list(self.failures)
