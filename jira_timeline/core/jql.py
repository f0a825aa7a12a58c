"""JQL helpers: bound detection for the cloud search endpoint and query building.

The cloud ``/search/jql`` endpoint refuses "unbounded" queries. Detection is a
case-insensitive substring (or regex) match against a known vocabulary of
restricting predicates, not a JQL parse, so a query bounded only by a custom
field is reported as unbounded and gets the default bound added.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Union

from .config import BOUNDING_TERMS, DEFAULT_BOUND, DEFAULT_ORDER_BY

BoundingPredicate = Union[str, re.Pattern]

_ORDER_BY = re.compile(r"(?:^|\s)order\s+by\s", re.IGNORECASE)


def _quoted(text: str, index: int) -> bool:
    """Whether ``index`` falls inside a single- or double-quoted JQL string."""
    quote = None
    escaped = False
    for char in text[:index]:
        if escaped:
            escaped = False
        elif char == "\\":
            escaped = True
        elif quote is None and char in "\"'":
            quote = char
        elif char == quote:
            quote = None
    return quote is not None


def _order_by_start(jql: str) -> int | None:
    start = None
    for match in _ORDER_BY.finditer(jql):
        if not _quoted(jql, match.start()):
            start = match.start()
    return start


class QueryBinder:
    """Ensure a JQL expression carries at least one bounding predicate.

    Parameters
    ----------
    predicates : iterable of str or compiled regex
        Plain strings are matched as case-insensitive substrings; patterns
        are searched as given.
    default_bound : str
        Restriction prepended (ANDed) when no predicate matches.

    Examples
    --------
    >>> QueryBinder().bind("assignee = bob")
    'created >= -90d AND (assignee = bob)'
    >>> QueryBinder().bind("project = OBS")
    'project = OBS'
    """

    def __init__(
        self,
        predicates: Iterable[BoundingPredicate] = BOUNDING_TERMS,
        default_bound: str = DEFAULT_BOUND,
    ):
        self.predicates: tuple[BoundingPredicate, ...] = tuple(predicates)
        self.default_bound = default_bound

    def extend(self, *predicates: BoundingPredicate) -> QueryBinder:
        """Return a binder that also accepts ``predicates``."""
        return QueryBinder(self.predicates + tuple(predicates), self.default_bound)

    def is_bounded(self, jql: str | None) -> bool:
        text = (jql or "").lower()
        for predicate in self.predicates:
            if isinstance(predicate, re.Pattern):
                if predicate.search(jql or ""):
                    return True
            elif predicate.lower() in text:
                return True
        return False

    def bind(self, jql: str | None) -> str:
        jql = (jql or "").strip()
        if self.is_bounded(jql):
            return jql
        # ORDER BY must stay outside the parenthesised filter
        split = _order_by_start(jql)
        order = ""
        if split is not None:
            order = jql[split:].strip()
            jql = jql[:split].strip()
        if not jql:
            bound = self.default_bound
        else:
            bound = f"{self.default_bound} AND ({jql})"
        return f"{bound} {order}" if order else bound


DEFAULT_BINDER = QueryBinder()


def is_jql_bounded(jql: str | None) -> bool:
    return DEFAULT_BINDER.is_bounded(jql)


def bind_jql(jql: str | None) -> str:
    return DEFAULT_BINDER.bind(jql)


def build_jql(
    *,
    project: str | None = None,
    start_date: str | None = None,
    date_field: str = "created",
    jql: str | None = None,
    order_by: str | None = DEFAULT_ORDER_BY,
) -> str:
    """Combine common filters into one JQL string.

    ``start_date`` accepts anything JQL does for date comparison, e.g.
    ``"2024-01-31"``, ``"2024-01-31 10:00"`` or a relative ``"-7d"``.
    """
    parts: list[str] = []
    if project:
        parts.append(f"project = {project}")
    if start_date:
        parts.append(f"{date_field or 'created'} >= '{start_date}'")
    if jql:
        parts.append(f"({jql})")
    query = " AND ".join(parts)
    if order_by:
        query = f"{query} ORDER BY {order_by}".strip()
    return query


def date_range_jql(start_date: str, end_date: str, date_field: str = "created") -> str:
    field = date_field or "created"
    return f"{field} >= '{start_date}' AND {field} <= '{end_date}' ORDER BY {field} DESC"

