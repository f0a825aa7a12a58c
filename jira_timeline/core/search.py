"""Paginated issue search over either dialect, plus auto-paging helpers."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterator
from threading import Event

from .config import DEFAULT_BATCH_SIZE, DEFAULT_ORDER_BY, DEFAULT_PAGE_SIZE
from .dialects import ServerDialect
from .jql import build_jql, date_range_jql
from .models import IssueModel, SearchPage

logger = logging.getLogger(__name__)

# Upper bound on requests when the total is not exact and the server keeps
# returning full pages.
MAX_SEARCH_PAGES = 1000


class PaginatedSearch:
    def __init__(self, dialect: ServerDialect):
        self.dialect = dialect

    def search(
        self,
        jql: str | None,
        start_at: int = 0,
        max_results: int = DEFAULT_PAGE_SIZE,
        *,
        cancel: Event | None = None,
    ) -> SearchPage:
        """Fetch one page of matching issues.

        No retries are attempted here; errors from the first (and only) request
        propagate to the caller.
        """
        if start_at < 0:
            raise ValueError("start_at must be >= 0")
        if max_results <= 0:
            raise ValueError("max_results must be positive")
        page = self.dialect.search(jql, start_at, max_results, cancel=cancel)
        logger.debug(
            "Search page start=%s returned=%s total=%s(%s)",
            start_at,
            len(page.issues),
            page.total.kind,
            page.total.value,
        )
        return page

    def iter_pages(
        self,
        jql: str | None,
        *,
        page_size: int = DEFAULT_BATCH_SIZE,
        limit: int | None = None,
        cancel: Event | None = None,
    ) -> Iterator[SearchPage]:
        start_at = 0
        fetched = 0
        pages = 0
        served = 0
        max_pages = MAX_SEARCH_PAGES
        while True:
            page = self.search(jql, start_at, page_size, cancel=cancel)
            pages += 1
            yield page
            fetched += len(page.issues)
            # the server may cap maxResults below the requested page size
            served = max(served, len(page.issues))
            if page.total.is_exact and served:
                max_pages = min(max_pages, math.ceil(page.total.value / served) + 1)
            if limit is not None and fetched >= limit:
                return
            if not page.has_more:
                return
            if pages >= max_pages:
                logger.warning("Stopping search pagination after %s pages for %r", pages, jql)
                return
            start_at += len(page.issues)

    def iter_issues(
        self,
        jql: str | None,
        *,
        page_size: int = DEFAULT_BATCH_SIZE,
        limit: int | None = None,
        cancel: Event | None = None,
    ) -> Iterator[IssueModel]:
        count = 0
        for page in self.iter_pages(jql, page_size=page_size, limit=limit, cancel=cancel):
            for issue in page.issues:
                if limit is not None and count >= limit:
                    return
                count += 1
                yield issue

    def fetch_all(
        self,
        *,
        project: str | None = None,
        start_date: str | None = None,
        date_field: str = "created",
        jql: str | None = None,
        order_by: str | None = DEFAULT_ORDER_BY,
        limit: int | None = None,
        page_size: int = DEFAULT_BATCH_SIZE,
        cancel: Event | None = None,
    ) -> list[IssueModel]:
        """Fetch every issue matching the combined filters."""
        query = build_jql(
            project=project,
            start_date=start_date,
            date_field=date_field,
            jql=jql,
            order_by=order_by,
        )
        return list(self.iter_issues(query, page_size=page_size, limit=limit, cancel=cancel))

    def fetch_by_date_range(
        self,
        start_date: str,
        end_date: str,
        date_field: str = "created",
        *,
        cancel: Event | None = None,
    ) -> list[IssueModel]:
        return list(self.iter_issues(date_range_jql(start_date, end_date, date_field), cancel=cancel))

    def fetch_recent(self, days: int, project: str | None = None, *, cancel: Event | None = None) -> list[IssueModel]:
        return self.fetch_all(project=project, start_date=f"-{days}d", date_field="created", cancel=cancel)
