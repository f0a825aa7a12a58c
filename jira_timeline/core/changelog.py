"""Changelog pagination for a single issue."""

from __future__ import annotations

import logging
import math
from threading import Event

from .dialects import ServerDialect
from .errors import OperationCancelled
from .models import ChangelogPage, HistoryPageSet

logger = logging.getLogger(__name__)


class ChangelogPager:
    def __init__(self, dialect: ServerDialect):
        self.dialect = dialect

    def fetch_page(self, issue_key: str, start_at: int, *, cancel: Event | None = None) -> ChangelogPage:
        return self.dialect.fetch_changelog_page(issue_key, start_at, cancel=cancel)

    def fetch_history(self, issue_key: str, *, cancel: Event | None = None) -> HistoryPageSet:
        """Fetch the issue with its full changelog.

        The first request returns the issue fields with the first changelog
        page embedded; continuation pages are requested only while fewer
        histories than the declared total have been retrieved. Paging stops
        when the total is reached, when a page comes back empty, or after
        ``ceil(total / page_size) + 1`` requests in all.

        A failure on the first request propagates. A failure on a
        continuation page is logged and recorded on ``HistoryPageSet.error``;
        the pages retrieved so far are returned.
        """
        issue, first = self.dialect.fetch_issue(issue_key, cancel=cancel)
        page_set = HistoryPageSet(issue=issue, pages=[first])

        total = first.total
        retrieved = len(first.histories)
        if retrieved == 0 or first.start_at + retrieved >= total:
            return page_set

        page_size = first.max_results if first.max_results > 0 else retrieved
        max_calls = math.ceil(total / page_size) + 1
        calls = 1
        next_start = first.start_at + retrieved
        while retrieved < total:
            if calls >= max_calls:
                logger.warning(
                    "Changelog for %s still incomplete after %s requests (%s/%s); stopping",
                    issue_key,
                    calls,
                    retrieved,
                    total,
                )
                break
            calls += 1
            try:
                page = self.fetch_page(issue_key, next_start, cancel=cancel)
            except OperationCancelled:
                raise
            except Exception as exc:
                logger.warning(
                    "Changelog page for %s at %s failed; keeping %s of %s histories: %s",
                    issue_key,
                    next_start,
                    retrieved,
                    total,
                    exc,
                )
                page_set.error = exc
                break
            if not page.histories:
                break
            page_set.pages.append(page)
            retrieved += len(page.histories)
            next_start += len(page.histories)
            total = page.total
        logger.debug("Fetched %s changelog entries for %s in %s requests", retrieved, issue_key, calls)
        return page_set
