"""IssueService: orchestrates search, changelog paging, and timeline reconstruction."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from threading import Event

from .changelog import ChangelogPager
from .config import (
    BATCH_MAX_WORKERS,
    BATCH_PROGRESS_EVERY,
    DEFAULT_PAGE_SIZE,
    DEFAULT_RECENT_DAYS,
    INSTALLATION_CLOUD,
    ClientSettings,
)
from .dialects import ServerDialect, dialect_for
from .errors import OperationCancelled
from .history import reconstruct
from .jira_client import JiraAPI
from .models import BatchResult, IssueModel, SearchPage, StatusChange
from .search import PaginatedSearch

ProgressCallback = Callable[[str, int | None, int | None], None]

logger = logging.getLogger(__name__)


class IssueService:
    def __init__(
        self,
        api: JiraAPI,
        installation_type: str = INSTALLATION_CLOUD,
        *,
        dialect: ServerDialect | None = None,
    ):
        self.api = api
        self.dialect = dialect or dialect_for(api, installation_type)
        self.searcher = PaginatedSearch(self.dialect)
        self.pager = ChangelogPager(self.dialect)

    # ------------------ Search ------------------
    def search(
        self,
        jql: str | None,
        start_at: int = 0,
        max_results: int = DEFAULT_PAGE_SIZE,
        *,
        cancel: Event | None = None,
    ) -> SearchPage:
        return self.searcher.search(jql, start_at, max_results, cancel=cancel)

    def get_issue(self, issue_key: str, *, cancel: Event | None = None) -> IssueModel:
        issue, _changelog = self.dialect.fetch_issue(issue_key, cancel=cancel)
        return issue

    def get_recent_issues(
        self,
        days: int = DEFAULT_RECENT_DAYS,
        project: str | None = None,
        *,
        cancel: Event | None = None,
    ) -> list[IssueModel]:
        return self.searcher.fetch_recent(days, project, cancel=cancel)

    # ------------------ Status history ------------------
    def get_issue_status_changes(self, issue_key: str, *, cancel: Event | None = None) -> list[StatusChange]:
        """Ascending status timeline for one issue.

        Fails only when the issue itself cannot be fetched; a failing
        continuation page yields the transitions recovered so far.
        """
        page_set = self.pager.fetch_history(issue_key, cancel=cancel)
        return reconstruct(page_set)

    def track_issues(
        self,
        issue_keys: Iterable[str],
        *,
        max_workers: int = 1,
        cancel: Event | None = None,
        progress: ProgressCallback | None = None,
    ) -> BatchResult:
        """Reconstruct timelines for many issues.

        Per-issue failures are collected in ``BatchResult.failures`` and the
        batch carries on. Runs sequentially unless ``max_workers > 1``; results
        are merged in the calling thread either way. Setting ``cancel`` stops
        further requests; issues not yet processed are recorded as cancelled.
        """
        keys = list(dict.fromkeys(issue_keys))
        result = BatchResult()
        if not keys:
            return result
        total = len(keys)
        if progress:
            progress("Fetching status changes", 0, total)

        def _record(key: str, outcome: list[StatusChange] | Exception, done: int) -> None:
            if isinstance(outcome, Exception):
                if not isinstance(outcome, OperationCancelled):
                    logger.warning("Failed to get status changes for %s: %s", key, outcome)
                result.failures[key] = outcome
            else:
                result.timelines[key] = outcome
            if done % BATCH_PROGRESS_EVERY == 0 or done == total:
                logger.info("Processed %s/%s issues", done, total)
            if progress:
                progress("Fetching status changes", done, total)

        workers = max(1, min(max_workers, BATCH_MAX_WORKERS, total))
        if workers == 1:
            for done, key in enumerate(keys, start=1):
                _record(key, self._track_one(key, cancel), done)
        else:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                futures = {pool.submit(self._track_one, key, cancel): key for key in keys}
                for done, fut in enumerate(as_completed(futures), start=1):
                    _record(futures[fut], fut.result(), done)

        # Keep input order for callers iterating the mapping
        result.timelines = {k: result.timelines[k] for k in keys if k in result.timelines}
        result.failures = {k: result.failures[k] for k in keys if k in result.failures}
        return result

    def track_project(
        self,
        project: str,
        days: int = DEFAULT_RECENT_DAYS,
        *,
        max_workers: int = 1,
        cancel: Event | None = None,
        progress: ProgressCallback | None = None,
    ) -> BatchResult:
        if progress:
            progress(f"Querying issues for {project} (last {days} days)", None, None)
        issues = self.get_recent_issues(days, project, cancel=cancel)
        logger.info("Found %s issues in %s; fetching status changes", len(issues), project)
        return self.track_issues(
            (issue.key for issue in issues),
            max_workers=max_workers,
            cancel=cancel,
            progress=progress,
        )

    # ------------------ Internal Helpers ------------------
    def _track_one(self, issue_key: str, cancel: Event | None) -> list[StatusChange] | Exception:
        try:
            return self.get_issue_status_changes(issue_key, cancel=cancel)
        except Exception as exc:
            return exc


def build_service(settings: ClientSettings) -> IssueService:
    """Create an IssueService wired to the dialect of ``settings.installation_type``."""
    api = JiraAPI.from_settings(settings)
    return IssueService(api, settings.installation_type)
