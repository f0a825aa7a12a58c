"""Status timeline reconstruction from changelog histories."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime

import pytz

from .config import STATUS_FIELD, TIMESTAMP_FORMATS, TIMEZONE
from .models import HistoryEntry, HistoryPageSet, IssueModel, StatusChange

logger = logging.getLogger(__name__)


def try_parse_timestamp(value: str | None, formats: Sequence[str] = TIMESTAMP_FORMATS) -> datetime | None:
    """Parse a Jira timestamp with each format in turn; None if none match."""
    if not value:
        return None
    text = str(value).strip()
    for fmt in formats:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def parse_timestamp(value: str | None, formats: Sequence[str] = TIMESTAMP_FORMATS) -> datetime:
    """Parse a history timestamp, substituting the current time when unparseable.

    One malformed entry should not fail a whole reconstruction, so this never
    raises; the substituted instant is logged.

    Examples
    --------
    >>> parse_timestamp("2024-01-05T10:00:00.000+0000").isoformat()
    '2024-01-05T10:00:00+00:00'
    """
    parsed = try_parse_timestamp(value, formats)
    if parsed is not None:
        return parsed
    logger.warning("Unparseable changelog timestamp %r; using current time", value)
    return datetime.now(tz=pytz.timezone(TIMEZONE))


def extract_status_changes(histories: Iterable[HistoryEntry]) -> list[StatusChange]:
    """One StatusChange per status item, in the order the histories were given."""
    changes: list[StatusChange] = []
    for entry in histories:
        timestamp = None
        for item in entry.items:
            if item.field != STATUS_FIELD:
                continue
            if timestamp is None:
                timestamp = parse_timestamp(entry.created)
            changes.append(
                StatusChange(
                    timestamp=timestamp,
                    author=entry.author,
                    from_status=item.from_string or "",
                    to_status=item.to_string or "",
                )
            )
    return changes


def to_chronological(changes: list[StatusChange]) -> list[StatusChange]:
    """Flip newest-first discovery order, then stable-sort by timestamp.

    Changelog pages arrive newest-first, so the reversal alone yields ascending
    order; the sort keeps the ordering guarantee when a server pages oldest-first
    while preserving discovery order among equal timestamps.
    """
    changes.reverse()
    changes.sort(key=lambda change: change.timestamp)
    return changes


def initial_status_change(issue: IssueModel, earliest: StatusChange) -> StatusChange | None:
    """Synthesize the creation entry for the status the issue started in."""
    if not earliest.from_status:
        return None
    created = try_parse_timestamp(issue.created_raw)
    if created is None:
        return None
    return StatusChange(
        timestamp=created,
        author=issue.reporter,
        from_status="",
        to_status=earliest.from_status,
    )


def reconstruct_status_changes(issue: IssueModel, histories: Iterable[HistoryEntry]) -> list[StatusChange]:
    """Build the ascending status timeline for ``issue``.

    Parameters
    ----------
    issue : IssueModel
        Issue snapshot; supplies the creation time and reporter.
    histories : iterable of HistoryEntry
        Changelog entries in fetch order (pages concatenated).

    Returns
    -------
    list[StatusChange]
        Transitions ordered by timestamp. The first element is a creation entry
        (empty ``from_status``) whenever the original status can be inferred.
    """
    changes = to_chronological(extract_status_changes(histories))
    if not changes:
        return changes
    initial = initial_status_change(issue, changes[0])
    if initial is not None:
        changes.insert(0, initial)
        if initial.timestamp > changes[1].timestamp:
            logger.debug("Creation time of %s is after its first transition", issue.key)
            changes.sort(key=lambda change: change.timestamp)
    return changes


def reconstruct(page_set: HistoryPageSet) -> list[StatusChange]:
    return reconstruct_status_changes(page_set.issue, page_set.histories)
