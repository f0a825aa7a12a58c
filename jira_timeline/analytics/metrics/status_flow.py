"""Status residency and transition analysis over reconstructed timelines.

Residency for entry ``i`` of a timeline is the time until entry ``i + 1``; the
last entry is open-ended and runs until ``now``. Durations are keyed by the
status the issue moved *into* and recurring statuses are summed.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta

import pandas as pd
import pytz

from jira_timeline.core.config import TIMEZONE
from jira_timeline.core.models import StatusChange

TRANSITION_ARROW = "→"


@dataclass(slots=True)
class StatusDurationStats:
    total: timedelta
    count: int

    @property
    def average(self) -> timedelta:
        if self.count <= 0:
            return timedelta(0)
        return self.total / self.count


def _now(now: datetime | None) -> datetime:
    return now if now is not None else datetime.now(tz=pytz.timezone(TIMEZONE))


def residency_spans(changes: Sequence[StatusChange], now: datetime | None = None) -> list[tuple[StatusChange, timedelta]]:
    """Pair each change with the time spent in its ``to_status``."""
    now = _now(now)
    spans: list[tuple[StatusChange, timedelta]] = []
    for idx, change in enumerate(changes):
        end = changes[idx + 1].timestamp if idx + 1 < len(changes) else now
        spans.append((change, end - change.timestamp))
    return spans


def status_durations(changes: Sequence[StatusChange], now: datetime | None = None) -> dict[str, timedelta]:
    """Time spent in each status for one issue.

    Parameters
    ----------
    changes : sequence of StatusChange
        Timeline in ascending order.
    now : datetime, optional
        End of the open-ended last residency; defaults to the current UTC time.

    Returns
    -------
    dict[str, timedelta]
        Status name to accumulated residency. The values sum to
        ``now - changes[0].timestamp``.
    """
    durations: defaultdict[str, timedelta] = defaultdict(timedelta)
    for change, span in residency_spans(changes, now):
        durations[change.to_status] += span
    return dict(durations)


def aggregate_status_durations(
    timelines: Iterable[Sequence[StatusChange]],
    now: datetime | None = None,
) -> dict[str, StatusDurationStats]:
    """Sum residency per status across issues; ``count`` is the number of issues."""
    now = _now(now)
    stats: dict[str, StatusDurationStats] = {}
    for changes in timelines:
        for status, duration in status_durations(changes, now).items():
            entry = stats.get(status)
            if entry is None:
                stats[status] = StatusDurationStats(total=duration, count=1)
            else:
                entry.total += duration
                entry.count += 1
    return stats


def status_counts(timelines: Iterable[Sequence[StatusChange]]) -> Counter[str]:
    counts: Counter[str] = Counter()
    for changes in timelines:
        counts.update(change.to_status for change in changes)
    return counts


def transition_counts(timelines: Iterable[Sequence[StatusChange]]) -> Counter[str]:
    """Count ``"From → To"`` transitions; creation entries are excluded."""
    counts: Counter[str] = Counter()
    for changes in timelines:
        counts.update(
            f"{change.from_status} {TRANSITION_ARROW} {change.to_status}"
            for change in changes
            if not change.is_creation
        )
    return counts


def format_duration(duration: timedelta) -> str:
    """Compact human duration: ``3d 4h``, ``2h 5m``, ``7m`` or ``< 1m``."""
    seconds = int(duration.total_seconds())
    days, rem = divmod(max(seconds, 0), 86400)
    hours, rem = divmod(rem, 3600)
    minutes = rem // 60
    if days:
        return f"{days}d {hours}h" if hours else f"{days}d"
    if hours:
        return f"{hours}h {minutes}m" if minutes else f"{hours}h"
    if minutes:
        return f"{minutes}m"
    return "< 1m"


def build_status_duration_frame(
    timelines: Mapping[str, Sequence[StatusChange]],
    now: datetime | None = None,
) -> pd.DataFrame:
    """Long-form residency records, one row per timeline entry.

    Returns
    -------
    pd.DataFrame
        Columns: key, status, entered, duration_days, is_current.
        Empty DataFrame when no timeline has entries.
    """
    now = _now(now)
    records: list[dict[str, object]] = []
    for key, changes in timelines.items():
        spans = residency_spans(changes, now)
        for idx, (change, span) in enumerate(spans):
            records.append(
                {
                    "key": key,
                    "status": change.to_status,
                    "entered": change.timestamp,
                    "duration_days": span.total_seconds() / 86400.0,
                    "is_current": idx == len(spans) - 1,
                }
            )
    if not records:
        return pd.DataFrame()
    return pd.DataFrame(records)


def build_status_change_frame(timelines: Mapping[str, Sequence[StatusChange]]) -> pd.DataFrame:
    """One row per transition: key, timestamp, from_status, to_status, author."""
    records = [
        {
            "key": key,
            "timestamp": change.timestamp,
            "from_status": change.from_status,
            "to_status": change.to_status,
            "author": change.author_name,
        }
        for key, changes in timelines.items()
        for change in changes
    ]
    if not records:
        return pd.DataFrame()
    df = pd.DataFrame(records)
    df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True, errors="coerce")
    return df
