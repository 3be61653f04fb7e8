"""Bucket ordered entries into day sections."""

from datetime import date, timedelta, tzinfo
from typing import Optional, Sequence

from .models import LedgerEntry, Section, SectionLabels, SortDirection

DAY_FORMAT = "%d/%m/%Y"
DEFAULT_LABELS = SectionLabels()


def local_day(entry: LedgerEntry, tz: Optional[tzinfo] = None) -> date:
    return entry.occurred_at.astimezone(tz).date()


def section_title(day: date, today: date, labels: SectionLabels = DEFAULT_LABELS) -> str:
    """Title of a day bucket: Today, Yesterday, or ``dd/mm/yyyy``."""
    if day == today:
        return labels.today
    if day == today - timedelta(days=1):
        return labels.yesterday
    return day.strftime(DAY_FORMAT)


def group_by_day(
    ordered: Sequence[LedgerEntry],
    direction: SortDirection,
    today: date,
    labels: SectionLabels = DEFAULT_LABELS,
    tz: Optional[tzinfo] = None,
) -> list[Section]:
    """Group sorted, dated entries into sections by local calendar day.

    Args:
        ordered: Entries as produced by ``sort_entries``
        direction: Sort direction, also used to order the sections
        today: Local date of the current assembly pass
        labels: Localized relative-day titles
        tz: Time zone for calendar days (system local when None)

    Returns:
        Sections ordered by day, entries in their incoming order
    """
    buckets: dict[date, list[LedgerEntry]] = {}
    for entry in ordered:
        buckets.setdefault(local_day(entry, tz), []).append(entry)

    days = sorted(buckets, reverse=SortDirection(direction) is SortDirection.desc)
    return [
        Section(
            title=section_title(day, today, labels),
            day=day,
            entries=tuple(buckets[day]),
        )
        for day in days
    ]
