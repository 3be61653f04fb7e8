"""Assemble the feed buffer into the sectioned view model."""

from datetime import datetime, tzinfo
from typing import Optional, Sequence

from .filters import apply_filters
from .grouping import DEFAULT_LABELS, group_by_day
from .logging_setup import get_logger
from .models import (
    FilterCriteria,
    LedgerEntry,
    LedgerView,
    PageCursor,
    SectionLabels,
    SortDirection,
)
from .sorting import sort_entries, split_undated
from .summary import summarize

logger = get_logger(__name__)


def assemble(
    buffer: Sequence[LedgerEntry],
    cursor: PageCursor,
    criteria: FilterCriteria,
    direction: SortDirection = SortDirection.desc,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
    labels: SectionLabels = DEFAULT_LABELS,
) -> LedgerView:
    """Filter, sort, summarize and group the buffer.

    Pure given ``now``: the current time is read at most once per pass and
    only when ``now`` is not supplied.

    Args:
        buffer: Entries fetched so far, in fetch order
        cursor: Current pagination cursor
        criteria: Active filters; only the client-side part is applied here
        direction: Chronological sort direction
        now: Reference time for the Today/Yesterday titles
        tz: Time zone for calendar dates (system local when None)
        labels: Localized relative-day titles

    Returns:
        LedgerView with sections and the summary of every visible entry
    """
    reference = now if now is not None else datetime.now(tz)
    today = reference.astimezone(tz).date() if reference.tzinfo else reference.date()

    filtered = apply_filters(buffer, criteria, tz)
    dated, undated = split_undated(filtered)
    if undated:
        logger.debug(
            "Excluded %d entries without a valid timestamp: %s",
            len(undated),
            ", ".join(e.id for e in undated),
        )

    ordered = sort_entries(dated, direction)
    sections = group_by_day(ordered, direction, today, labels, tz)

    return LedgerView(
        sections=tuple(sections),
        summary=summarize(ordered),
        has_more=cursor.has_more,
        undated_count=len(undated),
    )
