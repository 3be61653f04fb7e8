"""Chronological ordering of ledger entries."""

from typing import Iterable

from .models import LedgerEntry, SortDirection


def split_undated(
    entries: Iterable[LedgerEntry],
) -> tuple[list[LedgerEntry], list[LedgerEntry]]:
    """Separate entries with a usable timestamp from those without one."""
    dated: list[LedgerEntry] = []
    undated: list[LedgerEntry] = []
    for entry in entries:
        (undated if entry.occurred_at is None else dated).append(entry)
    return dated, undated


def sort_entries(
    entries: Iterable[LedgerEntry], direction: SortDirection = SortDirection.desc
) -> list[LedgerEntry]:
    """Sort dated entries by ``occurred_at``.

    ``sorted`` is stable and keeps equal timestamps in input order for both
    directions, including ``reverse=True``. Undated entries are dropped.
    """
    dated, _ = split_undated(entries)
    return sorted(
        dated,
        key=lambda e: e.occurred_at,
        reverse=SortDirection(direction) is SortDirection.desc,
    )
