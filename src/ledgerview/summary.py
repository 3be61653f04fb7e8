"""Totals over the visible entries and their header display."""

from typing import Sequence

from .models import LedgerEntry, SummaryDisplay, SummarySnapshot
from .normalizers import parse_amount


def format_grouped(amount: int) -> str:
    """Render an integer with ``.`` thousands separators (``1234567`` -> ``1.234.567``)."""
    return f"{amount:,}".replace(",", ".")


def format_amount(amount: int, suffix: str = " đ") -> str:
    """Format a total for display, e.g. ``225000`` -> ``225.000 đ``."""
    return format_grouped(amount) + suffix


def summarize(entries: Sequence[LedgerEntry]) -> SummarySnapshot:
    """Sum amounts and count entries of the filtered, sorted list.

    An amount that is not an integer is parsed leniently and counts as 0
    when it cannot be read.
    """
    total = 0
    for entry in entries:
        amount = entry.amount
        total += amount if isinstance(amount, int) else parse_amount(amount)
    return SummarySnapshot(total_amount=total, count=len(entries))


def summary_display(snapshot: SummarySnapshot, suffix: str = " đ") -> SummaryDisplay:
    return SummaryDisplay(
        total_amount=format_amount(snapshot.total_amount, suffix),
        transaction_count=snapshot.count,
    )
