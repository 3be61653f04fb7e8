"""Client-side filters over the fetched buffer.

Only the month and search filters run here. Type, paid flag and date range
are applied by the backend and are not re-checked.
"""

from datetime import tzinfo
from typing import Iterable, Optional

from .models import CommissionDetails, FilterCriteria, LedgerEntry, PaymentDetails
from .summary import format_grouped


def format_percent(percent: float) -> str:
    """Render a percentage without a trailing ``.0``."""
    return f"{percent:g}"


def search_fields(entry: LedgerEntry) -> list[str]:
    """Stringified fields a search term is matched against."""
    details = entry.details
    if isinstance(details, CommissionDetails):
        return [
            details.transaction_code,
            format_grouped(entry.amount),
            format_grouped(details.original_amount),
            format_percent(details.commission_percent),
        ]
    if isinstance(details, PaymentDetails):
        return [
            details.description,
            details.counterparty_name,
            details.bank_name,
            details.account_masked,
            details.transaction_code,
            format_grouped(entry.amount),
            entry.status.value,
        ]
    return []


def matches_month(
    entry: LedgerEntry, year: int, month: int, tz: Optional[tzinfo] = None
) -> bool:
    """Check the entry's local calendar month."""
    if entry.occurred_at is None:
        return False
    local = entry.occurred_at.astimezone(tz)
    return local.year == year and local.month == month


def matches_search(entry: LedgerEntry, term: str) -> bool:
    """Case-insensitive substring match over ``search_fields``."""
    needle = term.strip().lower()
    if not needle:
        return True
    return any(needle in field.lower() for field in search_fields(entry))


def apply_filters(
    entries: Iterable[LedgerEntry],
    criteria: FilterCriteria,
    tz: Optional[tzinfo] = None,
) -> list[LedgerEntry]:
    """Return the entries passing every active client-side filter, in order.

    Args:
        entries: Buffered entries
        criteria: Active filter criteria
        tz: Time zone used for calendar dates (system local when None)

    Returns:
        New list preserving input order
    """
    result = list(entries)

    if criteria.local_month is not None:
        year, month = criteria.local_month
        result = [e for e in result if matches_month(e, year, month, tz)]

    term = (criteria.local_search_term or "").strip()
    if term:
        result = [e for e in result if matches_search(e, term)]

    return result
