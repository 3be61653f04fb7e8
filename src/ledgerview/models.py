"""Data models for the ledger view pipeline."""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional, Union


class EntryStatus(str, Enum):
    """Outcome of a ledger record."""

    success = "success"
    failed = "failed"


class Direction(str, Enum):
    """Money direction of a payment."""

    incoming = "in"
    outgoing = "out"


class FeedKind(str, Enum):
    """Which feed a ledger entry came from."""

    payment = "payment"
    commission = "commission"


class SortDirection(str, Enum):
    """Chronological sort direction."""

    asc = "asc"
    desc = "desc"


class DateRange(str, Enum):
    """Server-side date window of the payment feed."""

    all = "all"
    today = "today"
    last_7_days = "7d"
    last_30_days = "30d"


@dataclass(frozen=True)
class PaymentDetails:
    """Payload of a bank payment entry."""

    direction: Direction
    counterparty_name: str = ""
    description: str = ""
    bank_name: str = ""
    account_masked: str = ""
    transaction_code: str = ""


@dataclass(frozen=True)
class CommissionDetails:
    """Payload of a store commission entry."""

    commission_percent: float = 0.0
    is_paid: bool = False
    transaction_code: str = ""
    original_amount: int = 0
    received_amount: int = 0


@dataclass(frozen=True)
class LedgerEntry:
    """One financial record of a feed, normalized."""

    id: str
    occurred_at: Optional[datetime]  # None when the timestamp could not be parsed
    amount: int  # whole currency units, never negative
    status: EntryStatus
    details: Union[PaymentDetails, CommissionDetails]

    @property
    def kind(self) -> FeedKind:
        if isinstance(self.details, CommissionDetails):
            return FeedKind.commission
        return FeedKind.payment

    @property
    def signed_amount(self) -> int:
        """Amount with display sign: outgoing payments are negative."""
        if (
            isinstance(self.details, PaymentDetails)
            and self.details.direction is Direction.outgoing
        ):
            return -self.amount
        return self.amount


@dataclass(frozen=True)
class PageCursor:
    """Pagination position of a feed.

    ``page_index`` is the index of the last page loaded into the buffer.
    """

    page_index: int = 0
    page_size: int = 20
    has_more: bool = True

    def __post_init__(self) -> None:
        if self.page_index < 0:
            raise ValueError("page_index must be >= 0")
        if self.page_size <= 0:
            raise ValueError("page_size must be > 0")

    def advance(self, page_index: int, received: int, has_next: bool) -> "PageCursor":
        """Return the cursor after ``page_index`` arrived with ``received`` records.

        Once ``has_more`` is False it stays False; only a fresh cursor resets it.
        """
        has_more = self.has_more and has_next and received >= self.page_size
        return replace(self, page_index=page_index, has_more=has_more)


@dataclass(frozen=True)
class ServerCriteria:
    """Filter criteria the backend applies; changing them refetches the feed."""

    type: Optional[Direction] = None
    paid_flag: Optional[bool] = None
    date_range: DateRange = DateRange.all


@dataclass(frozen=True)
class FilterCriteria:
    """All active filters of a feed, server-mediated and client-only."""

    server_type: Optional[Direction] = None
    server_paid_flag: Optional[bool] = None
    server_date_range: DateRange = DateRange.all
    local_month: Optional[tuple[int, int]] = None  # (year, month)
    local_search_term: Optional[str] = None

    def server_criteria(self) -> ServerCriteria:
        return ServerCriteria(
            type=self.server_type,
            paid_flag=self.server_paid_flag,
            date_range=self.server_date_range,
        )

    def with_changes(self, **changes: Any) -> "FilterCriteria":
        return replace(self, **changes)


@dataclass(frozen=True)
class Section:
    """A titled, date-bucketed group of entries."""

    title: str
    day: date
    entries: tuple[LedgerEntry, ...] = ()


@dataclass(frozen=True)
class SummarySnapshot:
    """Total and count over the currently visible entries."""

    total_amount: int = 0
    count: int = 0


@dataclass(frozen=True)
class SummaryDisplay:
    """Summary as shown in a screen header."""

    total_amount: str
    transaction_count: int


@dataclass(frozen=True)
class SectionLabels:
    """Localized titles for the two relative day sections."""

    today: str = "Today"
    yesterday: str = "Yesterday"


@dataclass(frozen=True)
class LedgerView:
    """Output of one assembly pass."""

    sections: tuple[Section, ...]
    summary: SummarySnapshot
    has_more: bool = False
    undated_count: int = 0


@dataclass(frozen=True)
class FeedState:
    """Everything a screen needs to render a feed."""

    sections: tuple[Section, ...]
    summary: SummaryDisplay
    has_more: bool
    loading_initial: bool = False
    loading_more: bool = False
    refreshing: bool = False
    error: Optional[Exception] = None
    load_more_error: Optional[Exception] = None


@dataclass
class FetchResult:
    """One page as returned by a page source."""

    items: list[dict] = field(default_factory=list)
    has_next: bool = False
