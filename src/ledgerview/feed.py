"""Screen-level controller tying a fetcher, filters and sort order together."""

import asyncio
import time
from datetime import datetime, tzinfo
from typing import Callable, Optional

from .assembler import assemble
from .config import Settings
from .fetcher import LedgerPageSource, PageFetcher, RetryPolicy
from .grouping import DEFAULT_LABELS
from .logging_setup import get_logger
from .models import (
    FeedKind,
    FeedState,
    FilterCriteria,
    LedgerEntry,
    LedgerView,
    SectionLabels,
    SortDirection,
)
from .normalizers import get_normalizer
from .summary import summary_display

logger = get_logger(__name__)

Listener = Callable[[FeedState], None]


class LedgerFeed:
    """One feed as seen by one screen.

    Server-mediated criteria changes reset the buffer and refetch page 0.
    Month, search and sort changes only recompute the view from the buffer.
    Subscribers receive a fresh ``FeedState`` after every change.
    """

    def __init__(
        self,
        source: LedgerPageSource,
        kind: FeedKind = FeedKind.payment,
        criteria: Optional[FilterCriteria] = None,
        direction: SortDirection = SortDirection.desc,
        page_size: int = 20,
        retry_policy: Optional[RetryPolicy] = None,
        labels: SectionLabels = DEFAULT_LABELS,
        tz: Optional[tzinfo] = None,
        currency_suffix: str = " đ",
        clock: Callable[[], float] = time.monotonic,
        criteria_delay: float = 0.0,
    ):
        self.kind = FeedKind(kind)
        self._criteria = criteria or FilterCriteria()
        self._direction = SortDirection(direction)
        self._labels = labels
        self._tz = tz
        self._currency_suffix = currency_suffix
        self._criteria_delay = criteria_delay
        self._criteria_changes = 0
        self._listeners: list[Listener] = []
        self._fetcher = PageFetcher(
            source,
            get_normalizer(self.kind),
            page_size=page_size,
            retry_policy=retry_policy,
            clock=clock,
            on_change=self._notify,
        )

    @classmethod
    def from_settings(
        cls, source: LedgerPageSource, kind: FeedKind, settings: Settings, **kwargs
    ) -> "LedgerFeed":
        """Build a feed using page size, labels and retry policy from settings."""
        kwargs.setdefault("page_size", settings.page_size)
        kwargs.setdefault("labels", settings.labels)
        kwargs.setdefault("currency_suffix", settings.currency_suffix)
        kwargs.setdefault("criteria_delay", settings.filter_debounce)
        kwargs.setdefault(
            "retry_policy",
            RetryPolicy(
                base_delay=settings.retry_base_delay,
                max_delay=settings.retry_max_delay,
                max_failures=settings.retry_max_failures,
            ),
        )
        return cls(source, kind, **kwargs)

    @property
    def criteria(self) -> FilterCriteria:
        return self._criteria

    @property
    def direction(self) -> SortDirection:
        return self._direction

    @property
    def fetcher(self) -> PageFetcher:
        return self._fetcher

    @property
    def entries(self) -> tuple[LedgerEntry, ...]:
        return self._fetcher.entries

    async def start(self) -> bool:
        """Load the first page for the current server criteria."""
        return await self._fetcher.load_initial(self._criteria.server_criteria())

    async def load_more(self) -> bool:
        return await self._fetcher.load_more()

    async def refresh(self) -> bool:
        return await self._fetcher.refresh(self._criteria.server_criteria())

    async def apply_criteria(self, criteria: FilterCriteria) -> bool:
        """Switch to ``criteria``, refetching only if the server part changed.

        With a ``criteria_delay`` the reload waits that long first, and a newer
        call made meanwhile takes over, so a burst of changes fetches once.

        Returns:
            True if a network fetch was issued
        """
        self._criteria = criteria
        self._criteria_changes += 1
        change = self._criteria_changes
        if criteria.server_criteria() == self._fetcher.server_criteria:
            self._notify()
            return False

        if self._criteria_delay > 0:
            self._notify()
            await asyncio.sleep(self._criteria_delay)
            if change != self._criteria_changes:
                logger.debug("Server filter change superseded before reload")
                return False

        logger.debug("Server filters changed, reloading from page 0")
        await self._fetcher.load_initial(self._criteria.server_criteria())
        return True

    def set_search_term(self, term: Optional[str]) -> None:
        self._criteria = self._criteria.with_changes(local_search_term=term)
        self._notify()

    def set_month(self, month: Optional[tuple[int, int]]) -> None:
        """Filter to one (year, month), or clear with None."""
        if month is not None:
            year, month_number = month
            if not 1 <= month_number <= 12:
                raise ValueError(f"Invalid month: {month_number}")
            month = (int(year), int(month_number))
        self._criteria = self._criteria.with_changes(local_month=month)
        self._notify()

    def set_sort_direction(self, direction: SortDirection) -> None:
        self._direction = SortDirection(direction)
        self._notify()

    def view(self, now: Optional[datetime] = None) -> LedgerView:
        return assemble(
            self._fetcher.entries,
            self._fetcher.cursor,
            self._criteria,
            self._direction,
            now=now,
            tz=self._tz,
            labels=self._labels,
        )

    def state(self, now: Optional[datetime] = None) -> FeedState:
        """Presentation state: sections, summary, load flags and errors."""
        view = self.view(now)
        return FeedState(
            sections=view.sections,
            summary=summary_display(view.summary, self._currency_suffix),
            has_more=view.has_more,
            loading_initial=self._fetcher.loading_initial,
            loading_more=self._fetcher.loading_more,
            refreshing=self._fetcher.refreshing,
            error=self._fetcher.error,
            load_more_error=self._fetcher.load_more_error,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function removing it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        if not self._listeners:
            return
        state = self.state()
        for listener in list(self._listeners):
            listener(state)
