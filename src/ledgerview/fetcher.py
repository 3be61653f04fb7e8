"""Paginated fetching into an in-memory entry buffer.

A ``PageFetcher`` owns the buffer and the cursor of one feed. It allows a
single live request at a time: every request takes a new generation number
and a completion from an older generation is discarded, so a refresh always
wins over a load-more that was still in flight.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Protocol

from .logging_setup import get_logger
from .models import FetchResult, LedgerEntry, PageCursor, ServerCriteria
from .normalizers import Normalizer, normalize_page

logger = get_logger(__name__)


class LedgerPageSource(Protocol):
    """Backend collaborator returning one page of raw records."""

    async def fetch_ledger_page(
        self, criteria: ServerCriteria, page_index: int, page_size: int
    ) -> FetchResult:
        ...


class LoadPhase(Enum):
    """What the fetcher is currently waiting for."""

    idle = "idle"
    initial = "initial"
    more = "more"
    refresh = "refresh"


@dataclass(frozen=True)
class RetryPolicy:
    """Backoff applied to failed load-more requests."""

    base_delay: float = 1.0
    max_delay: float = 30.0
    max_failures: int = 5

    def delay(self, failures: int) -> float:
        """Seconds to wait after ``failures`` consecutive failures."""
        if failures <= 0:
            return 0.0
        return min(self.max_delay, self.base_delay * 2 ** (failures - 1))


class PageFetcher:
    """Fetch pages from a source and merge them into a buffer."""

    def __init__(
        self,
        source: LedgerPageSource,
        normalizer: Normalizer,
        page_size: int = 20,
        retry_policy: Optional[RetryPolicy] = None,
        clock: Callable[[], float] = time.monotonic,
        on_change: Optional[Callable[[], None]] = None,
    ):
        self._source = source
        self._normalizer = normalizer
        self._retry_policy = retry_policy or RetryPolicy()
        self._clock = clock
        self._on_change = on_change

        self._buffer: list[LedgerEntry] = []
        self._cursor = PageCursor(page_size=page_size)
        self._criteria = ServerCriteria()
        self._phase = LoadPhase.idle
        self._generation = 0
        self._loaded = False
        self._failures = 0
        self._retry_at = 0.0

        self.error: Optional[Exception] = None
        self.load_more_error: Optional[Exception] = None

    @property
    def entries(self) -> tuple[LedgerEntry, ...]:
        return tuple(self._buffer)

    @property
    def cursor(self) -> PageCursor:
        return self._cursor

    @property
    def server_criteria(self) -> ServerCriteria:
        return self._criteria

    @property
    def phase(self) -> LoadPhase:
        return self._phase

    @property
    def loading_initial(self) -> bool:
        return self._phase is LoadPhase.initial

    @property
    def loading_more(self) -> bool:
        return self._phase is LoadPhase.more

    @property
    def refreshing(self) -> bool:
        return self._phase is LoadPhase.refresh

    @property
    def is_fetching(self) -> bool:
        return self._phase is not LoadPhase.idle

    @property
    def has_more(self) -> bool:
        return self._cursor.has_more

    @property
    def loaded(self) -> bool:
        """Whether a first page has been loaded since the last reset."""
        return self._loaded

    @property
    def consecutive_failures(self) -> int:
        return self._failures

    @property
    def can_load_more(self) -> bool:
        if not self._loaded or self.is_fetching or not self._cursor.has_more:
            return False
        if self._failures >= self._retry_policy.max_failures:
            return False
        return self._clock() >= self._retry_at

    async def load_initial(self, criteria: Optional[ServerCriteria] = None) -> bool:
        """Drop buffer and cursor, then load page 0 for ``criteria``.

        Returns:
            True if the page was applied
        """
        if criteria is not None:
            self._criteria = criteria
        self._buffer = []
        self._cursor = PageCursor(page_size=self._cursor.page_size)
        self._loaded = False
        self._reset_retry()
        return await self._fetch(0, LoadPhase.initial)

    async def refresh(self, criteria: Optional[ServerCriteria] = None) -> bool:
        """Reload page 0 and replace the buffer on success.

        A refresh with different criteria is a full reset. Existing entries are
        kept until the first page arrives.
        """
        if criteria is not None and criteria != self._criteria:
            return await self.load_initial(criteria)
        self._reset_retry()
        return await self._fetch(0, LoadPhase.refresh)

    async def load_more(self) -> bool:
        """Append the next page, unless a fetch is running or nothing is left.

        Returns:
            True if a page was appended
        """
        if not self.can_load_more:
            logger.debug(
                "load_more skipped (phase=%s, has_more=%s, failures=%d)",
                self._phase.value,
                self._cursor.has_more,
                self._failures,
            )
            return False
        return await self._fetch(self._cursor.page_index + 1, LoadPhase.more)

    async def _fetch(self, page_index: int, phase: LoadPhase) -> bool:
        self._generation += 1
        generation = self._generation
        self._phase = phase
        self.error = None
        self.load_more_error = None
        try:
            return await self._run(generation, page_index, phase)
        finally:
            # cancelled or aborted by a listener: the current request leaves no phase behind
            if generation == self._generation and self._phase is phase:
                self._phase = LoadPhase.idle

    async def _run(self, generation: int, page_index: int, phase: LoadPhase) -> bool:
        criteria = self._criteria
        page_size = self._cursor.page_size
        self._changed()

        try:
            result = await self._source.fetch_ledger_page(criteria, page_index, page_size)
        except Exception as e:
            if generation != self._generation:
                logger.debug("Discarding stale failure for page %d: %s", page_index, e)
                return False
            self._phase = LoadPhase.idle
            self._record_failure(page_index, phase, e)
            self._changed()
            return False

        if generation != self._generation:
            logger.debug("Discarding stale result for page %d", page_index)
            return False

        items = list(result.items or [])
        entries = normalize_page(items, self._normalizer)
        if phase is LoadPhase.more:
            self._buffer = self._buffer + self._without_known_ids(entries, self._buffer)
            base = self._cursor
        else:
            self._buffer = self._without_known_ids(entries, [])
            base = PageCursor(page_size=page_size)

        self._cursor = base.advance(page_index, len(items), bool(result.has_next))
        self._loaded = True
        self._reset_retry()
        self._phase = LoadPhase.idle
        logger.debug(
            "Loaded page %d (%d records, has_more=%s)",
            page_index,
            len(items),
            self._cursor.has_more,
        )
        self._changed()
        return True

    def _record_failure(self, page_index: int, phase: LoadPhase, error: Exception) -> None:
        if phase is LoadPhase.more:
            self.load_more_error = error
            self._failures += 1
            delay = self._retry_policy.delay(self._failures)
            self._retry_at = self._clock() + delay
            if self._failures >= self._retry_policy.max_failures:
                logger.warning(
                    "Page %d failed %d times, load more paused until refresh: %s",
                    page_index,
                    self._failures,
                    error,
                )
            else:
                logger.warning(
                    "Page %d failed, retry allowed in %.1fs: %s", page_index, delay, error
                )
        else:
            self.error = error
            logger.warning("Loading page %d failed: %s", page_index, error)

    def _reset_retry(self) -> None:
        self._failures = 0
        self._retry_at = 0.0

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()

    @staticmethod
    def _without_known_ids(
        entries: list[LedgerEntry], existing: list[LedgerEntry]
    ) -> list[LedgerEntry]:
        seen = {e.id for e in existing if e.id}
        unique = []
        for entry in entries:
            if entry.id:
                if entry.id in seen:
                    logger.debug("Dropping duplicate entry %s", entry.id)
                    continue
                seen.add(entry.id)
            unique.append(entry)
        return unique
