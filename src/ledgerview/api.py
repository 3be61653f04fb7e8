"""HTTP page sources for the payment and commission history endpoints."""

import asyncio
from datetime import datetime, timedelta
from typing import Any, Optional

import requests

from .config import Settings
from .errors import ConfigurationError, LedgerFetchError
from .logging_setup import get_logger
from .models import DateRange, Direction, FetchResult, ServerCriteria

logger = get_logger(__name__)

PAYMENTS_PATH = "/wallet/v1/banktransactions/my"
COMMISSIONS_PATH = "/pay/v1/stores/transaction-commissions"

_API_TYPES = {
    None: "ALL",
    Direction.incoming: "MONEY_IN",
    Direction.outgoing: "MONEY_OUT",
}


def format_query_date(value: datetime) -> str:
    """Dates in query strings use ``dd/mm/yyyy``."""
    return value.strftime("%d/%m/%Y")


def date_window(
    date_range: DateRange, now: Optional[datetime] = None
) -> tuple[Optional[datetime], Optional[datetime]]:
    """Return (from, to) for a server date range, or (None, None) for all."""
    date_range = DateRange(date_range)
    if date_range is DateRange.all:
        return None, None
    now = now or datetime.now()
    if date_range is DateRange.today:
        start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    elif date_range is DateRange.last_7_days:
        start = now - timedelta(days=7)
    else:
        start = now - timedelta(days=30)
    return start, now


def _page_info(data: dict, page_number: int) -> bool:
    """Whether the server reports a page after ``page_number``."""
    try:
        total_pages = int(data.get("totalPages") or 0)
    except (TypeError, ValueError):
        return False
    return page_number < total_pages


class LedgerApiClient:
    """Shared HTTP plumbing: base URL, bearer token, timeout."""

    def __init__(
        self,
        base_url: str,
        token: Optional[str],
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        if not base_url:
            raise ConfigurationError("API base URL is required")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {"Accept": "application/json"}
        if token:
            self.headers["Authorization"] = f"Bearer {token}"

    def get_json(self, path: str, params: dict[str, Any]) -> dict:
        """GET ``path`` and return the decoded JSON object.

        Raises:
            LedgerFetchError: on transport errors, HTTP errors or a non-JSON body
        """
        url = f"{self.base_url}{path}"
        logger.debug("GET %s %s", url, params)
        try:
            response = self.session.get(
                url, headers=self.headers, params=params, timeout=self.timeout
            )
            response.raise_for_status()
            payload = response.json()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise LedgerFetchError(f"HTTP error from {path}: {e}", status) from e
        except requests.RequestException as e:
            raise LedgerFetchError(f"Request to {path} failed: {e}") from e
        except ValueError as e:
            raise LedgerFetchError(f"Invalid JSON from {path}") from e

        if not isinstance(payload, dict):
            raise LedgerFetchError(f"Unexpected response shape from {path}")
        return payload


class PaymentHistorySource(LedgerApiClient):
    """Bank transaction history of the current store or user account."""

    def __init__(self, *args, bank_type: str = "USER", **kwargs):
        super().__init__(*args, **kwargs)
        self.bank_type = bank_type

    @classmethod
    def from_settings(cls, settings: Settings, token: Optional[str]) -> "PaymentHistorySource":
        return cls(
            settings.require_base_url(),
            token,
            timeout=settings.timeout,
            bank_type=settings.bank_type,
        )

    def build_params(
        self,
        criteria: ServerCriteria,
        page_index: int,
        page_size: int,
        now: Optional[datetime] = None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {
            "page": page_index + 1,
            "limit": page_size,
            "bankType": self.bank_type,
            "type": _API_TYPES[criteria.type],
        }
        start, end = date_window(criteria.date_range, now)
        if start is not None and end is not None:
            params["fromDate"] = format_query_date(start)
            params["toDate"] = format_query_date(end)
        return params

    def fetch_page(self, criteria: ServerCriteria, page_index: int, page_size: int) -> FetchResult:
        page_number = page_index + 1
        payload = self.get_json(
            PAYMENTS_PATH, self.build_params(criteria, page_index, page_size)
        )
        data = payload.get("data") or {}
        items = data.get("transactions") or []
        return FetchResult(items=list(items), has_next=_page_info(data, page_number))

    async def fetch_ledger_page(
        self, criteria: ServerCriteria, page_index: int, page_size: int
    ) -> FetchResult:
        return await asyncio.to_thread(self.fetch_page, criteria, page_index, page_size)


class CommissionHistorySource(LedgerApiClient):
    """Commission transactions charged to the current store."""

    @classmethod
    def from_settings(
        cls, settings: Settings, token: Optional[str]
    ) -> "CommissionHistorySource":
        return cls(settings.require_base_url(), token, timeout=settings.timeout)

    def build_params(
        self, criteria: ServerCriteria, page_index: int, page_size: int
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"page": page_index + 1, "size": page_size}
        if criteria.paid_flag is not None:
            params["isPaid"] = "true" if criteria.paid_flag else "false"
        return params

    def fetch_page(self, criteria: ServerCriteria, page_index: int, page_size: int) -> FetchResult:
        page_number = page_index + 1
        payload = self.get_json(
            COMMISSIONS_PATH, self.build_params(criteria, page_index, page_size)
        )
        if not payload.get("success", False):
            raise LedgerFetchError(payload.get("message") or "Failed to fetch commissions")
        data = payload.get("data") or {}
        items = data.get("items") or []
        return FetchResult(items=list(items), has_next=_page_info(data, page_number))

    async def fetch_ledger_page(
        self, criteria: ServerCriteria, page_index: int, page_size: int
    ) -> FetchResult:
        return await asyncio.to_thread(self.fetch_page, criteria, page_index, page_size)
