"""Map raw API records to ``LedgerEntry`` objects.

Every function here is total: a malformed field degrades to a default
(``0`` for numbers, ``""`` for text, ``None`` for timestamps) instead of
raising, so one bad record never aborts a page.
"""

import re
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterable, Optional

from .logging_setup import get_logger
from .models import (
    CommissionDetails,
    Direction,
    EntryStatus,
    FeedKind,
    LedgerEntry,
    PaymentDetails,
)

logger = get_logger(__name__)

Normalizer = Callable[[Mapping], LedgerEntry]

_GROUPING_CHARS = re.compile(r"[.,\s_']")
_FRACTION = re.compile(r"(\d{2}:\d{2}:\d{2})[.,](\d+)")
# any UTC offset is under one day, so astimezone() stays in range inside these
_EARLIEST = datetime.min.replace(tzinfo=timezone.utc) + timedelta(days=1)
_LATEST = datetime.max.replace(tzinfo=timezone.utc) - timedelta(days=1)
_INCOMING_TYPES = {"deposit", "money_in", "in"}
_STORE_BANK = "STORE"
_USER_BANK = "USER"


def parse_amount(value: Any) -> int:
    """Parse an amount into whole units, stripping grouping separators.

    ``"1.234.567"`` -> 1234567, ``None`` -> 0, ``"abc"`` -> 0. The result is
    never negative; direction is carried separately.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return abs(value)
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return 0
        return abs(int(value))
    if isinstance(value, str):
        cleaned = _GROUPING_CHARS.sub("", value.strip()).lstrip("+-")
        if cleaned.isdigit():
            return int(cleaned)
        if cleaned:
            logger.debug("Unparsable amount %r, using 0", value)
    return 0


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string into an aware datetime, or None.

    Naive timestamps are read as local time. Fractions of any length are
    accepted. Instants within a day of the representable range are rejected,
    so later time zone conversions cannot overflow.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value.strip():
        text = _FRACTION.sub(_pad_fraction, value.strip().replace("Z", "+00:00"), count=1)
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    try:
        if dt.tzinfo is None:
            dt = dt.astimezone()
        instant = dt.astimezone(timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None
    if not _EARLIEST <= instant <= _LATEST:
        return None
    return dt


def _pad_fraction(match: "re.Match[str]") -> str:
    return f"{match.group(1)}.{match.group(2)[:6].ljust(6, '0')}"


def parse_percent(value: Any) -> float:
    """Parse a commission percentage, clamped to 0-100."""
    if isinstance(value, bool):
        return 0.0
    try:
        percent = float(value)
    except (TypeError, ValueError):
        return 0.0
    if percent != percent:
        return 0.0
    return min(max(percent, 0.0), 100.0)


def _text(raw: Mapping, key: str) -> str:
    value = raw.get(key)
    if value is None:
        return ""
    return str(value)


def _bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes"}
    return bool(value)


def _status(raw: Mapping) -> EntryStatus:
    status = raw.get("status")
    if status is None or str(status).lower() == EntryStatus.success.value:
        return EntryStatus.success
    return EntryStatus.failed


def _direction(raw: Mapping) -> Direction:
    """Read direction from the UI ``type`` or the raw API ``state`` field."""
    for key in ("type", "state"):
        value = raw.get(key)
        if value:
            if str(value).lower() in _INCOMING_TYPES:
                return Direction.incoming
            return Direction.outgoing
    return Direction.outgoing


def describe_payment(raw: Mapping, direction: Direction) -> str:
    """Build the human description of a bank transfer.

    Transfers between a store and a user account get a generated sentence;
    anything else keeps the backend description.
    """
    to_bank = _text(raw, "toBankName")
    from_bank = _text(raw, "fromBankName")
    from_account = _text(raw, "fromAccountName")
    to_account = _text(raw, "toAccountName")

    if from_bank:
        if to_bank == _STORE_BANK:
            if direction is Direction.incoming:
                return f"Payment received from {from_account}"
            return f"Bill paid at {to_account}"
        if to_bank == _USER_BANK:
            if direction is Direction.incoming:
                return f"Money received from {from_account}"
            return f"Transfer to {to_account}"
    return _text(raw, "description")


def normalize_payment(raw: Mapping) -> LedgerEntry:
    """Normalize a bank payment record."""
    direction = _direction(raw)
    if direction is Direction.incoming:
        counterparty = _text(raw, "fromAccountName")
    else:
        counterparty = _text(raw, "toAccountName")

    return LedgerEntry(
        id=_text(raw, "id"),
        occurred_at=parse_timestamp(raw.get("createdAt")),
        amount=parse_amount(raw.get("amount")),
        status=_status(raw),
        details=PaymentDetails(
            direction=direction,
            counterparty_name=counterparty or _text(raw, "bankName"),
            description=describe_payment(raw, direction),
            bank_name=_text(raw, "bankName"),
            account_masked=_text(raw, "bankNumberMasked"),
            transaction_code=_text(raw, "transactionCode"),
        ),
    )


def normalize_commission(raw: Mapping) -> LedgerEntry:
    """Normalize a store commission record.

    The entry amount is the commission charged, not the original sale.
    """
    return LedgerEntry(
        id=_text(raw, "id"),
        occurred_at=parse_timestamp(raw.get("createdAt")),
        amount=parse_amount(raw.get("commissionAmount")),
        status=_status(raw),
        details=CommissionDetails(
            commission_percent=parse_percent(raw.get("commissionPercentage")),
            is_paid=_bool(raw.get("isPaid")),
            transaction_code=_text(raw, "transactionCode"),
            original_amount=parse_amount(raw.get("originalAmount")),
            received_amount=parse_amount(raw.get("receivedAmount")),
        ),
    )


NORMALIZERS: dict[FeedKind, Normalizer] = {
    FeedKind.payment: normalize_payment,
    FeedKind.commission: normalize_commission,
}


def get_normalizer(kind: FeedKind) -> Normalizer:
    return NORMALIZERS[FeedKind(kind)]


def normalize_page(raw_items: Iterable[Any], normalizer: Normalizer) -> list[LedgerEntry]:
    """Normalize a page of raw records, skipping items that are not records."""
    entries = []
    for position, raw in enumerate(raw_items or ()):
        if not isinstance(raw, Mapping):
            logger.warning("Skipping non-record item at position %d: %r", position, raw)
            continue
        entries.append(normalizer(raw))
    return entries
