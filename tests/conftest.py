import asyncio
from datetime import datetime, timezone

import pytest

from ledgerview.models import FetchResult


class PagedSource:
    """In-memory page source slicing a record list into pages.

    ``gate`` (an asyncio.Event) holds every call until set; ``fail_next`` is a
    list of exceptions raised by the next calls, in order.
    """

    def __init__(self, records, server_filter=None):
        self.records = list(records)
        self.server_filter = server_filter
        self.calls = []
        self.gate = None
        self.fail_next = []

    async def fetch_ledger_page(self, criteria, page_index, page_size):
        self.calls.append((criteria, page_index, page_size))
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_next:
            raise self.fail_next.pop(0)
        records = [
            r
            for r in self.records
            if self.server_filter is None or self.server_filter(criteria, r)
        ]
        start = page_index * page_size
        chunk = records[start : start + page_size]
        return FetchResult(items=chunk, has_next=start + page_size < len(records))


def _make_payment(
    id="p1",
    amount=1000,
    created_at="2024-05-10T09:00:00Z",
    type="deposit",
    **extra,
):
    record = {
        "id": id,
        "amount": amount,
        "type": type,
        "createdAt": created_at,
        "status": "success",
        "bankName": "ACB",
        "bankNumberMasked": "****1234",
        "fromAccountName": "",
        "toAccountName": "",
        "toBankName": "",
        "fromBankName": "",
        "description": f"Payment {id}",
    }
    record.update(extra)
    return record


def _make_commission(
    id="c1",
    commission_amount="1000",
    created_at="2024-05-10T09:00:00Z",
    is_paid=False,
    **extra,
):
    record = {
        "id": id,
        "originalAmount": "20000",
        "receivedAmount": "19000",
        "commissionAmount": commission_amount,
        "commissionPercentage": 5,
        "transactionCode": f"TC-{id}",
        "createdAt": created_at,
        "isPaid": is_paid,
    }
    record.update(extra)
    return record


@pytest.fixture
def payment_record():
    return _make_payment


@pytest.fixture
def commission_record():
    return _make_commission


@pytest.fixture
def paged_source():
    return PagedSource


@pytest.fixture
def numbered_payments():
    """Factory for ``count`` payments with ids p0..pN, one minute apart."""

    def make(count, start=datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)):
        return [
            _make_payment(
                id=f"p{i}",
                amount=1000 + i,
                created_at=start.replace(minute=i % 60, hour=8 + i // 60).isoformat(),
            )
            for i in range(count)
        ]

    return make


def run(coro):
    """Run a coroutine to completion in a fresh event loop."""
    return asyncio.run(coro)


@pytest.fixture
def run_async():
    return run
