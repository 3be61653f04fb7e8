from datetime import timedelta, timezone

import pytest

from ledgerview.filters import (
    apply_filters,
    format_percent,
    matches_month,
    matches_search,
    search_fields,
)
from ledgerview.models import Direction, FilterCriteria
from ledgerview.normalizers import normalize_commission, normalize_payment

UTC = timezone.utc
PLUS_7 = timezone(timedelta(hours=7))


@pytest.fixture
def payments(payment_record):
    return [
        normalize_payment(
            payment_record(
                id="p1",
                amount=1234567,
                created_at="2024-04-30T20:00:00Z",
                description="Coffee beans",
            )
        ),
        normalize_payment(
            payment_record(
                id="p2",
                amount=50000,
                created_at="2024-05-02T10:00:00Z",
                type="withdraw",
                toAccountName="Nguyen Van A",
                description="Rent",
            )
        ),
        normalize_payment(
            payment_record(id="p3", amount=700, created_at="2024-05-20T10:00:00Z")
        ),
    ]


@pytest.fixture
def commissions(commission_record):
    return [
        normalize_commission(
            commission_record(id="1", commission_amount="100000", commissionPercentage=2.5)
        ),
        normalize_commission(commission_record(id="2", commission_amount="50000")),
    ]


def test_no_filters_returns_copy_in_order(payments):
    """Test empty criteria keep every entry in order."""
    result = apply_filters(payments, FilterCriteria(), UTC)

    assert result == payments
    assert result is not payments


def test_month_filter(payments):
    """Test month filter keeps entries of that calendar month."""
    result = apply_filters(payments, FilterCriteria(local_month=(2024, 5)), UTC)
    assert [e.id for e in result] == ["p2", "p3"]


def test_month_filter_uses_local_date(payments):
    """Test the month is taken from the local date, not UTC."""
    # 2024-04-30T20:00Z is already May 1st at UTC+7
    result = apply_filters(payments, FilterCriteria(local_month=(2024, 5)), PLUS_7)
    assert [e.id for e in result] == ["p1", "p2", "p3"]

    april = apply_filters(payments, FilterCriteria(local_month=(2024, 4)), PLUS_7)
    assert april == []


def test_month_filter_excludes_undated(payment_record):
    """Test entries without a timestamp never match a month."""
    entry = normalize_payment(payment_record(created_at="garbage"))
    assert matches_month(entry, 2024, 5, UTC) is False


def test_search_case_insensitive(payments):
    """Test search matches descriptions regardless of case."""
    result = apply_filters(payments, FilterCriteria(local_search_term="COFFEE"), UTC)
    assert [e.id for e in result] == ["p1"]


def test_search_counterparty(payments):
    """Test search matches the counterparty name."""
    result = apply_filters(payments, FilterCriteria(local_search_term="van a"), UTC)
    assert [e.id for e in result] == ["p2"]


def test_search_formatted_amount(payments):
    """Test search matches the amount as displayed with separators."""
    result = apply_filters(payments, FilterCriteria(local_search_term="1.234"), UTC)
    assert [e.id for e in result] == ["p1"]


@pytest.mark.parametrize("term", ["", "   ", None])
def test_blank_search_is_no_filter(payments, term):
    """Test empty or whitespace-only search terms are ignored."""
    result = apply_filters(payments, FilterCriteria(local_search_term=term), UTC)
    assert len(result) == 3


def test_search_and_month_are_combined(payments):
    """Test predicates are ANDed."""
    criteria = FilterCriteria(local_month=(2024, 5), local_search_term="coffee")
    assert apply_filters(payments, criteria, UTC) == []


def test_search_commission_code_and_percent(commissions):
    """Test commission search covers transaction code and percentage."""
    by_code = apply_filters(commissions, FilterCriteria(local_search_term="tc-2"), UTC)
    by_percent = apply_filters(commissions, FilterCriteria(local_search_term="2.5"), UTC)

    assert [e.id for e in by_code] == ["2"]
    assert [e.id for e in by_percent] == ["1"]


def test_search_does_not_match_id(commissions):
    """Test the record id is not part of the searchable fields."""
    assert apply_filters(commissions, FilterCriteria(local_search_term="id2"), UTC) == []


def test_server_criteria_not_reapplied(payments, commissions):
    """Test type and paid flag are trusted to the server."""
    criteria = FilterCriteria(server_paid_flag=True)
    assert len(apply_filters(commissions, criteria, UTC)) == 2

    criteria = FilterCriteria(server_type=Direction.incoming)
    assert len(apply_filters(payments, criteria, UTC)) == 3


def test_search_fields_commission(commissions):
    """Test the stringified commission fields."""
    assert search_fields(commissions[0]) == ["TC-1", "100.000", "20.000", "2.5"]


def test_matches_search_strips_term(payments):
    """Test surrounding whitespace in the term is ignored."""
    assert matches_search(payments[1], "  rent  ") is True


def test_format_percent():
    """Test percentages render without a trailing .0."""
    assert format_percent(5.0) == "5"
    assert format_percent(2.5) == "2.5"

