from datetime import date, timedelta, timezone

import pytest

from ledgerview.grouping import group_by_day, section_title
from ledgerview.models import SectionLabels, SortDirection
from ledgerview.normalizers import normalize_payment
from ledgerview.sorting import sort_entries, split_undated

UTC = timezone.utc


@pytest.fixture
def entries(payment_record):
    """Five payments: two sharing a timestamp, one undated."""
    raws = [
        payment_record(id="a", created_at="2024-05-10T09:00:00Z"),
        payment_record(id="b", created_at="2024-05-02T10:00:00Z"),
        payment_record(id="tie1", created_at="2024-05-10T08:00:00Z"),
        payment_record(id="undated", created_at="not a date"),
        payment_record(id="tie2", created_at="2024-05-10T08:00:00Z"),
    ]
    return [normalize_payment(r) for r in raws]


def ids(items):
    return [e.id for e in items]


# Tests for sort_entries
def test_sort_desc(entries):
    """Test newest first, ties in buffer order."""
    assert ids(sort_entries(entries, SortDirection.desc)) == ["a", "tie1", "tie2", "b"]


def test_sort_asc(entries):
    """Test oldest first, ties in buffer order."""
    assert ids(sort_entries(entries, SortDirection.asc)) == ["b", "tie1", "tie2", "a"]


def test_sort_keeps_tie_order_in_both_directions(payment_record):
    """Test equal timestamps never swap, whatever the direction."""
    same = [
        normalize_payment(payment_record(id=str(i), created_at="2024-05-10T08:00:00Z"))
        for i in range(6)
    ]
    expected = [str(i) for i in range(6)]

    assert ids(sort_entries(same, SortDirection.asc)) == expected
    assert ids(sort_entries(same, SortDirection.desc)) == expected


def test_sort_accepts_string_direction(entries):
    """Test the direction may be given by value."""
    assert ids(sort_entries(entries, "asc"))[0] == "b"


def test_sort_drops_undated(entries):
    """Test entries without timestamp are not sorted into the output."""
    assert "undated" not in ids(sort_entries(entries))


def test_sort_does_not_mutate_input(entries):
    """Test the input list order is untouched."""
    before = ids(entries)
    sort_entries(entries, SortDirection.asc)
    assert ids(entries) == before


def test_split_undated(entries):
    """Test splitting dated from undated entries."""
    dated, undated = split_undated(entries)
    assert ids(undated) == ["undated"]
    assert len(dated) == 4


# Tests for section_title
def test_section_title_relative_days():
    """Test Today and Yesterday titles and the date fallback."""
    today = date(2024, 5, 10)
    labels = SectionLabels(today="Hôm nay", yesterday="Hôm qua")

    assert section_title(today, today, labels) == "Hôm nay"
    assert section_title(today - timedelta(days=1), today, labels) == "Hôm qua"
    assert section_title(date(2024, 1, 2), today, labels) == "02/01/2024"


# Tests for group_by_day
def test_group_by_day_desc(entries):
    """Test sections follow the sort direction and keep entry order."""
    ordered = sort_entries(entries, SortDirection.desc)

    sections = group_by_day(ordered, SortDirection.desc, date(2024, 5, 10), tz=UTC)

    assert [s.title for s in sections] == ["Today", "02/05/2024"]
    assert ids(sections[0].entries) == ["a", "tie1", "tie2"]
    assert ids(sections[1].entries) == ["b"]


def test_group_by_day_asc(entries):
    """Test ascending sections."""
    ordered = sort_entries(entries, SortDirection.asc)

    sections = group_by_day(ordered, SortDirection.asc, date(2024, 5, 11), tz=UTC)

    assert [s.title for s in sections] == ["02/05/2024", "Yesterday"]
    assert ids(sections[1].entries) == ["tie1", "tie2", "a"]


def test_group_orders_by_date_value_not_string(payment_record):
    """Test 02/01 vs 10/01 ordering uses real dates, not text."""
    raws = [
        payment_record(id="jan10", created_at="2024-01-10T10:00:00Z"),
        payment_record(id="feb02", created_at="2024-02-02T10:00:00Z"),
    ]
    ordered = sort_entries([normalize_payment(r) for r in raws], SortDirection.desc)

    sections = group_by_day(ordered, SortDirection.desc, date(2024, 6, 1), tz=UTC)

    assert [s.title for s in sections] == ["02/02/2024", "10/01/2024"]


def test_group_uses_local_day(payment_record):
    """Test bucketing by local calendar day."""
    raws = [
        payment_record(id="late", created_at="2024-05-09T18:00:00Z"),
        payment_record(id="early", created_at="2024-05-10T01:00:00Z"),
    ]
    ordered = sort_entries([normalize_payment(r) for r in raws], SortDirection.desc)

    utc_sections = group_by_day(ordered, SortDirection.desc, date(2024, 5, 10), tz=UTC)
    plus7_sections = group_by_day(
        ordered,
        SortDirection.desc,
        date(2024, 5, 10),
        tz=timezone(timedelta(hours=7)),
    )

    assert len(utc_sections) == 2
    assert len(plus7_sections) == 1
    assert plus7_sections[0].title == "Today"


def test_group_empty():
    """Test no entries yields no sections."""
    assert group_by_day([], SortDirection.desc, date(2024, 5, 10)) == []
