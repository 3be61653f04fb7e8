"""Output formatters for assembled ledger views."""

import csv
import json
from dataclasses import asdict
from datetime import tzinfo
from io import StringIO
from typing import Any, Optional, Protocol

from .filters import format_percent
from .grouping import DAY_FORMAT
from .models import CommissionDetails, LedgerEntry, LedgerView, PaymentDetails
from .summary import format_amount, format_grouped


def entry_label(entry: LedgerEntry) -> str:
    """Main text of an entry row: description, or the commission code."""
    details = entry.details
    if isinstance(details, PaymentDetails):
        return details.description or details.counterparty_name or entry.id
    return details.transaction_code or entry.id


def entry_detail(entry: LedgerEntry) -> str:
    """Secondary text of an entry row."""
    details = entry.details
    if isinstance(details, CommissionDetails):
        paid = "paid" if details.is_paid else "unpaid"
        return f"{format_percent(details.commission_percent)}% {paid}"
    return entry.status.value


def entry_to_dict(entry: LedgerEntry) -> dict[str, Any]:
    """JSON-ready representation of an entry."""
    details = asdict(entry.details)
    if isinstance(entry.details, PaymentDetails):
        details["direction"] = entry.details.direction.value
    return {
        "id": entry.id,
        "kind": entry.kind.value,
        "occurred_at": entry.occurred_at.isoformat() if entry.occurred_at else None,
        "amount": entry.amount,
        "signed_amount": entry.signed_amount,
        "status": entry.status.value,
        "details": details,
    }


def _signed(amount: int) -> str:
    return f"{'-' if amount < 0 else '+'}{format_grouped(abs(amount))}"


class FormatterProtocol(Protocol):
    """Protocol for view formatters."""

    def format_view(self, view: LedgerView) -> str:
        """Format an assembled view."""
        ...


class TableFormatter:
    """Format views as aligned ASCII tables, one block per day section."""

    def __init__(self, currency_suffix: str = " đ", tz: Optional[tzinfo] = None):
        self.currency_suffix = currency_suffix
        self.tz = tz

    def _format_entry_row(self, entry: LedgerEntry) -> str:
        time_str = entry.occurred_at.astimezone(self.tz).strftime("%H:%M")
        label = entry_label(entry)[:38]
        detail = entry_detail(entry)[:14]
        return f"{time_str:<6} {label:<38} {detail:<14} {_signed(entry.signed_amount):>18}"

    def format_view(self, view: LedgerView) -> str:
        """Format sections as tables with a summary footer."""
        if not view.sections:
            return "No entries found."

        lines = []
        for section in view.sections:
            lines.append("\n" + "=" * 80)
            lines.append(f"{section.title} ({len(section.entries)})")
            lines.append("=" * 80)
            lines.append(f"{'Time':<6} {'Description':<38} {'Detail':<14} {'Amount':>18}")
            lines.append("-" * 80)
            for entry in section.entries:
                lines.append(self._format_entry_row(entry))

        total = format_amount(view.summary.total_amount, self.currency_suffix)
        lines.append("=" * 80)
        lines.append(f"{'Total (' + str(view.summary.count) + ' entries)':<60} {total:>19}")
        if view.has_more:
            lines.append("More entries available.")
        lines.append("=" * 80)
        return "\n".join(lines)


class JsonFormatter:
    """Format views as JSON."""

    def __init__(self, currency_suffix: str = " đ"):
        self.currency_suffix = currency_suffix

    def format_view(self, view: LedgerView) -> str:
        """Format sections and summary as a JSON object."""
        data = {
            "sections": [
                {
                    "title": section.title,
                    "date": section.day.strftime(DAY_FORMAT),
                    "entries": [entry_to_dict(e) for e in section.entries],
                }
                for section in view.sections
            ],
            "summary": {
                "total_amount": view.summary.total_amount,
                "total_amount_display": format_amount(
                    view.summary.total_amount, self.currency_suffix
                ),
                "count": view.summary.count,
            },
            "has_more": view.has_more,
            "undated_count": view.undated_count,
        }
        return json.dumps(data, indent=2, ensure_ascii=False)


class CsvFormatter:
    """Format views as CSV, one row per entry plus a total row."""

    def format_view(self, view: LedgerView) -> str:
        """Format entries as CSV."""
        if not view.sections:
            return ""

        output = StringIO()
        writer = csv.writer(output)

        # Write header
        writer.writerow(
            [
                "section",
                "date",
                "id",
                "kind",
                "occurred_at",
                "amount",
                "signed_amount",
                "status",
                "label",
                "detail",
            ]
        )

        # Write data
        for section in view.sections:
            for entry in section.entries:
                writer.writerow(
                    [
                        section.title,
                        section.day.strftime(DAY_FORMAT),
                        entry.id,
                        entry.kind.value,
                        entry.occurred_at.isoformat(),
                        entry.amount,
                        entry.signed_amount,
                        entry.status.value,
                        entry_label(entry),
                        entry_detail(entry),
                    ]
                )

        writer.writerow(
            ["TOTAL", "", "", "", "", view.summary.total_amount, "", "", "", view.summary.count]
        )
        return output.getvalue()


def get_formatter(
    format_type: str, currency_suffix: str = " đ", tz: Optional[tzinfo] = None
) -> FormatterProtocol:
    """Get formatter instance by type.

    Args:
        format_type: One of 'table', 'json', or 'csv'
        currency_suffix: Suffix appended to formatted totals
        tz: Time zone for entry times in tables

    Returns:
        Formatter instance. Defaults to TableFormatter for unknown types.
    """
    formatters = {
        "table": TableFormatter(currency_suffix, tz),
        "json": JsonFormatter(currency_suffix),
        "csv": CsvFormatter(),
    }
    return formatters.get(format_type.lower(), TableFormatter(currency_suffix, tz))
