import asyncio
from enum import Enum
from typing import Optional

import typer

from .api import CommissionHistorySource, PaymentHistorySource
from .auth import DEFAULT_PROFILE, get_token
from .auth import login as auth_login
from .auth import logout as auth_logout
from .config import Settings
from .feed import LedgerFeed
from .fetcher import LedgerPageSource
from .formatters import get_formatter
from .logging_setup import configure_logging
from .models import DateRange, Direction, FeedKind, FilterCriteria, SortDirection

app = typer.Typer(help="Ledger history viewer CLI", no_args_is_help=True)


class OutputFormat(str, Enum):
    """Output format options."""

    table = "table"
    json = "json"
    csv = "csv"


def parse_month(value: Optional[str]) -> Optional[tuple[int, int]]:
    """Parse ``YYYY-MM`` into (year, month)."""
    if not value:
        return None
    try:
        year_str, month_str = value.split("-")
        year, month = int(year_str), int(month_str)
    except ValueError:
        raise typer.BadParameter(f"Expected YYYY-MM, got '{value}'")
    if not 1 <= month <= 12:
        raise typer.BadParameter(f"Month out of range in '{value}'")
    return year, month


def build_source(kind: FeedKind, settings: Settings, token: Optional[str]) -> LedgerPageSource:
    if kind is FeedKind.commission:
        return CommissionHistorySource.from_settings(settings, token)
    return PaymentHistorySource.from_settings(settings, token)


async def collect_pages(feed: LedgerFeed, pages: int, verbose: bool = False) -> None:
    """Load the first page and up to ``pages - 1`` more.

    Raises:
        Exception: the error of the first page, if it failed
    """
    await feed.start()
    if feed.fetcher.error is not None:
        raise feed.fetcher.error

    for _ in range(max(pages, 1) - 1):
        if not feed.fetcher.has_more:
            break
        if verbose:
            print(f"Loading page {feed.fetcher.cursor.page_index + 2}...")
        if not await feed.load_more():
            if feed.fetcher.load_more_error is not None:
                print(f"Stopped early: {feed.fetcher.load_more_error}")
            break


def _show_feed(
    ctx: typer.Context,
    kind: FeedKind,
    criteria: FilterCriteria,
    sort: SortDirection,
    pages: int,
    output_format: OutputFormat,
    profile: str,
) -> None:
    verbose = ctx.obj.get("verbose") if ctx.obj else False
    try:
        settings = Settings.from_env()
        source = build_source(kind, settings, get_token(profile))
        feed = LedgerFeed.from_settings(
            source, kind, settings, criteria=criteria, direction=sort
        )
        if verbose:
            print(f"\nFetching {kind.value} history...")
        asyncio.run(collect_pages(feed, pages, verbose=verbose))
    except Exception as e:
        print(f"Error fetching {kind.value} history: {e}")
        raise typer.Exit(code=1)

    view = feed.view()
    if verbose and view.undated_count:
        print(f"{view.undated_count} entries without a valid date were skipped.")
    formatter = get_formatter(output_format.value, settings.currency_suffix)
    print(formatter.format_view(view))


@app.command()
def login(
    ctx: typer.Context,
    token: Optional[str] = typer.Option(
        None, "--token", "-t", help="API bearer token. Prompted for when omitted."
    ),
    profile: str = typer.Option(
        DEFAULT_PROFILE, "--profile", "-p", help="Profile to store the token under."
    ),
):
    """
    Save an API token in the system keyring.
    """
    verbose = ctx.obj.get("verbose") if ctx.obj else False
    if auth_login(token=token, profile=profile, verbose=verbose):
        print("Login routine completed successfully.")
    else:
        print("Login routine failed.")
        raise typer.Exit(code=1)


@app.command()
def logout(
    profile: str = typer.Option(
        DEFAULT_PROFILE, "--profile", "-p", help="Profile to clear the token for."
    ),
):
    """
    Clear the stored API token.
    """
    auth_logout(profile=profile)


@app.command()
def payments(
    ctx: typer.Context,
    direction: Optional[Direction] = typer.Option(
        None, "--type", help="Only money in or money out (filtered by the server)."
    ),
    date_range: DateRange = typer.Option(
        DateRange.all, "--range", "-r", help="Server-side date window."
    ),
    month: Optional[str] = typer.Option(
        None, "--month", "-m", help="Only entries of this month (YYYY-MM)."
    ),
    search: Optional[str] = typer.Option(
        None, "--search", "-s", help="Case-insensitive text search."
    ),
    sort: SortDirection = typer.Option(
        SortDirection.desc, "--sort", help="Chronological order."
    ),
    pages: int = typer.Option(1, "--pages", "-n", min=1, help="Number of pages to load."),
    output_format: OutputFormat = typer.Option(
        OutputFormat.table, "--format", "-f", help="Output format."
    ),
    profile: str = typer.Option(DEFAULT_PROFILE, "--profile", "-p", help="Token profile."),
):
    """
    Show bank payment history grouped by day.
    """
    criteria = FilterCriteria(
        server_type=direction,
        server_date_range=date_range,
        local_month=parse_month(month),
        local_search_term=search,
    )
    _show_feed(ctx, FeedKind.payment, criteria, sort, pages, output_format, profile)


@app.command()
def commissions(
    ctx: typer.Context,
    paid: Optional[bool] = typer.Option(
        None, "--paid/--unpaid", help="Only paid or unpaid commissions (filtered by the server)."
    ),
    month: Optional[str] = typer.Option(
        None, "--month", "-m", help="Only entries of this month (YYYY-MM)."
    ),
    search: Optional[str] = typer.Option(
        None, "--search", "-s", help="Case-insensitive text search."
    ),
    sort: SortDirection = typer.Option(
        SortDirection.desc, "--sort", help="Chronological order."
    ),
    pages: int = typer.Option(1, "--pages", "-n", min=1, help="Number of pages to load."),
    output_format: OutputFormat = typer.Option(
        OutputFormat.table, "--format", "-f", help="Output format."
    ),
    profile: str = typer.Option(DEFAULT_PROFILE, "--profile", "-p", help="Token profile."),
):
    """
    Show store commission history grouped by day.
    """
    criteria = FilterCriteria(
        server_paid_flag=paid,
        local_month=parse_month(month),
        local_search_term=search,
    )
    _show_feed(ctx, FeedKind.commission, criteria, sort, pages, output_format, profile)


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show status messages and debug logging."
    ),
):
    """
    Ledger history viewer CLI
    """
    configure_logging(verbose=verbose)
    ctx.obj = {"verbose": verbose}
