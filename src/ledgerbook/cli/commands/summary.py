"""Day-end summary commands."""

import click
from ledgerbook.cli.error_handling import format_money, handle_domain_error
from ledgerbook.domain.errors import DomainError
from ledgerbook.utils.date_parser import parse_date


def _parse_day_or_exit(ctx, value: str):
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)


def _display_summary(summary) -> None:
    """Print per-account rows and their totals."""
    click.echo("-" * 110)
    click.echo(
        f"{'Account':<28} {'Opening':>15} {'Receivable':>15} {'Payable':>15} "
        f"{'Closing':>15} {'Net':>12} {'Count':>6}"
    )
    click.echo("-" * 110)
    for row in summary.rows:
        click.echo(
            f"{row.display_name[:28]:<28} {format_money(row.opening_balance):>15} "
            f"{format_money(row.total_receivable):>15} {format_money(row.total_payable):>15} "
            f"{format_money(row.closing_balance):>15} {format_money(row.net_change):>12} "
            f"{row.transaction_count:>6}"
        )
    totals = summary.totals
    click.echo("-" * 110)
    click.echo(
        f"{'TOTAL (' + str(totals.account_count) + ' accounts)':<28} "
        f"{format_money(totals.opening_balance):>15} {format_money(totals.total_receivable):>15} "
        f"{format_money(totals.total_payable):>15} {format_money(totals.closing_balance):>15} "
        f"{format_money(totals.net_change):>12} {totals.transaction_count:>6}"
    )


@click.command("summary")
@click.option(
    "--date",
    "day",
    default="today",
    show_default=True,
    help="Day to summarize (YYYY-MM-DD or relative like 'yesterday')",
)
@click.pass_context
def summary(ctx, day: str):
    """Show the day-end summary across all accounts.

    Each account with activity on the day gets a row with its opening and
    closing balance for the day.

    Examples:
        ledgerbook summary
        ledgerbook summary --date 2024-01-15
    """
    engine = ctx.obj["engine"]
    target = _parse_day_or_exit(ctx, day)

    try:
        result = engine.get_day_summary(target)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nDay summary for {result.date}")
    if not result.rows:
        click.echo("No transactions found.")
        return
    _display_summary(result)


@click.command("daily")
@click.option(
    "--date",
    "day",
    default="today",
    show_default=True,
    help="Day to list (YYYY-MM-DD or relative like 'yesterday')",
)
@click.pass_context
def daily(ctx, day: str):
    """Show every transaction posted on a day, followed by its summary.

    Examples:
        ledgerbook daily --date yesterday
    """
    engine = ctx.obj["engine"]
    target = _parse_day_or_exit(ctx, day)

    try:
        ledger = engine.get_daily_ledger(target)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nDaily ledger for {ledger.date}")
    if not ledger.transactions:
        click.echo("No transactions found.")
        return

    names = {row.account_id: row.display_name for row in ledger.summary.rows}
    click.echo("-" * 110)
    click.echo(
        f"{'ID':<6} {'Time':<6} {'Account':<24} {'Type':<11} {'Amount':>12} "
        f"{'Opening':>14} {'Closing':>14}  {'Status':<9}"
    )
    click.echo("-" * 110)
    for txn in ledger.transactions:
        click.echo(
            f"{txn.id:<6} {txn.date:%H:%M}  {names.get(txn.account_id, 'Unknown')[:24]:<24} "
            f"{txn.type.value:<11} {format_money(txn.amount):>12} "
            f"{format_money(txn.opening_balance):>14} {format_money(txn.closing_balance):>14}  "
            f"{txn.status.value:<9}"
        )

    click.echo()
    _display_summary(ledger.summary)


def register_commands(cli):
    """Register summary commands with main CLI."""
    cli.add_command(summary)
    cli.add_command(daily)
