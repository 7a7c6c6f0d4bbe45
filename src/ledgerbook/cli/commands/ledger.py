"""Account ledger command."""

import click
from ledgerbook.cli.account_resolution import resolve_account_or_exit
from ledgerbook.cli.date_filters import period_options, resolve_cli_date_range
from ledgerbook.cli.error_handling import format_money, handle_domain_error
from ledgerbook.domain.errors import DomainError


@click.command("ledger")
@click.argument("account", metavar="ACCOUNT")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
@period_options
@click.pass_context
def show_ledger(
    ctx,
    account: str,
    start_date: str | None,
    end_date: str | None,
    **period_flags: bool,
):
    """Show an account's ledger with opening and closing balances.

    ACCOUNT can be an account name or ID. The opening balance is the
    balance just before the first day of the range.

    Examples:
        ledgerbook ledger "Ali Paints"
        ledgerbook ledger 2 --start-date 2024-01-01 --end-date 2024-01-31
        ledgerbook ledger "Ali Paints" --last-month
    """
    engine = ctx.obj["engine"]
    account_id = resolve_account_or_exit(ctx, engine.accounts, account)
    start, end = resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, period_flags=period_flags
    )

    try:
        ledger = engine.get_account_ledger(account_id, start, end)
    except DomainError as e:
        handle_domain_error(ctx, e)

    period = f"{ledger.start_date or 'beginning'} to {ledger.end_date or 'end'}"
    click.echo(f"\nLedger: {ledger.account.display_name} ({period})")
    click.echo("-" * 90)
    click.echo(f"{'Opening balance':<60} {format_money(ledger.opening_balance):>20}")
    click.echo("-" * 90)

    for txn in ledger.transactions:
        signed = format_money(txn.signed_amount)
        description = (txn.description or "")[:25]
        click.echo(
            f"{str(txn.posting_date):<12} {txn.id:<6} {description:<25} "
            f"{signed:>15} {format_money(txn.closing_balance):>20}"
        )

    click.echo("-" * 90)
    click.echo(
        f"Receivable: {format_money(ledger.total_receivable)} | "
        f"Payable: {format_money(ledger.total_payable)} | "
        f"Count: {ledger.total_transactions}"
    )
    click.echo(f"{'Closing balance':<60} {format_money(ledger.closing_balance):>20}")


def register_commands(cli):
    """Register ledger command with main CLI."""
    cli.add_command(show_ledger)
