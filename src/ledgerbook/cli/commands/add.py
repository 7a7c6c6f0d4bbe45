"""Add transaction command."""

import click
from ledgerbook.cli.account_resolution import resolve_account_or_exit
from ledgerbook.cli.error_handling import format_money, handle_domain_error
from ledgerbook.domain.entities import TransactionStatus
from ledgerbook.domain.errors import DomainError
from ledgerbook.utils.amount_parser import parse_amount
from ledgerbook.utils.date_parser import parse_datetime


@click.command("add")
@click.option("--account", required=True, help="Account name or ID")
@click.option(
    "--type",
    "txn_type",
    required=True,
    type=click.Choice(["receivable", "payable"], case_sensitive=False),
    help="Receivable raises the balance, payable lowers it",
)
@click.option("--amount", required=True, help="Transaction amount, greater than zero")
@click.option(
    "--date",
    default="now",
    show_default=True,
    help="Transaction date (YYYY-MM-DD [HH:MM] or relative like 'today', 'yesterday')",
)
@click.option("--description", help="Transaction description")
@click.option("--pending", is_flag=True, help="Record the transaction as pending")
@click.pass_context
def add_transaction(
    ctx,
    account: str,
    txn_type: str,
    amount: str,
    date: str,
    description: str | None,
    pending: bool,
):
    """Add a ledger transaction.

    Backdated transactions are inserted in date order and every later
    balance is recomputed.

    Examples:
        ledgerbook add --account "Ali Paints" --type receivable --amount 500 --date 2024-01-15
        ledgerbook add --account 2 --type payable --amount 200 --description "Primer stock"
    """
    engine = ctx.obj["engine"]
    account_id = resolve_account_or_exit(ctx, engine.accounts, account)

    try:
        txn_date = parse_datetime(date)
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)

    try:
        txn_amount = parse_amount(amount)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)

    status = TransactionStatus.PENDING if pending else TransactionStatus.COMPLETED
    try:
        txn = engine.add_transaction(
            account_id=account_id,
            type=txn_type,
            amount=txn_amount,
            date=txn_date,
            description=description,
            status=status,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    account_obj = engine.get_account(account_id)
    click.echo(f"Created transaction {txn.id}")
    click.echo(f"  Account: {account_obj.display_name}")
    click.echo(f"  Date: {txn.date:%Y-%m-%d %H:%M}")
    click.echo(f"  Type: {txn.type.value}")
    click.echo(f"  Amount: {format_money(txn.amount)}")
    click.echo(f"  Opening: {format_money(txn.opening_balance)}")
    click.echo(f"  Closing: {format_money(txn.closing_balance)}")
    if description:
        click.echo(f"  Description: {description}")
    click.echo(f"  Account balance: {format_money(account_obj.current_balance)}")


def register_commands(cli):
    """Register add command with main CLI."""
    cli.add_command(add_transaction)
