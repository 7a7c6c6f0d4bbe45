"""Transaction management commands."""

import click
from ledgerbook.cli.account_resolution import resolve_account_or_exit
from ledgerbook.cli.error_handling import format_money, handle_domain_error
from ledgerbook.domain.errors import DomainError
from ledgerbook.utils.amount_parser import parse_amount
from ledgerbook.utils.date_parser import parse_datetime


@click.group()
def transaction_group():
    """Manage transactions."""
    pass


@transaction_group.command("edit")
@click.argument("transaction_id", type=int)
@click.option(
    "--type",
    "txn_type",
    type=click.Choice(["receivable", "payable"], case_sensitive=False),
    help="New transaction type",
)
@click.option("--amount", help="New amount, greater than zero")
@click.option("--date", help="New date (YYYY-MM-DD [HH:MM] or relative like 'yesterday')")
@click.option("--description", help="New description")
@click.option(
    "--status",
    type=click.Choice(["pending", "completed"], case_sensitive=False),
    help="New status",
)
@click.pass_context
def edit_transaction(
    ctx,
    transaction_id: int,
    txn_type: str | None,
    amount: str | None,
    date: str | None,
    description: str | None,
    status: str | None,
) -> None:
    """Edit a transaction.

    Updates only the fields that are provided. Changing the date, type or
    amount recomputes the balances of every transaction from the affected
    position onwards.

    Examples:
        ledgerbook transaction edit 4 --amount 750
        ledgerbook transaction edit 4 --date 2024-01-10 --type payable
        ledgerbook transaction edit 4 --status completed
    """
    engine = ctx.obj["engine"]

    fields = {}
    if txn_type is not None:
        fields["type"] = txn_type
    if amount is not None:
        try:
            fields["amount"] = parse_amount(amount)
        except ValueError as e:
            click.echo(f"Error: Invalid amount format: {e}", err=True)
            ctx.exit(1)
    if date is not None:
        try:
            fields["date"] = parse_datetime(date)
        except ValueError as e:
            click.echo(f"Error: Invalid date format: {e}", err=True)
            ctx.exit(1)
    if description is not None:
        fields["description"] = description
    if status is not None:
        fields["status"] = status

    if not fields:
        click.echo("Error: Nothing to update. Provide at least one option.", err=True)
        ctx.exit(1)

    try:
        txn = engine.edit_transaction(transaction_id, **fields)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Updated transaction {transaction_id}")
    click.echo(
        f"  Opening: {format_money(txn.opening_balance)} | "
        f"Closing: {format_money(txn.closing_balance)}"
    )


@transaction_group.command("list")
@click.option("--account", required=True, help="Account name or ID")
@click.option("--verbose", "-v", is_flag=True, help="Show sequence, status and creation time")
@click.pass_context
def list_transactions(ctx, account: str, verbose: bool):
    """List an account's transactions in ledger order.

    Account can be specified by name or ID.
    """
    engine = ctx.obj["engine"]
    account_id = resolve_account_or_exit(ctx, engine.accounts, account)

    try:
        transactions = engine.list_transactions(account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not transactions:
        click.echo("No transactions found.")
        return

    click.echo(f"\nFound {len(transactions)} transaction(s):")
    if verbose:
        click.echo("=" * 100)
        for txn in transactions:
            click.echo(f"\nTransaction ID: {txn.id}")
            click.echo(f"  Date: {txn.date:%Y-%m-%d %H:%M}")
            click.echo(f"  Sequence: {txn.sequence}")
            click.echo(f"  Type: {txn.type.value}")
            click.echo(f"  Amount: {format_money(txn.amount)}")
            click.echo(f"  Status: {txn.status.value}")
            click.echo(f"  Opening: {format_money(txn.opening_balance)}")
            click.echo(f"  Closing: {format_money(txn.closing_balance)}")
            if txn.description:
                click.echo(f"  Description: {txn.description}")
            click.echo(f"  Recorded: {txn.created_at}")
            click.echo("-" * 100)
        return

    click.echo("-" * 100)
    click.echo(
        f"{'ID':<6} {'Date':<12} {'Type':<11} {'Amount':>12} {'Opening':>14} "
        f"{'Closing':>14}  {'Description':<25}"
    )
    click.echo("-" * 100)
    for txn in transactions:
        click.echo(
            f"{txn.id:<6} {str(txn.posting_date):<12} {txn.type.value:<11} "
            f"{format_money(txn.amount):>12} {format_money(txn.opening_balance):>14} "
            f"{format_money(txn.closing_balance):>14}  {(txn.description or '')[:25]:<25}"
        )


@transaction_group.command("delete")
@click.argument("transaction_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_transaction(ctx, transaction_id: int, yes: bool) -> None:
    """Delete a transaction.

    Examples:
        ledgerbook transaction delete 1
    """
    engine = ctx.obj["engine"]

    if not yes and not click.confirm(
        f"Are you sure you want to delete transaction {transaction_id}?"
    ):
        click.echo("Deletion cancelled.")
        return

    try:
        engine.delete_transaction(transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted transaction {transaction_id}")


def register_commands(cli: click.Group) -> None:
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
