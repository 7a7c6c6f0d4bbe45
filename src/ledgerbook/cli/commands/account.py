"""Account management commands."""

import click
from ledgerbook.cli.account_resolution import resolve_account_or_exit
from ledgerbook.cli.error_handling import format_money, handle_domain_error
from ledgerbook.domain.errors import DomainError
from ledgerbook.utils.amount_parser import parse_amount


@click.group()
def account_group():
    """Manage vendor and customer accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option("--opening", default="0", help="Opening balance before any transaction (default 0)")
@click.pass_context
def create_account(ctx, name: str, opening: str):
    """Create a new account.

    The opening balance is fixed at creation; all later balances derive
    from it.

    Examples:
        ledgerbook account create "Ali Paints"
        ledgerbook account create "Nippon Supplier" --opening 1000
        ledgerbook account create "Walk-in Customer" --opening "(250)"
    """
    engine = ctx.obj["engine"]

    try:
        anchor = parse_amount(opening)
    except ValueError as e:
        click.echo(f"Error: Invalid opening balance: {e}", err=True)
        ctx.exit(1)

    try:
        account = engine.create_account(name, anchor)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created account '{account.display_name}' (ID: {account.id})")
    click.echo(f"Opening balance: {format_money(account.opening_anchor)}")


@account_group.command("list")
@click.option("--search", help="Only show accounts whose name contains this text")
@click.pass_context
def list_accounts(ctx, search: str | None):
    """List accounts with their current balances."""
    engine = ctx.obj["engine"]

    accounts = engine.list_accounts(search=search)
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 70)
    for acc in accounts:
        flag = "  [CORRUPTED]" if acc.is_corrupted else ""
        click.echo(
            f"ID: {acc.id:3d} | {acc.display_name:30s} | "
            f"Balance: {format_money(acc.current_balance):>14s}{flag}"
        )


@account_group.command("rename")
@click.argument("account", metavar="ACCOUNT")
@click.argument("new_name", metavar="NEW_NAME")
@click.pass_context
def rename_account(ctx, account: str, new_name: str) -> None:
    """Rename an account.

    ACCOUNT can be an account name or ID.

    Examples:
        ledgerbook account rename "Ali Paints" "Ali Paints & Hardware"
        ledgerbook account rename 1 "Nippon Supplier"
    """
    engine = ctx.obj["engine"]
    account_id = resolve_account_or_exit(ctx, engine.accounts, account)

    try:
        engine.rename_account(account_id, new_name)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Renamed account to '{new_name.strip()}'")


@account_group.command("delete")
@click.argument("account", metavar="ACCOUNT")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_account(ctx, account: str, yes: bool) -> None:
    """Delete an account.

    ACCOUNT can be an account name or ID. Only accounts without
    transactions can be deleted.
    """
    engine = ctx.obj["engine"]
    account_id = resolve_account_or_exit(ctx, engine.accounts, account)
    account_obj = engine.get_account(account_id)

    if not yes and not click.confirm(
        f"Are you sure you want to delete account '{account_obj.display_name}' (ID: {account_id})?"
    ):
        click.echo("Deletion cancelled.")
        return

    try:
        engine.delete_account(account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted account '{account_obj.display_name}'")


@account_group.command("repair")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def repair_account(ctx, account: str) -> None:
    """Rebuild an account's balances from its opening balance.

    Clears the corrupted flag when the rebuilt ledger validates.
    """
    engine = ctx.obj["engine"]
    account_id = resolve_account_or_exit(ctx, engine.accounts, account)

    try:
        repaired = engine.repair_account(account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(
        f"Repaired account '{repaired.display_name}' "
        f"(balance: {format_money(repaired.current_balance)})"
    )


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
