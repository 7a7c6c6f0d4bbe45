"""Consistency audit command."""

import click


@click.command("audit")
@click.pass_context
def audit(ctx):
    """Validate every account's balances and rebuild broken ones.

    Exits with status 1 if any account could not be repaired.
    """
    engine = ctx.obj["engine"]
    report = engine.audit()

    click.echo(f"Checked {report.checked_accounts} account(s).")
    if report.is_clean:
        click.echo("All balances are consistent.")
        return

    for account_id, index in sorted(report.violations.items()):
        click.echo(f"  Account {account_id}: inconsistent from position {index}")
    if report.repaired:
        click.echo(f"Repaired: {', '.join(str(a) for a in report.repaired)}")
    if report.corrupted:
        click.echo(
            f"Error: Could not repair: {', '.join(str(a) for a in report.corrupted)}",
            err=True,
        )
        ctx.exit(1)


def register_commands(cli):
    """Register audit command with main CLI."""
    cli.add_command(audit)
