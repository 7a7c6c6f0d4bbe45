"""Main CLI entry point."""

from dataclasses import replace

import click
from ledgerbook.config import LedgerSettings
from ledgerbook.database.factories import create_sqlite_database
from ledgerbook.domain.ledger import LedgerEngine
from ledgerbook.logging_config import configure_logging

# Import and register all commands at module level
from ledgerbook.cli.commands import (
    account,
    add,
    transaction,
    ledger,
    summary,
    audit,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides LEDGERBOOK_DB_PATH environment variable)",
    envvar="LEDGERBOOK_DB_PATH",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Log level (overrides LEDGERBOOK_LOG_LEVEL environment variable)",
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str | None):
    """Ledgerbook - vendor and customer ledger balances.

    Record receivables and payables per account, with running balances that
    stay correct when entries are backdated, edited or deleted.
    """
    ctx.ensure_object(dict)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        try:
            settings = LedgerSettings.from_env()
        except ValueError as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(1)
        if db_path:
            settings = replace(settings, database_path=db_path)
        configure_logging(log_level or settings.log_level)

        db = create_sqlite_database(database_path=settings.database_path)
        db.connect()
        db.initialize_schema()
        ctx.call_on_close(db.disconnect)
        ctx.obj["db"] = db
        ctx.obj["engine"] = LedgerEngine(db, settings)


# Register all commands
account.register_commands(cli)
add.register_commands(cli)
transaction.register_commands(cli)
ledger.register_commands(cli)
summary.register_commands(cli)
audit.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
