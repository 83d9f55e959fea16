"""Main CLI entry point."""

import click
from finctl.database.factories import create_database
from finctl.logging_setup import configure_logging

# Import and register all commands at module level
from finctl.cli.commands import (
    entry,
    transaction,
    payment,
    group,
    bank,
    category,
    report,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides FINCTL_DB_PATH environment variable)",
    envvar="FINCTL_DB_PATH",
)
@click.option(
    "--tenant",
    default="default",
    show_default=True,
    help="Tenant whose ledger to operate on",
    envvar="FINCTL_TENANT",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Log level (overrides FINCTL_LOG_LEVEL environment variable)",
)
@click.pass_context
def cli(ctx, db_path: str | None, tenant: str, log_level: str | None):
    """finctl - Ledger for sales, purchases and installments.

    Record entries split into installments, track their payments, reconcile
    them against bank statements and produce DRE reports, per tenant.
    """
    ctx.ensure_object(dict)
    configure_logging(log_level)
    ctx.obj["tenant"] = tenant

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
entry.register_commands(cli)
transaction.register_commands(cli)
payment.register_commands(cli)
group.register_commands(cli)
bank.register_commands(cli)
category.register_commands(cli)
report.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
