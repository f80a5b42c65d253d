"""CLI error handling helpers."""

import click

from taxledger.domain.engine import AccountingEngine
from taxledger.domain.errors import DomainError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    if isinstance(error, DomainError) and error.field:
        click.echo(f"Error ({error.field}): {error}", err=True)
    else:
        click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def report_persistence(engine: AccountingEngine) -> None:
    """Warn when the last change could not be saved."""
    if engine.last_persistence_error:
        click.echo(f"Warning: changes were not saved: {engine.last_persistence_error}", err=True)
