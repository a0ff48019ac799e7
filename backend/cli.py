"""
Ops Platform CLI.

Command-line access to the lifecycle engine: cascades, previews and the
retention reaper.
"""

import typer
from rich.console import Console
from rich.table import Table

from ops_api.models import Base, EntityKind
from ops_api.services.lifecycle import (
    CascadeOptions,
    CascadeResult,
    RetentionReaper,
    ValidationResult,
    get_cascade_engine,
)
from ops_shared.config.logging import setup_logging
from ops_shared.infrastructure.db import engine, get_db_context

app = typer.Typer(
    name="ops",
    help="Ops Platform lifecycle CLI",
    add_completion=False,
)
console = Console()


@app.callback()
def main():
    """Configure logging before any command runs."""
    setup_logging()


def _issues_table(title: str, result: CascadeResult | ValidationResult) -> Table:
    table = Table(title=title)
    table.add_column("Severity", style="bold")
    table.add_column("Code", style="cyan")
    table.add_column("Entity")
    table.add_column("Message")

    for severity, items, style in (
        ("error", result.errors, "red"),
        ("warning", result.warnings, "yellow"),
    ):
        for item in items:
            meta = item.metadata
            entity = f"{meta.get('entity_kind', '?')}:{meta.get('entity_id', '?')}"
            table.add_row(f"[{style}]{severity}[/{style}]", item.code, entity, item.message)
    return table


def _print_cascade(action: str, result: CascadeResult) -> None:
    if result.errors or result.warnings:
        console.print(_issues_table(f"{action} report", result))
    if result.success:
        console.print(f"[green]✓ {action} succeeded: {result.affected_count} record(s) affected[/green]")
    else:
        console.print(f"[red]✗ {action} refused ({len(result.errors)} error(s))[/red]")
        raise typer.Exit(1)


# =============================================================================
# Database Commands
# =============================================================================

@app.command()
def db_init():
    """Create all tables on the configured database."""
    Base.metadata.create_all(bind=engine)
    console.print("[green]✓ Tables created/verified[/green]")


# =============================================================================
# Lifecycle Commands
# =============================================================================

@app.command()
def cascade_delete(
    kind: EntityKind = typer.Argument(..., help="Entity kind"),
    entity_id: int = typer.Argument(..., help="Entity ID"),
    actor: int = typer.Option(None, "--actor", "-a", help="User ID recorded as deleted_by"),
    force: bool = typer.Option(False, "--force", "-f", help="Proceed past blocking errors"),
    skip_validation: bool = typer.Option(False, "--skip-validation", help="Skip all rules"),
):
    """Tombstone an entity and everything it owns."""
    with get_db_context() as db:
        result = get_cascade_engine(db).cascade_delete(
            kind,
            entity_id,
            actor,
            CascadeOptions(force=force, skip_validation=skip_validation),
        )
    _print_cascade("Delete", result)


@app.command()
def cascade_restore(
    kind: EntityKind = typer.Argument(..., help="Entity kind"),
    entity_id: int = typer.Argument(..., help="Entity ID"),
    skip_validation: bool = typer.Option(False, "--skip-validation", help="Skip all rules"),
):
    """Restore an entity and its tombstoned descendants."""
    with get_db_context() as db:
        result = get_cascade_engine(db).cascade_restore(
            kind,
            entity_id,
            CascadeOptions(skip_validation=skip_validation),
        )
    _print_cascade("Restore", result)


@app.command()
def preview(
    kind: EntityKind = typer.Argument(..., help="Entity kind"),
    entity_id: int = typer.Argument(..., help="Entity ID"),
    restore: bool = typer.Option(False, "--restore", "-r", help="Preview a restore instead"),
):
    """Show what a delete (or restore) of one entity would report."""
    with get_db_context() as db:
        engine_ = get_cascade_engine(db)
        if restore:
            result = engine_.validate_restoration(kind, entity_id)
        else:
            result = engine_.validate_deletion(kind, entity_id)

    action = "Restore" if restore else "Delete"
    if result.errors or result.warnings:
        console.print(_issues_table(f"{action} preview", result))
    if result.valid:
        console.print(f"[green]✓ {action} allowed[/green]")
    else:
        console.print(f"[red]✗ {action} blocked[/red]")
        raise typer.Exit(1)


@app.command()
def reap(
    dry_run: bool = typer.Option(False, "--dry-run", "-n", help="Count without purging"),
):
    """Purge tombstones older than their retention window."""
    with get_db_context() as db:
        report = RetentionReaper(db).purge_expired(dry_run=dry_run)

    table = Table(title="Retention purge" + (" (dry run)" if dry_run else ""))
    table.add_column("Kind", style="cyan")
    table.add_column("Purged", style="green")
    table.add_column("Skipped", style="yellow")
    for kind, purged in report.purged.items():
        table.add_row(kind, str(purged), str(report.skipped.get(kind, 0)))
    console.print(table)

    verb = "Would purge" if dry_run else "Purged"
    console.print(f"[green]✓ {verb} {report.total} record(s)[/green]")


if __name__ == "__main__":
    app()
