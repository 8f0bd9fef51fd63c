"""CLI interface for folio."""

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Annotated, NoReturn, Optional

import typer
from rich.console import Console
from rich.table import Table

from folio.config import FolioConfig, load_config, merge_cli_overrides
from folio.content.backups import BackupManager
from folio.content.kinds import spec_for
from folio.content.models import EntityKind
from folio.content.store import ContentStore
from folio.content.transfer import ImportExport
from folio.errors import FolioError, ValidationError
from folio.storage.files import FileAdapter
from folio.validation import ValidationOptions

app = typer.Typer(
    name="folio",
    help="Inspect and maintain a bilingual portfolio content store.",
)

console = Console()

KIND_HELP = "Entity kind: " + ", ".join(kind.value for kind in EntityKind)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from folio import __version__

        console.print(f"folio {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to a .folio.toml file."),
    ] = None,
    storage_dir: Annotated[
        Optional[Path],
        typer.Option("--storage-dir", "-d", help="Directory holding the content files."),
    ] = None,
    quota: Annotated[
        Optional[int],
        typer.Option("--quota", help="Refuse writes that would grow storage past this many bytes."),
    ] = None,
    keep: Annotated[
        Optional[int],
        typer.Option("--keep", min=1, help="Number of backups kept per kind."),
    ] = None,
    require_image: Annotated[
        Optional[bool],
        typer.Option(
            "--require-image/--no-require-image",
            help="Require a profile image in the about section.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Log recoveries and commits."),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """Folio - portfolio content store maintenance."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    config = load_config(config_path)
    config = merge_cli_overrides(
        config,
        storage_directory=str(storage_dir) if storage_dir else None,
        storage_quota=quota,
        backup_keep=keep,
        require_image=require_image,
    )
    ctx.obj = config


def _open_store(ctx: typer.Context) -> ContentStore:
    config: FolioConfig = ctx.obj or load_config()
    try:
        adapter = FileAdapter(config.storage_path, quota_bytes=config.storage.quota_bytes)
    except FolioError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1) from exc
    return ContentStore(
        adapter,
        backups=BackupManager(adapter, keep=config.backups.keep),
        options=ValidationOptions(require_image=config.validation.require_image),
        listen_external=False,
    )


def _kind(value: str) -> EntityKind:
    try:
        return spec_for(value).kind
    except ValueError as exc:
        console.print(f"[red]Error:[/red] Unknown kind: {value}")
        console.print(KIND_HELP)
        raise typer.Exit(1) from exc


def _fail(exc: Exception) -> NoReturn:
    console.print(f"[red]Error:[/red] {exc}")
    if isinstance(exc, ValidationError):
        for field, message in sorted(exc.errors.items()):
            console.print(f"  - {field}: {message}")
    raise typer.Exit(1) from exc


@app.command(name="show")
def show_cmd(
    ctx: typer.Context,
    kind: Annotated[str, typer.Argument(help=KIND_HELP)],
    item_id: Annotated[
        Optional[str],
        typer.Option("--id", help="Show a single collection item."),
    ] = None,
) -> None:
    """Print the current value of an entity kind as JSON."""
    entity = _kind(kind)
    store = _open_store(ctx)
    if spec_for(entity).collection:
        if item_id is not None:
            item = store.find(entity, item_id)
            if item is None:
                console.print(f"[red]Error:[/red] No {entity} item with id {item_id}")
                raise typer.Exit(1)
            value = item.to_wire()
        else:
            value = [item.to_wire() for item in store.list(entity)]
    else:
        value = store.get(entity).to_wire()
    console.print_json(json.dumps(value, ensure_ascii=False))


@app.command(name="check")
def check_cmd(ctx: typer.Context) -> None:
    """Verify that every persisted kind parses, validates and matches memory."""
    store = _open_store(ctx)
    reports = store.check_all()

    table = Table(title="Integrity")
    table.add_column("Kind")
    table.add_column("Status")
    table.add_column("Issues")
    for report in reports:
        status = "[green]ok[/green]" if report.valid else "[red]failed[/red]"
        table.add_row(report.kind.value, status, "\n".join(report.issues))
    console.print(table)

    for warning in store.warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning}")
    if not all(report.valid for report in reports):
        raise typer.Exit(1)


@app.command(name="backups")
def backups_cmd(
    ctx: typer.Context,
    kind: Annotated[str, typer.Argument(help=KIND_HELP)],
) -> None:
    """List the snapshots kept for an entity kind, newest first."""
    entity = _kind(kind)
    store = _open_store(ctx)
    backups = store.list_backups(entity)
    if not backups:
        console.print(f"[yellow]No backups for {entity}.[/yellow]")
        return

    table = Table(title=f"Backups of {entity}")
    table.add_column("Key")
    table.add_column("Taken (UTC)")
    for backup in backups:
        taken = datetime.fromtimestamp(backup.timestamp / 1000, tz=UTC)
        table.add_row(backup.key, taken.strftime("%Y-%m-%d %H:%M:%S"))
    console.print(table)


@app.command(name="restore")
def restore_cmd(
    ctx: typer.Context,
    kind: Annotated[str, typer.Argument(help=KIND_HELP)],
    backup_key: Annotated[str, typer.Argument(help="Key printed by 'folio backups'.")],
) -> None:
    """Make a snapshot the current value again."""
    entity = _kind(kind)
    store = _open_store(ctx)
    try:
        store.restore_backup(entity, backup_key)
    except KeyError as exc:
        console.print(f"[red]Error:[/red] No backup {backup_key} for {entity}")
        raise typer.Exit(1) from exc
    except FolioError as exc:
        _fail(exc)
    console.print(f"[green]Restored {entity} from {backup_key}[/green]")


@app.command(name="export")
def export_cmd(
    ctx: typer.Context,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Write to this file instead of stdout."),
    ] = None,
    kind: Annotated[
        Optional[str],
        typer.Option("--kind", "-k", help="Export a single entity kind."),
    ] = None,
    include_messages: Annotated[
        Optional[bool],
        typer.Option("--messages/--no-messages", help="Include contact messages."),
    ] = None,
) -> None:
    """Export content as a versioned JSON document."""
    config: FolioConfig = merge_cli_overrides(
        ctx.obj or load_config(), include_messages=include_messages
    )
    transfer = ImportExport(_open_store(ctx))
    if kind is not None:
        document = transfer.export_entity(_kind(kind))
    else:
        document = transfer.export_all(include_messages=config.export.include_messages)

    text = document.to_json()
    if output is None:
        console.print_json(text)
        return
    output.write_text(text, encoding="utf-8")
    console.print(
        f"[green]Exported {document.metadata.total_items} item(s) to {output}[/green]"
    )


@app.command(name="import")
def import_cmd(
    ctx: typer.Context,
    source: Annotated[Path, typer.Argument(help="Export document to import.")],
    merge: Annotated[
        bool,
        typer.Option("--merge", help="Upsert by id instead of replacing each entity."),
    ] = False,
) -> None:
    """Validate and import an export document."""
    if not source.exists():
        console.print(f"[red]Error:[/red] File not found: {source}")
        raise typer.Exit(1)
    transfer = ImportExport(_open_store(ctx))
    try:
        report = transfer.import_all(source.read_text(encoding="utf-8"), merge=merge)
    except FolioError as exc:
        _fail(exc)

    for warning in report.warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning}")
    if report.applied:
        console.print(f"[green]Imported:[/green] {', '.join(k.value for k in report.applied)}")
    for name, errors in report.rejected.items():
        console.print(f"[red]Rejected {name}:[/red]")
        for field, message in sorted(errors.items()):
            console.print(f"  - {field}: {message}")
    if report.rejected:
        raise typer.Exit(1)


@app.command(name="reset")
def reset_cmd(
    ctx: typer.Context,
    kind: Annotated[str, typer.Argument(help=KIND_HELP)],
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Do not ask for confirmation."),
    ] = False,
) -> None:
    """Put an entity kind back to its built-in default."""
    entity = _kind(kind)
    if not yes:
        typer.confirm(f"Reset {entity} to its default?", abort=True)
    store = _open_store(ctx)
    try:
        store.reset(entity)
    except FolioError as exc:
        _fail(exc)
    console.print(f"[green]Reset {entity}[/green]")
