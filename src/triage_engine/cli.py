"""CLI for the triage engine."""

import json
import sys
from datetime import datetime, timedelta
from pathlib import Path

import click
import structlog

from triage_engine.config.logging import configure_logging
from triage_engine.config.settings import get_settings
from triage_engine.core.exceptions import TriageEngineError
from triage_engine.core.models import (
    DataPackConfiguration,
    DeviceType,
    InventoryLookupQuery,
    InventoryRecord,
    LookupField,
)
from triage_engine.repositories.factory import RepositoryFactory

logger = structlog.get_logger(__name__)

EXIT_WORDS = {"exit", "quit", ":q"}


def _create_factory() -> RepositoryFactory:
    return RepositoryFactory(get_settings())


def _create_orchestrator(factory: RepositoryFactory):
    from triage_engine.conversation import ConversationOrchestrator

    return ConversationOrchestrator(
        factory.get_kb_repository(),
        factory.get_inventory_repository(),
        policy=factory.get_workflow_policy(),
    )


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _record_line(record: InventoryRecord) -> str:
    parts = [
        record.source_type.value,
        record.serial_number or "-",
        record.display_name or "-",
        record.username or "-",
    ]
    if record.asset_tag:
        parts.append(f"asset {record.asset_tag}")
    if record.phone_number:
        parts.append(f"phone {record.phone_number}")
    return " | ".join(parts)


def _record_dict(record: InventoryRecord) -> dict:
    return record.model_dump(mode="json", exclude={"raw_json"})


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
def cli(verbose: bool) -> None:
    """Triage Engine: local IT-support triage and KB retrieval."""
    settings = get_settings()
    log_level = "DEBUG" if verbose else settings.log_level
    configure_logging(log_level=log_level, log_format=settings.log_format)


@cli.command("import")
@click.option(
    "--data-dir",
    "-d",
    type=click.Path(file_okay=False, path_type=Path),
    help="Dataset pack root (default: TRIAGE_DATA_DIR)",
)
@click.option("--json", "output_json", is_flag=True, help="Output report as JSON")
def import_data(data_dir: Path | None, output_json: bool) -> None:
    """Import a dataset pack into the local store.

    Unchanged packs are detected by content fingerprint and skipped.
    """
    factory = _create_factory()
    try:
        config = (
            DataPackConfiguration.local_default(data_dir) if data_dir else factory.get_data_pack()
        )
        report = factory.get_importer().import_all(config)
    except TriageEngineError as e:
        _fail(e.message)
        return
    finally:
        factory.close()

    if output_json:
        click.echo(
            json.dumps(
                {
                    "imported_files": report.imported_files,
                    "skipped_files": report.skipped_files,
                    "record_counts": report.record_counts,
                },
                indent=2,
            )
        )
        return

    if not report.changed:
        click.echo("No changes imported.")
    for name in report.imported_files:
        click.echo(f"  [imported] {name} ({report.record_counts.get(name, 0)} records)")
    for name in report.skipped_files:
        click.echo(f"  [skipped]  {name}")


@cli.command()
@click.argument("query")
@click.option("--device", type=click.Choice([d.value for d in DeviceType]), help="Preferred device")
@click.option("--app", help="Preferred application")
@click.option("--limit", "-l", default=None, type=int, help="Max results")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
def search(
    query: str, device: str | None, app: str | None, limit: int | None, output_json: bool
) -> None:
    """Search the knowledge base."""
    from triage_engine.services.retrieval import KnowledgeRetrievalService

    factory = _create_factory()
    try:
        service = KnowledgeRetrievalService(factory.get_kb_repository())
        results = service.search(
            query,
            preferred_device=DeviceType(device) if device else None,
            preferred_app=app,
            limit=limit or factory.settings.search_limit,
        )
    finally:
        factory.close()

    if output_json:
        output = {
            "query": query,
            "results": [
                {
                    "id": r.article.id,
                    "title": r.article.title,
                    "source_path": r.article.source_path,
                    "score": r.score,
                    "platforms": r.article.platforms,
                    "apps": r.article.apps,
                }
                for r in results
            ],
        }
        click.echo(json.dumps(output, indent=2, ensure_ascii=False))
        return

    if not results:
        click.echo("No results found.")
        return

    click.echo(f"Found {len(results)} results:\n")
    for i, result in enumerate(results, 1):
        click.echo(f"  {i}. [{result.score:.3f}] {result.article.title}")
        click.echo(f"     {result.article.source_path}")


@cli.command()
@click.argument("text")
@click.option(
    "--field",
    "-f",
    type=click.Choice([f.value for f in LookupField]),
    default=LookupField.ANY.value,
    help="Field to match",
)
@click.option("--limit", "-l", default=None, type=int, help="Max records")
@click.option("--json", "output_json", is_flag=True, help="Output records as JSON")
def lookup(text: str, field: str, limit: int | None, output_json: bool) -> None:
    """Look up inventory records."""
    factory = _create_factory()
    try:
        records = factory.get_inventory_repository().lookup(
            InventoryLookupQuery(text=text, field=LookupField(field)),
            limit=limit or factory.settings.lookup_limit,
        )
    finally:
        factory.close()

    if output_json:
        click.echo(json.dumps({"records": [_record_dict(r) for r in records]}, indent=2))
        return

    if not records:
        click.echo("No inventory records found.")
        return
    for record in records:
        click.echo(f"  {_record_line(record)}")


@cli.command()
@click.option("--serial", "-s", help="Device serial number")
@click.option("--username", "-u", help="Username fragment")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def link(serial: str | None, username: str | None, output_json: bool) -> None:
    """Correlate inventory records by serial number and/or username."""
    if not serial and not username:
        _fail("Provide --serial and/or --username.")
        return

    factory = _create_factory()
    try:
        context = factory.get_inventory_repository().linked_context(serial, username)
    finally:
        factory.close()

    if output_json:
        click.echo(
            json.dumps(
                {
                    "confidence": context.confidence,
                    "records": [_record_dict(r) for r in context.records],
                },
                indent=2,
            )
        )
        return

    click.echo(f"Linked records: {len(context.records)} (confidence {context.confidence:.2f})")
    for record in context.records:
        click.echo(f"  {_record_line(record)}")


@cli.command()
@click.option("--message", "-m", "messages", multiple=True, help="Message to send; repeatable")
def chat(messages: tuple[str, ...]) -> None:
    """Chat with the triage assistant.

    Without --message, reads messages interactively until 'exit'.
    """
    factory = _create_factory()
    try:
        orchestrator = _create_orchestrator(factory)
        support_logger = factory.get_logger("app")

        def respond(message: str) -> None:
            turn = orchestrator.handle(message)
            click.echo(turn.text)
            click.echo()

        if messages:
            for message in messages:
                respond(message)
            return

        click.echo("Paste a ticket (start with the ticket marker) or ask a question. Type 'exit' to quit.")
        while True:
            try:
                message = click.prompt("you", prompt_suffix="> ")
            except (EOFError, click.Abort):
                break
            if message.strip().lower() in EXIT_WORDS:
                break
            try:
                respond(message)
            except TriageEngineError as e:
                support_logger.error(f"chat: {e.message}")
                click.echo(f"Error: {e.message}", err=True)
    finally:
        factory.close()


@cli.command()
@click.argument("ticket_number")
@click.option("--body", "-b", help="Ticket text (default: read --file or stdin)")
@click.option(
    "--file",
    "-f",
    "body_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="File holding the ticket text",
)
@click.option("--template-id", "-t", type=int, help="Saved template to render")
@click.option("--resolution", "-r", help="Resolution summary to record")
@click.option("--json", "output_json", is_flag=True, help="Output artifacts as JSON")
def triage(
    ticket_number: str,
    body: str | None,
    body_file: Path | None,
    template_id: int | None,
    resolution: str | None,
    output_json: bool,
) -> None:
    """Triage a pasted ticket and track it."""
    from triage_engine.services.preferences import PreferencesStore
    from triage_engine.services.triage import TriageDeskService

    if body is None:
        body = body_file.read_text(encoding="utf-8") if body_file else click.get_text_stream("stdin").read()

    factory = _create_factory()
    try:
        desk = TriageDeskService(
            _create_orchestrator(factory),
            ticket_history=factory.get_ticket_history_repository(),
            templates=factory.get_template_repository(),
            preferences=PreferencesStore(factory.settings.preferences_path),
            support_logger=factory.get_logger("app"),
        )
        result = desk.triage(
            ticket_number, body, template_id=template_id, resolution_summary=resolution
        )
    except TriageEngineError as e:
        _fail(e.message)
        return
    finally:
        factory.close()

    if output_json:
        click.echo(
            json.dumps(
                {
                    "ticket_number": result.ticket_number,
                    "missing": result.missing_items,
                    "location": result.hints.location,
                    "other_users": result.hints.other_users,
                    "issue_scope": result.hints.issue_scope,
                    "technician_template": result.technician_template,
                    "end_user_script": result.end_user_script,
                },
                indent=2,
            )
        )
        return

    click.echo(result.export_package)


@cli.command()
def status() -> None:
    """Show the status of the local store."""
    settings = get_settings()
    factory = RepositoryFactory(settings)
    try:
        kb = factory.get_kb_repository()
        inventory = factory.get_inventory_repository()
        database = factory.get_database()
        tickets = factory.get_ticket_history_repository().list_recent(limit=1000)

        click.echo("Triage Engine Status")
        click.echo(f"  Data dir:   {settings.data_dir}")
        click.echo(f"  SQLite DB:  {settings.sqlite_path}")
        click.echo(f"  Schema:     v{database.user_version}")
        click.echo(f"  Articles:   {kb.count()}")
        click.echo(f"  Inventory:  {inventory.count()}")
        click.echo(f"  Tickets:    {len(tickets)}")
    finally:
        factory.close()


@cli.group()
def diagnostics() -> None:
    """Diagnostics log commands."""
    pass


@diagnostics.command("list")
@click.option("--limit", "-l", default=50, help="Max entries")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def diagnostics_list(limit: int, output_json: bool) -> None:
    """List recent diagnostics events, newest first."""
    factory = _create_factory()
    try:
        entries = factory.get_diagnostics_repository().list_recent(limit)
    finally:
        factory.close()

    if output_json:
        click.echo(json.dumps([e.model_dump(mode="json") for e in entries], indent=2))
        return

    if not entries:
        click.echo("No diagnostic events recorded.")
        return
    for entry in entries:
        click.echo(
            f"  #{entry.id} [{entry.level.value.upper()}] [{entry.category}] {entry.message}"
        )


@diagnostics.command("export")
@click.option("--limit", "-l", default=500, help="Max entries")
@click.option(
    "--output", "-o", type=click.Path(dir_okay=False, path_type=Path), help="Write to file"
)
def diagnostics_export(limit: int, output: Path | None) -> None:
    """Export diagnostics as plain text."""
    factory = _create_factory()
    try:
        text = factory.get_diagnostics_repository().export_text(limit)
    finally:
        factory.close()

    if output is None:
        click.echo(text)
        return
    output.write_text(text, encoding="utf-8")
    click.echo(f"Diagnostics exported to {output}")


@diagnostics.command("purge")
@click.option("--days", "-d", default=0, type=int, help="Keep entries newer than this many days")
def diagnostics_purge(days: int) -> None:
    """Delete diagnostics events older than --days (all when 0)."""
    cutoff = datetime.now() - timedelta(days=max(0, days))
    factory = _create_factory()
    try:
        removed = factory.get_diagnostics_repository().purge(cutoff)
    finally:
        factory.close()
    click.echo(f"Purged {removed} diagnostic events.")


@cli.group()
def templates() -> None:
    """Saved response template commands."""
    pass


@templates.command("list")
@click.option("--limit", "-l", default=100, help="Max templates")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def templates_list(limit: int, output_json: bool) -> None:
    """List saved templates, most recently updated first."""
    factory = _create_factory()
    try:
        saved = factory.get_template_repository().list_templates(limit)
    finally:
        factory.close()

    if output_json:
        click.echo(json.dumps([t.model_dump(mode="json") for t in saved], indent=2))
        return

    if not saved:
        click.echo("No saved templates.")
        return
    for template in saved:
        click.echo(f"  #{template.id} {template.name}")


@templates.command("save")
@click.argument("name")
@click.option("--body", "-b", help="Template body")
@click.option(
    "--file",
    "-f",
    "body_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="File holding the template body",
)
def templates_save(name: str, body: str | None, body_file: Path | None) -> None:
    """Create or update a template by name."""
    if body is None and body_file is not None:
        body = body_file.read_text(encoding="utf-8")
    factory = _create_factory()
    try:
        template = factory.get_template_repository().save_template(name, body or "")
    except TriageEngineError as e:
        _fail(e.message)
        return
    finally:
        factory.close()
    click.echo(f"Saved template #{template.id} {template.name}")


@templates.command("delete")
@click.argument("template_id", type=int)
def templates_delete(template_id: int) -> None:
    """Delete a template by id."""
    factory = _create_factory()
    try:
        factory.get_template_repository().delete_template(template_id)
    finally:
        factory.close()
    click.echo(f"Deleted template #{template_id}")


@cli.group()
def tickets() -> None:
    """Tracked ticket commands."""
    pass


@tickets.command("list")
@click.option("--limit", "-l", default=20, help="Max tickets")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def tickets_list(limit: int, output_json: bool) -> None:
    """List recently triaged tickets."""
    factory = _create_factory()
    try:
        recent = factory.get_ticket_history_repository().list_recent(limit)
    finally:
        factory.close()

    if output_json:
        click.echo(json.dumps([t.model_dump(mode="json") for t in recent], indent=2))
        return

    if not recent:
        click.echo("No tracked tickets.")
        return
    for ticket in recent:
        state = "resolved" if ticket.resolution_summary else "open"
        missing = f" missing: {', '.join(ticket.missing_fields)}" if ticket.missing_fields else ""
        click.echo(f"  [{state:>8}] {ticket.ticket_number}{missing}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
