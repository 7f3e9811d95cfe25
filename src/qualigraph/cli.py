"""CLI for inspecting and maintaining a qualitative research graph."""

import json
from collections import Counter
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from .config import load_settings
from .engine import ResearchGraphEngine
from .errors import QualigraphError
from .models import Entity

console = Console()

# View name -> engine method; views taking extra options are handled inline
VIEWS = {
    "project": "get_project_overview",
    "participant": "get_participant_profile",
    "thematic": "get_thematic_analysis",
    "coded": "get_coded_data",
    "questions": "get_research_question_analysis",
    "chronology": "get_chronological_data",
    "cooccurrence": "get_code_cooccurrence",
    "memos": "get_memos_by_focus",
    "methodology": "get_methodology_details",
    "related": "get_related_entities",
}


def _engine(ctx) -> ResearchGraphEngine:
    return ResearchGraphEngine.from_path(ctx.obj["memory_file"])


def _fail(ctx, error: Exception):
    console.print(f"[red]Error:[/red] {error}")
    ctx.exit(1)


def _echo_json(payload) -> None:
    click.echo(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


def _entity_table(title: str, entities: list[Entity]) -> Table:
    table = Table(title=title)
    table.add_column("Name", style="cyan")
    table.add_column("Type", style="magenta")
    table.add_column("Observations", justify="right")
    for entity in entities:
        table.add_row(entity.name, entity.entity_type, str(len(entity.observations)))
    return table


@click.group()
@click.option(
    "--memory-file",
    envvar="MEMORY_FILE_PATH",
    type=click.Path(path_type=Path),
    help="Path to the graph JSON file",
)
@click.pass_context
def cli(ctx, memory_file):
    """Qualigraph - qualitative research knowledge graph."""
    ctx.ensure_object(dict)
    ctx.obj["memory_file"] = load_settings(memory_file=memory_file).memory_file


@cli.command()
@click.pass_context
def init(ctx):
    """Seed the status and priority value entities."""
    try:
        seeded = _engine(ctx).initialize_status_and_priority()
    except QualigraphError as e:
        _fail(ctx, e)
    if seeded:
        console.print(f"[green]✓[/green] Seeded {len(seeded)} status/priority entities in {ctx.obj['memory_file']}")
    else:
        console.print(f"[yellow]![/yellow] Status/priority entities already present in {ctx.obj['memory_file']}")


@cli.command()
@click.pass_context
def status(ctx):
    """Show entity and relation counts."""
    try:
        graph = _engine(ctx).read_graph()
    except QualigraphError as e:
        _fail(ctx, e)

    console.print(f"Graph: {ctx.obj['memory_file']}")
    console.print(
        f"[bold]{len(graph.entities)}[/bold] entities, [bold]{len(graph.relations)}[/bold] relations"
    )
    if not graph.entities:
        return

    table = Table(title="Entities by type")
    table.add_column("Type", style="magenta")
    table.add_column("Count", justify="right")
    for entity_type, count in Counter(e.entity_type for e in graph.entities).most_common():
        table.add_row(entity_type, str(count))
    console.print(table)


@cli.command()
@click.argument("query")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def search(ctx, query, as_json):
    """Search entities; every term must match name, type or an observation."""
    try:
        result = _engine(ctx).search_nodes(query)
    except QualigraphError as e:
        _fail(ctx, e)

    if as_json:
        _echo_json(result.to_json_dict())
    elif not result.entities:
        console.print(f"[yellow]No entities match[/yellow] '{query}'")
    else:
        console.print(_entity_table(f"Matches for '{query}'", result.entities))


@cli.command()
@click.argument("names", nargs=-1, required=True)
@click.pass_context
def show(ctx, names):
    """Print the named entities and the relations among them as JSON."""
    try:
        result = _engine(ctx).open_nodes(list(names))
    except QualigraphError as e:
        _fail(ctx, e)
    _echo_json(result.to_json_dict())


@cli.command()
@click.argument("kind", type=click.Choice(sorted(VIEWS)))
@click.argument("name")
@click.option("--data-type", default=None, help="chronology: only this entity type")
@click.option(
    "--relation-type", "relation_types",
    multiple=True,
    help="related: only these relation types (repeatable)",
)
@click.pass_context
def view(ctx, kind, name, data_type, relation_types):
    """Run an analytical view and print it as JSON."""
    engine = _engine(ctx)
    try:
        if kind == "chronology":
            report = engine.get_chronological_data(name, data_type)
        elif kind == "related":
            report = engine.get_related_entities(name, list(relation_types) or None)
        else:
            report = getattr(engine, VIEWS[kind])(name)
    except QualigraphError as e:
        _fail(ctx, e)
    _echo_json(report.to_json_dict())


@cli.command("set-status")
@click.argument("name")
@click.argument("value")
@click.pass_context
def set_status(ctx, name, value):
    """Set an entity's status (replaces any previous status)."""
    try:
        _engine(ctx).set_entity_status(name, value)
    except QualigraphError as e:
        _fail(ctx, e)
    console.print(f"[green]✓[/green] {name} -> status:{value}")


@cli.command("set-priority")
@click.argument("name")
@click.argument("value")
@click.pass_context
def set_priority(ctx, name, value):
    """Set an entity's priority (replaces any previous priority)."""
    try:
        _engine(ctx).set_entity_priority(name, value)
    except QualigraphError as e:
        _fail(ctx, e)
    console.print(f"[green]✓[/green] {name} -> priority:{value}")


@cli.command()
@click.pass_context
def export(ctx):
    """Print the entire graph as JSON."""
    try:
        graph = _engine(ctx).read_graph()
    except QualigraphError as e:
        _fail(ctx, e)
    _echo_json(graph.to_json_dict())


if __name__ == "__main__":
    cli()
