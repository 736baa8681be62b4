"""Command-line interface for Lorebook Graph."""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from lorebook_graph import __version__
from lorebook_graph.errors import LorebookFormatError

console = Console()


def _setup_logging(verbose: bool) -> None:
    from lorebook_graph.config import get_settings

    level = logging.DEBUG if verbose else get_settings().log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_time=False, show_path=False)],
        force=True,
    )


def _load(path: str):
    """Read and load a lorebook, exiting with a message if it is malformed."""
    from lorebook_graph.lorebook import load_lorebook, read_document

    try:
        return load_lorebook(read_document(path))
    except LorebookFormatError as e:
        console.print(f"[red]Failed to load lorebook:[/red] {e}")
        sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def main(verbose: bool) -> None:
    """Lorebook Graph - author world graphs and compile them into lorebooks."""
    _setup_logging(verbose)


@main.command()
@click.argument("path", type=click.Path(exists=True))
@click.option("--content", "show_content", is_flag=True, help="Show decoded content of each entry")
def inspect(path: str, show_content: bool) -> None:
    """Load a lorebook and summarize the graph it describes."""
    from lorebook_graph.graph import graph_stats
    from lorebook_graph.lorebook import decode

    snapshot = _load(path)
    stats = graph_stats(snapshot)

    console.print(f"[bold]Lorebook:[/bold] {Path(path).name}\n")

    table = Table(title="Graph")
    table.add_column("Element", style="cyan")
    table.add_column("Count", style="green", justify="right")
    for node_type, count in stats.node_counts.items():
        table.add_row(node_type.capitalize(), str(count))
    for edge_type, count in stats.edge_counts.items():
        table.add_row(f"{edge_type} edges", str(count))
    console.print(table)

    console.print(f"\n[bold]Regions:[/bold] {stats.regions}")
    if stats.isolated_locations:
        nodes = snapshot.node_index()
        names = ", ".join(nodes[nid].name for nid in stats.isolated_locations)
        console.print(f"[bold]Unconnected locations:[/bold] {names}")

    if show_content:
        console.print("\n[bold]Content:[/bold]")
        for node in snapshot.nodes:
            if node.type == "sublocation":
                continue
            body = decode(node.content, node.name, node.type)
            console.print(f"  [cyan]{node.name}[/cyan] [dim]({node.type})[/dim]")
            console.print(f"    {body[:200]}{'...' if len(body) > 200 else ''}")


@main.command()
@click.argument("path", type=click.Path(exists=True))
def validate(path: str) -> None:
    """Check a lorebook for links that won't survive compilation."""
    from lorebook_graph.graph import find_issues

    snapshot = _load(path)
    issues = find_issues(snapshot)

    if not issues:
        console.print("[green]OK[/green] No issues found")
        return

    table = Table(title=f"{len(issues)} issue(s)")
    table.add_column("Severity")
    table.add_column("Element", style="cyan")
    table.add_column("Issue")
    for issue in issues:
        color = "red" if issue.severity == "error" else "yellow"
        table.add_row(f"[{color}]{issue.severity}[/{color}]", issue.element_id, issue.message)
    console.print(table)
    sys.exit(1)


@main.command()
@click.argument("path", type=click.Path(exists=True))
@click.option("--output", "-o", type=click.Path(), required=True, help="Output lorebook file (JSON)")
@click.option("--wrap/--no-wrap", default=None, help="Write an {schemaVersion, entries} envelope")
@click.option("--indent", type=int, help="JSON indent")
def rebuild(path: str, output: str, wrap: bool | None, indent: int | None) -> None:
    """Load a lorebook and compile it again.

    Derived fields (triggers, canSpawnAt, knows) are regenerated from the
    graph, so stale or unresolvable references are dropped.

    Example:
        lbg rebuild lorebook.json -o lorebook.clean.json
    """
    from lorebook_graph.config import get_settings
    from lorebook_graph.lorebook import compile_document, write_document

    settings = get_settings()
    snapshot = _load(path)

    wrapped = settings.wrap_entries if wrap is None else wrap
    document = compile_document(snapshot, wrapped=wrapped)
    entries = document["entries"] if wrapped else document

    if indent is None:
        indent = settings.export_indent
    output_path = write_document(output, document, indent=indent)
    console.print(f"[green]OK[/green] Wrote {len(entries)} entries to {output_path}")


@main.command()
def rules() -> None:
    """Show which node types can be connected and how."""
    from lorebook_graph.graph import EDGE_COMPATIBILITY

    table = Table(title="Edge rules")
    table.add_column("Source", style="cyan")
    table.add_column("Target", style="cyan")
    table.add_column("Edge", style="green")
    for (source_type, target_type), edge_type in EDGE_COMPATIBILITY.items():
        table.add_row(source_type, target_type, edge_type)
    console.print(table)
    console.print("[dim]Any other pair is invalid.[/dim]")


if __name__ == "__main__":
    main()
