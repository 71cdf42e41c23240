"""pagesmith CLI: render business documents from JSON requests."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console

from .core.models import BarChartSpec, DocumentRequest, ParagraphBlock, SignatureBlock, block_text
from .layout.presets import list_presets
from .pipeline import DocumentRenderer, generate_unique_filename

console = Console()


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _load_request(path: str) -> DocumentRequest:
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise click.ClickException(f"Could not read {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise click.ClickException(f"{path} must contain a JSON object")
    try:
        return DocumentRequest.from_payload(payload)
    except ValidationError as exc:
        raise click.ClickException(f"Invalid request in {path}:\n{exc}") from exc


@click.group()
@click.version_option(version="0.1.0", prog_name="pagesmith")
def main():
    """pagesmith: paginated business PDFs with headers, paragraphs, tables and charts."""
    pass


@main.command()
@click.argument("request_json", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "-o", "--output",
    "output",
    type=click.Path(dir_okay=False),
    default=None,
    help="Output PDF path (default: ./output/document-<timestamp>.pdf).",
)
@click.option(
    "--preset",
    envvar="PAGESMITH_PRESET",
    type=click.Choice([p.name for p in list_presets()], case_sensitive=False),
    default=None,
    help="Layout preset (or set PAGESMITH_PRESET env var).",
)
@click.option("--logo", default=None, help="Logo URL or file path; overrides the request's logo.")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Enable debug logging.")
def render(request_json: str, output: str | None, preset: str | None, logo: str | None, verbose: bool):
    """Render REQUEST_JSON to a PDF file."""
    _setup_logging(verbose)
    request = _load_request(request_json)

    updates: dict = {}
    if logo:
        updates["logo"] = logo
    options = request.options
    if output or options.output_path is None:
        options = options.model_copy(update={"output_path": Path(output) if output else generate_unique_filename()})
    updates["options"] = options
    request = request.model_copy(update=updates)

    result = DocumentRenderer(default_preset=preset).render(request)
    for warning in result.warnings:
        console.print(f"[yellow]⚠ {warning}[/]")
    if not result.ok:
        console.print(f"[bold red]❌ Render failed during {result.error.stage.value}:[/] {result.error.message}")
        raise SystemExit(1)
    console.print(f"[green]✓[/] Wrote [bold]{result.output_path}[/] ({result.page_count} page(s))")


@main.command()
def presets():
    """List available layout presets."""
    from rich.table import Table as RichTable

    table = RichTable(title="Layout Presets", show_lines=False)
    table.add_column("Name", style="bold cyan")
    table.add_column("Margins (T/B/L/R)")
    table.add_column("Body Font")
    table.add_column("Paragraphs")
    table.add_column("Description")

    for p in list_presets():
        page = p.page
        table.add_row(
            p.name,
            f"{page.margin_top:g}/{page.margin_bottom:g}/{page.margin_left:g}/{page.margin_right:g}",
            f"{p.fonts.family} {p.fonts.body_size:g}pt",
            p.paragraph_align,
            p.description,
        )

    console.print(table)


@main.command()
@click.argument("request_json", type=click.Path(exists=True, dir_okay=False))
def inspect(request_json: str):
    """Parse REQUEST_JSON and display what would be rendered."""
    from rich.tree import Tree

    request = _load_request(request_json)

    tree = Tree(f"[bold]{request.company_name or '(no company name)'}[/bold]")
    tree.add(f"[dim]Logo: {request.logo or 'none'}[/dim]")
    tree.add(f"[dim]Preset: {request.options.preset or 'default'}[/dim]")

    blocks_node = tree.add(f"[bold]Blocks[/bold] [dim]({len(request.content)})[/dim]")
    for block in request.content:
        text = block_text(block)
        preview = text if len(text) <= 60 else text[:57] + "..."
        colour = "blue" if isinstance(block, ParagraphBlock) else "magenta" if isinstance(block, SignatureBlock) else "cyan"
        blocks_node.add(f"[{colour}]{block.type}:[/{colour}] {preview}")

    tables_node = tree.add(f"[bold]Tables[/bold] [dim]({len(request.tables)})[/dim]")
    for table in request.tables:
        tables_node.add(
            f"{table.heading or '(untitled)'} "
            f"[dim]({len(table.rows)} rows × {len(table.columns)} columns)[/dim]"
        )

    charts_node = tree.add(f"[bold]Charts[/bold] [dim]({len(request.charts)})[/dim]")
    for chart in request.charts:
        kind = "bar" if isinstance(chart, BarChartSpec) else "pie"
        charts_node.add(f"{kind}: {chart.title or '(untitled)'} [dim]({len(chart.data)} values)[/dim]")

    console.print(tree)


if __name__ == "__main__":
    main()
