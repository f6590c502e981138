"""Extraction, chunking and rendering commands for the article translator CLI."""

import click
from rich.console import Console
from rich.table import Table

from backend.app.services.chunk_splitter import split_into_chunks
from backend.app.services.content_selector import ContentSelector
from backend.app.services.display_renderer import to_display_markup
from backend.app.services.translation_pipeline_service import clean_pasted_text

from ..config import Config

console = Console(stderr=True)


@click.command()
@click.argument("source", type=click.File("r", encoding="utf-8"))
@click.option("--text", "is_text", is_flag=True, help="Treat SOURCE as pasted text, not HTML.")
@click.option("--html", "as_html", is_flag=True, help="Print display HTML instead of structured text.")
def extract(source, is_text: bool, as_html: bool):
    """Extract the readable article from an HTML file (use - for stdin)."""
    raw = source.read()
    if is_text:
        text = clean_pasted_text(raw)
    else:
        extracted = ContentSelector().extract(raw)
        text = extracted.text
        if extracted.degraded:
            console.print("[yellow]No article region found, using flat page text[/yellow]")
        else:
            console.print(
                f"[green]Extracted[/green] via {extracted.selector} (score {extracted.score:.1f})"
            )

    click.echo(to_display_markup(text) if as_html else text)


@click.command()
@click.argument("source", type=click.File("r", encoding="utf-8"))
@click.option("--budget", "-b", type=click.IntRange(min=1), default=None, help="Characters per chunk.")
def chunk(source, budget: int | None):
    """Show how structured text would be split for translation."""
    config = Config.load()
    chunks = split_into_chunks(source.read(), budget or config.chunk_budget)

    table = Table(title=f"{len(chunks)} chunk(s)")
    table.add_column("#", justify="right")
    table.add_column("Paragraphs")
    table.add_column("Chars", justify="right")
    table.add_column("Preview")
    for item in chunks:
        chars = f"[red]{len(item.text)}[/red]" if item.oversized else str(len(item.text))
        preview = item.text[:60].replace("\n", " ")
        table.add_row(str(item.index), f"{item.first_paragraph}-{item.last_paragraph}", chars, preview)
    Console().print(table)


@click.command()
@click.argument("source", type=click.File("r", encoding="utf-8"))
def render(source):
    """Convert structured text into safe display HTML."""
    click.echo(to_display_markup(source.read()))
