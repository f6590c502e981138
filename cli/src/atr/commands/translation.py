"""Translation commands for the article translator CLI."""

import sys

import click
from rich.console import Console

from backend.app.logging_config import configure_cli_logging
from backend.app.services.sarvam_client import (
    SarvamChunkTransformer,
    SarvamClient,
    parse_language_selection,
)
from backend.app.services.transform_orchestrator import TransformAborted
from backend.app.services.translation_pipeline_service import ArticleTranslationService

from ..config import API_KEY_ENV_VAR, Config

console = Console(stderr=True)


def build_service(config: Config) -> ArticleTranslationService:
    """Build the translation service for the CLI. Tests replace this."""
    transformer = None
    if config.sarvam_api_key:
        transformer = SarvamChunkTransformer(SarvamClient(api_key=config.sarvam_api_key))
    return ArticleTranslationService(transformer=transformer, chunk_budget=config.chunk_budget)


@click.command()
@click.argument("source", type=click.File("r", encoding="utf-8"))
@click.option("--language", "-l", default=None, help="Target, e.g. hi-IN or transliterate-hi.")
@click.option("--budget", "-b", type=click.IntRange(min=1), default=None, help="Characters per chunk.")
@click.option("--html", "as_html", is_flag=True, help="Print display HTML instead of text.")
@click.option("--verbose", "-v", is_flag=True, help="Log per-chunk progress to stderr.")
def translate(source, language: str | None, budget: int | None, as_html: bool, verbose: bool):
    """Translate or transliterate structured text chunk by chunk."""
    configure_cli_logging(verbose=verbose)
    config = Config.load()
    selection = language or config.default_language
    try:
        parse_language_selection(selection)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--language") from exc

    service = build_service(config)
    if not service.translation_available:
        console.print(f"[red]No Sarvam API key configured.[/red] Set {API_KEY_ENV_VAR}.")
        sys.exit(1)

    try:
        outcome = service.translate(source.read(), selection, budget=budget)
    except TransformAborted as exc:
        console.print(f"[red]Translation failed[/red] on chunk {exc.chunk_index + 1}: {exc.reason}")
        sys.exit(1)

    document = outcome.final_document
    if document.passthrough_count:
        console.print(
            f"[yellow]{document.passthrough_count} chunk(s) left untransformed[/yellow]"
        )
    click.echo(outcome.display_html if as_html else document.text)


@click.command()
@click.option("--language", "-l", default=None, help="Default target language selection.")
@click.option("--budget", "-b", type=click.IntRange(min=1), default=None, help="Default chunk budget.")
@click.option("--api-key", default=None, help="Sarvam API subscription key.")
def configure(language: str | None, budget: int | None, api_key: str | None):
    """Update ~/.config/article-translator/config.yaml."""
    config = Config.load()
    if language is not None:
        try:
            parse_language_selection(language)
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint="--language") from exc
        config.default_language = language
    if budget is not None:
        config.chunk_budget = budget
    if api_key is not None:
        config.sarvam_api_key = api_key.strip() or None
    config.save()

    console.print(f"[green]Saved[/green] language={config.default_language} budget={config.chunk_budget}")
