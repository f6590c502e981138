"""Main CLI entry point for the article translator."""

import click

from .commands import articles, translation


@click.group()
@click.version_option(version="0.1.0")
def main():
    """atr - extract, chunk and translate web articles."""
    pass


# Extraction commands
main.add_command(articles.extract)
main.add_command(articles.chunk)
main.add_command(articles.render)

# Translation commands
main.add_command(translation.translate)
main.add_command(translation.configure)


if __name__ == "__main__":
    main()
