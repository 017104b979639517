"""Entry point for ``python -m megascore``."""

from megascore.cli import cli

if __name__ == "__main__":
    cli()
