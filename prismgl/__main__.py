"""Entry point for ``python -m prismgl``."""

from prismgl.cli.commands import app

if __name__ == "__main__":
    app()
