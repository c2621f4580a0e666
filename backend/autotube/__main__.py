"""Entry point for ``python -m autotube``."""

from autotube.cli.commands import app

if __name__ == "__main__":
    app()
