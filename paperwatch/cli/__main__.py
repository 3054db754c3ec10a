"""CLI entry point.

Allows running the CLI as a module: python -m paperwatch.cli
"""

from paperwatch.cli import app

if __name__ == "__main__":
    app()
