"""CLI entry point.

Allows running the CLI as a module: python -m naturedl.cli
"""

from naturedl.cli import app

if __name__ == "__main__":
    app()
