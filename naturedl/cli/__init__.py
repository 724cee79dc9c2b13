"""naturedl CLI Package.

Provides command-line interface for downloading nature.com journal issues.

Usage:
    python -m naturedl.cli scrape journal nature:555:7698 -o batch.json
    python -m naturedl.cli scrape volume nature:555
    python -m naturedl.cli download batch.json --config config.yaml
    python -m naturedl.cli validate config.yaml
"""

import typer

from naturedl.cli.download import download_command
from naturedl.cli.scrape import scrape_app
from naturedl.cli.validate import validate_command

# Create main app
app = typer.Typer(help="naturedl: resumable batch downloader for nature.com")

# Register individual commands
app.command(name="download")(download_command)
app.command(name="validate")(validate_command)

# Register sub-applications
app.add_typer(scrape_app, name="scrape")

__all__ = [
    "app",
    "download_command",
    "validate_command",
    "scrape_app",
]
