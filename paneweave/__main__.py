"""Allow ``python -m paneweave``."""

from paneweave.cli.commands import app

if __name__ == "__main__":
    app()
