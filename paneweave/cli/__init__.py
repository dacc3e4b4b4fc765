"""CLI module for paneweave."""
