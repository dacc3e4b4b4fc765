"""paneweave - multi-pane workspace for terminal editors."""

__version__ = "0.1.0"
__logo__ = "▦"
