"""Terminal sessions and the panel that draws them."""

from paneweave.terminal.panel import TerminalPanel
from paneweave.terminal.session import TerminalSession

__all__ = ["TerminalPanel", "TerminalSession"]
