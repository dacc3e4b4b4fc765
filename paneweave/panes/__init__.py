"""Side panes shown in the left column."""

from paneweave.panes.file_tree import FileTree, TreeNode, TreeWatcher
from paneweave.panes.poller import Poller
from paneweave.panes.source_control import GitPoller, SourceControl, StatusEntry, parse_porcelain

__all__ = [
    "FileTree",
    "GitPoller",
    "Poller",
    "SourceControl",
    "StatusEntry",
    "TreeNode",
    "TreeWatcher",
    "parse_porcelain",
]
