"""Small shared helpers."""

from paneweave.utils.locks import ReadWriteLock

__all__ = ["ReadWriteLock"]
