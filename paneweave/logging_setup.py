"""Route loguru output to a file while the TUI owns the terminal."""

from __future__ import annotations

import sys

from loguru import logger

from paneweave.config.schema import Config


def configure_logging(config: Config, to_stderr: bool = False) -> None:
    """Replace the default stderr sink with a rotating file sink."""
    logger.remove()
    path = config.log_path
    path.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        path,
        level=config.logging.level.upper(),
        rotation="5 MB",
        retention=3,
        enqueue=True,
    )
    if to_stderr:
        logger.add(sys.stderr, level=config.logging.level.upper())
    logger.info(f"[log] Writing logs to {path}")
