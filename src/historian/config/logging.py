"""Shared logging helpers for historian."""

from __future__ import annotations

import logging


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Set up the root logger for CLI runs.

    A thin wrapper over ``logging.basicConfig``; ``force=True`` replaces handlers
    installed earlier.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
