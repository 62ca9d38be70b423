"""Shared logging helpers for monosync."""

from __future__ import annotations

import logging


def configure_logging(*, verbose: bool = False, force: bool = False) -> None:
    """Initialise the root logger once for CLI output.

    ``verbose`` lowers the level to DEBUG. Pass ``force=True`` to reconfigure
    during tests or specialised entry points.
    """

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
