"""Root logger setup for the casebook command line."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Send casebook's log records to stderr, one line each.

    ``force`` replaces handlers an embedding application or test already
    installed. SQL statement logging stays off unless raised explicitly.
    """

    logging.basicConfig(
        level=level, format=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S", force=force
    )
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
