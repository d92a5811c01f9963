from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Package logger name, whichever way the package was imported.
_PACKAGE_LOGGER = __name__.rsplit(".common.", 1)[0]


def configure_logging(level: str | int = "INFO") -> None:
    if isinstance(level, str):
        level = level.upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger(_PACKAGE_LOGGER).setLevel(level)
