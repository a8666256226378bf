"""Loggers for the emailer package.

Every logger lives under the ``emailer`` namespace, which carries a
:class:`logging.NullHandler` so nothing is printed unless the application
configures logging.
"""

import logging

ROOT_LOGGER = "emailer"

logging.getLogger(ROOT_LOGGER).addHandler(logging.NullHandler())


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """Returns the logger for ``name``, placed under ``emailer.`` if needed."""
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
