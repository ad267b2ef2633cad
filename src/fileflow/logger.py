"""Logging utilities for FileFlow.

Handlers and levels are configured once with ``logging.basicConfig()`` in the
entry points (``main.py`` and the CLI). Modules only ask for a named logger.

Example:
    Typical usage in a module::

        from fileflow.logger import get_logger

        logger = get_logger("Compression")
        logger.warning("Image decode failed, using gzip")
"""

import logging


def get_logger(name: str = "FileFlow") -> logging.Logger:
    """Retrieve a logger instance.

    Args:
        name: The logger name. Defaults to "FileFlow".

    Returns:
        A ``logging.Logger`` instance bound to the given name.
    """
    return logging.getLogger(name)
