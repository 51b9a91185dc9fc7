"""Logging setup shared by the CLI, the API server and the pipeline.

All modules log through ``get_logger(__name__)``; ``setup_logging`` is
called once by the entry points.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers that are chatty at INFO/DEBUG.
_NOISY_LOGGERS = ("PIL", "pdf2image", "multipart", "python_multipart")


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger once with the standard format.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Unknown names fall back to INFO.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a module.

    Args:
        name: Logger name, usually the module ``__name__``.
    """
    return logging.getLogger(name)
