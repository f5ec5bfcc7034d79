"""Logging for event-reporter.

Library modules only call :func:`get_logger`; they never attach handlers.
The CLI calls :func:`setup_logging` once, with the ``verbosity`` and
``log_file`` of the loaded :class:`~event_reporter.config.StoreConfig`.
Handlers go on the ``event_reporter`` logger, so an embedding application's
own root logging setup is left alone.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "event_reporter"

LEVELS = {
    "quiet": logging.ERROR,
    "normal": logging.WARNING,
    "verbose": logging.DEBUG,
}

FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def setup_logging(verbosity: str = "normal", log_file: Optional[str] = None) -> logging.Logger:
    """Route event-reporter logs to stderr through rich, and optionally to a file.

    Args:
        verbosity: One of ``quiet``, ``normal`` or ``verbose``
        log_file: Path of a file that receives the same records, appended

    Returns:
        The ``event_reporter`` logger

    Raises:
        ValueError: If ``verbosity`` is not a known level name
    """
    if verbosity not in LEVELS:
        raise ValueError(f"unknown verbosity {verbosity!r}")
    verbose = verbosity == "verbose"

    logger = logging.getLogger(ROOT_LOGGER)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    # Key hex and JSON details would otherwise be read as rich markup.
    logger.addHandler(
        RichHandler(
            console=Console(stderr=True),
            markup=False,
            rich_tracebacks=verbose,
            show_path=verbose,
        )
    )
    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(file_handler)

    logger.setLevel(LEVELS[verbosity])
    logger.propagate = False
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger under the ``event_reporter`` namespace (``__name__`` in modules)."""
    if name is None:
        return logging.getLogger(ROOT_LOGGER)
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
