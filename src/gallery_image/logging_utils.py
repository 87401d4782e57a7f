"""
Centralized logging utilities for gallery-image.

Defines a shared logger instance and a setup function so every module
logs through the same configured handler. Operations accept an explicit
logger through their options objects; the shared instance is only the
default handle.
"""

import logging


def setup_logger(
        name: str = __name__,
        level: int = logging.INFO,
        formatter: logging.Formatter | None = None,
        handler: logging.Handler | None = None,
) -> logging.Logger:
    """
    Configure a logger with optional custom formatting and handler.

    Creates a named logger with sensible defaults for level and
    formatting. Custom handlers and formatters can be supplied if
    needed, e.g. a ``FileHandler`` for a single verbose job.

    Args:
        name: Logger name, typically set to __name__.
        level: Logging level (e.g., logging.INFO, logging.DEBUG).
        formatter: Optional custom formatter.
        handler: Optional custom handler.

    Returns:
        A configured logger instance.

    """
    logger_instance = logging.getLogger(name)
    logger_instance.setLevel(level)
    if not logger_instance.handlers:
        if formatter is None:
            formatter = logging.Formatter(
                "%(asctime)s [%(levelname)s] %(message)s")
        if handler is None:
            handler = logging.StreamHandler()
        handler.setFormatter(formatter)
        logger_instance.addHandler(handler)
        logger_instance.propagate = False
    return logger_instance


def job_logger(job_name: str, level: int = logging.INFO) -> logging.Logger:
    """
    Return a child of the shared logger dedicated to one job.

    Child loggers inherit the shared handler, so concurrent jobs can tune
    their own level without touching each other's configuration.
    """
    child = logger.getChild(job_name)
    child.setLevel(level)
    return child


# Shared logger used across modules
logger = setup_logger("gallery_image")
