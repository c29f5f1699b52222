"""
Logging Module - Structured logging setup with Rich console support.
====================================================================

Provides centralized logging configuration for the loader, the store and
the CLI. Crawl progress (one line per listing page and per course page,
retry warnings from the fetcher) goes to a Rich console; a full multi-term
load can also be mirrored to a log file.

Usage:
    >>> setup_logging(level="INFO", log_file="logs/load-2023-2024.log")
    >>> logger = get_logger("mcgill_courses.ingestion.crawler")
    >>> logger.info("Parsing html on page: 0...")
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

# Libraries whose per-request chatter would drown out crawl progress
QUIET_LOGGERS = ("urllib3", "requests", "charset_normalizer")

# Global state for logging configuration
_logging_configured = False
_console = Console()


def setup_logging(
    level: str = "INFO",
    use_rich: bool = True,
    log_file: Optional[str] = None,
    log_format: Optional[str] = None,
    force: bool = False,
) -> None:
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        use_rich: Whether to use Rich console handler for pretty output
        log_file: Optional path to log file
        log_format: Optional custom log format string
        force: Reconfigure even if logging was already set up

    Note:
        Subsequent calls are ignored unless ``force`` is set. The CLI forces
        a reconfiguration so that settings.yaml and LOG_LEVEL take effect
        after modules have already logged with the defaults.

    Example:
        >>> setup_logging(level="DEBUG", use_rich=False, force=True)
        >>> get_logger(__name__).debug("Fetcher initialized: retries=10")
    """
    global _logging_configured

    if _logging_configured and not force:
        return

    numeric_level = getattr(logging, level.upper(), logging.INFO)

    if log_format is None:
        log_format = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    if use_rich:
        rich_handler = RichHandler(
            console=_console,
            show_time=True,
            show_level=True,
            show_path=False,
            rich_tracebacks=True,
            tracebacks_show_locals=False,
            markup=False,
        )
        rich_handler.setLevel(numeric_level)
        rich_handler.setFormatter(logging.Formatter("%(message)s"))
        root_logger.addHandler(rich_handler)
    else:
        stream_handler = logging.StreamHandler(sys.stdout)
        stream_handler.setLevel(numeric_level)
        stream_handler.setFormatter(logging.Formatter(log_format))
        root_logger.addHandler(stream_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(logging.Formatter(log_format))
        root_logger.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _logging_configured = True

    logger = get_logger(__name__)
    logger.debug(f"Logging configured: level={level}, rich={use_rich}, file={log_file}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a named logger instance.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Configured logger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Crawling term 2023-2024...")
        >>> logger.warning("Retrying extraction (1/10): https://www.mcgill.ca/study/2023-2024/courses/comp-202")
    """
    if not _logging_configured:
        setup_logging()

    return logging.getLogger(name)


def get_console() -> Console:
    """
    Get the Rich console instance for direct console output.

    Example:
        >>> console = get_console()
        >>> console.print("[bold green]✓ Seeded 12 new and 3 existing courses[/bold green]")
    """
    return _console
