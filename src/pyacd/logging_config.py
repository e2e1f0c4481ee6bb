"""
Logging configuration for PyACD.

All package loggers live under the ``pyacd`` namespace so an application can
tune them with a single ``logging.getLogger('pyacd')`` call.
"""
import logging
import sys
from pathlib import Path
from typing import Optional, Union

ROOT_LOGGER_NAME = 'pyacd'
DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

__all__ = [
    'get_logger',
    'setup_logging',
    'log_growth_summary',
    'log_tree_list_scaling',
]


def setup_logging(level: Union[int, str] = logging.INFO,
                  log_file: Optional[Union[str, Path]] = None,
                  fmt: str = DEFAULT_FORMAT) -> logging.Logger:
    """Configure the package root logger.

    Args:
        level: Logging level (name or number)
        log_file: Optional file to receive log records in addition to stderr
        fmt: Record format string

    Returns:
        The configured ``pyacd`` root logger
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)

    # Re-running setup replaces our handlers instead of stacking them
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    formatter = logging.Formatter(fmt)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding='utf-8')
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger inside the package namespace.

    Args:
        name: Usually ``__name__`` of the calling module

    Returns:
        Logger instance
    """
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + '.'):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def log_growth_summary(logger: logging.Logger, year: int, n_records: int,
                       tph: float, ba: float, qmd: float, topht: float) -> None:
    """Log a one-line summary of the stand after a simulated year."""
    logger.debug(
        f"Year {year}: records={n_records}, TPH={tph:.1f}, BA={ba:.2f} m2/ha, "
        f"QMD={qmd:.2f} cm, TopHt={topht:.2f} m"
    )


def log_tree_list_scaling(logger: logging.Logger, action: str,
                          n_before: int, n_after: int) -> None:
    """Log the effect of expanding or collapsing a tree list."""
    if n_before != n_after:
        logger.info(f"Tree list {action}: {n_before} -> {n_after} records")
