"""Centralized logging factory for the assessment cache package.

The cache is a library, so importing it never configures the root logger.
Every module logs through ``logging.getLogger(__name__)`` under the
``assessment_cache`` namespace, which carries a ``NullHandler`` until a host
application opts in:

Usage:
    # Opt-in console (and optional file) output for the package loggers
    LoggingFactory.initialize(level=logging.DEBUG, log_dir=Path("logs"))

    # Get a logger for your module
    logger = LoggingFactory.get_logger(__name__)
    logger.info("Cache ready")

    # Or use the convenience function
    from assessment_cache.utils.logging_factory import get_logger
    logger = get_logger(__name__)
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

PACKAGE_LOGGER = "assessment_cache"
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE_NAME = "assessment_cache.log"


class LoggingFactory:
    """Factory for configuring the package logger consistently.

    Initialization happens at most once; later calls to initialize() are
    ignored until reset() is called.

    Class Attributes:
        _initialized: Flag to ensure single initialization
        _log_dir: Directory where the log file is written, if any
        _handlers: Handlers attached by initialize(), removed by reset()
    """

    _initialized = False
    _log_dir: Optional[Path] = None
    _handlers: list = []

    @classmethod
    def initialize(
        cls,
        level: Union[int, str] = logging.INFO,
        log_dir: Optional[Path] = None,
        format_string: Optional[str] = None,
    ) -> None:
        """Attach output handlers to the package logger.

        Args:
            level: Logging level, as an int or a level name such as "DEBUG".
            log_dir: If given, also write to ``assessment_cache.log`` there.
                The directory is created when missing.
            format_string: Custom format string. Defaults to DEFAULT_FORMAT.

        Side Effects:
            - Adds a StreamHandler (and FileHandler) to the package logger
            - Sets the package logger level
            - Sets _initialized to prevent duplicate handlers
        """
        if cls._initialized:
            return

        if isinstance(level, str):
            level = logging.getLevelName(level.upper())
            if not isinstance(level, int):
                raise ValueError(f"Unknown log level: {level}")

        formatter = logging.Formatter(format_string or DEFAULT_FORMAT)
        handlers: list = [logging.StreamHandler()]

        if log_dir is not None:
            cls._log_dir = Path(log_dir)
            cls._log_dir.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(cls._log_dir / LOG_FILE_NAME))

        package_logger = logging.getLogger(PACKAGE_LOGGER)
        for handler in handlers:
            handler.setFormatter(formatter)
            package_logger.addHandler(handler)
        package_logger.setLevel(level)

        cls._handlers = handlers
        cls._initialized = True

    @classmethod
    def reset(cls) -> None:
        """Detach handlers added by initialize() and allow re-initialization."""
        package_logger = logging.getLogger(PACKAGE_LOGGER)
        for handler in cls._handlers:
            package_logger.removeHandler(handler)
            handler.close()
        cls._handlers = []
        cls._log_dir = None
        cls._initialized = False

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """Get a logger for the given module name.

        Unlike initialize(), this never installs handlers.
        """
        return logging.getLogger(name)

    @classmethod
    def set_level(cls, name: str, level: int) -> None:
        """Set the logging level for a specific logger.

        Example:
            # Trace disk tier activity only
            LoggingFactory.set_level("assessment_cache.cache.backends", logging.DEBUG)
        """
        logging.getLogger(name).setLevel(level)

    @classmethod
    def configure_verbose(cls, verbose: bool = False) -> None:
        """Switch the package logger between DEBUG and WARNING."""
        level = logging.DEBUG if verbose else logging.WARNING
        logging.getLogger(PACKAGE_LOGGER).setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """Convenience wrapper around LoggingFactory.get_logger()."""
    return LoggingFactory.get_logger(name)
