"""Centralized logging setup for the voicenotes package.

Usage:
    LoggingFactory.initialize(log_dir=Path("logs"), level=logging.INFO)

    logger = logging.getLogger(__name__)
    logger.info("Pipeline started")
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers that are noisy at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "openai", "anthropic")


class LoggingFactory:
    """Configure the logging system once for the whole application.

    Class Attributes:
        _initialized: Flag to ensure single initialization
        _log_dir: Directory where the log file is written (None disables it)
    """

    _initialized = False
    _log_dir: Optional[Path] = None

    @classmethod
    def initialize(
        cls,
        log_dir: Optional[Path] = None,
        level: int = logging.INFO,
        format_string: Optional[str] = None,
        console: bool = True,
    ) -> None:
        """Initialize the logging system; later calls are ignored.

        Args:
            log_dir: Directory for ``voicenotes.log``. No file is written when None.
            level: Level for the root logger
            format_string: Custom format (default: time - name - level - message)
            console: Attach a plain stream handler. The CLI passes False and
                attaches a rich handler instead.
        """
        if cls._initialized:
            return

        handlers: List[logging.Handler] = []
        if log_dir:
            cls._log_dir = log_dir
            log_dir.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(log_dir / "voicenotes.log"))
        if console:
            handlers.append(logging.StreamHandler())

        logging.basicConfig(
            level=level,
            format=format_string or DEFAULT_FORMAT,
            handlers=handlers or [logging.NullHandler()],
        )

        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

        cls._initialized = True

    @classmethod
    def reset(cls) -> None:
        """Forget the initialization state (used by tests)."""
        cls._initialized = False
        cls._log_dir = None
