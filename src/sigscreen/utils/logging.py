"""Logging for sigscreen, built on loguru.

Besides the standard levels two custom ones exist: ``HEADER`` (28) for
section titles of a run and ``VALUES`` (5) for dumping intermediate numbers.
Python warnings, including :class:`~sigscreen.core.exceptions.ThresholdRangeWarning`,
are routed to the same sinks.
"""

import logging
import os
import sys
import warnings
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from loguru import logger

logger.remove()
logger.level("HEADER", no=28, color="<blue>")
logger.level("VALUES", no=5, color="<cyan>")

LOGGING_ENV_VAR = "SIGSCREEN_LOGGING_LEVEL"

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}"


class WarningToLogger:
    """``warnings.showwarning`` replacement logging through loguru.

    A warning repeated from the same place right after itself is logged once,
    so per-channel loops do not flood the console.
    """

    def __init__(self):
        self._last_warning = None

    def __call__(self, message, category, filename, lineno, file=None, line=None):
        key = (str(message), category, filename, lineno)
        if key == self._last_warning:
            return
        self._last_warning = key
        logger.warning(f"{category.__name__}: {message}")


warnings.showwarning = WarningToLogger()


class LogLevel(str, Enum):
    """Verbosity accepted by :func:`configure_logger`."""

    VALUES = "VALUES"
    DEBUG = "DEBUG"
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    HEADER = "HEADER"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    @classmethod
    def from_value(cls, value: Union[str, int, bool, None]) -> "LogLevel":
        """Interpret a verbosity setting.

        ``None`` reads ``SIGSCREEN_LOGGING_LEVEL`` (default INFO), booleans map
        to INFO/WARNING, integers to the closest standard level at or below
        them and strings to the level of that name. Unknown names give INFO.
        """
        if value is None:
            return cls.from_value(os.getenv(LOGGING_ENV_VAR, "INFO"))
        if isinstance(value, bool):
            return cls.INFO if value else cls.WARNING
        if isinstance(value, int):
            for number, level in (
                (logging.CRITICAL, cls.CRITICAL),
                (logging.ERROR, cls.ERROR),
                (logging.WARNING, cls.WARNING),
                (logging.INFO, cls.INFO),
                (logging.DEBUG, cls.DEBUG),
            ):
                if value >= number:
                    return level
            return cls.VALUES
        if isinstance(value, str):
            try:
                return cls(value.upper())
            except ValueError:
                return cls.INFO
        return cls.INFO

    @property
    def mne_level(self) -> str:
        """MNE has no HEADER/SUCCESS/VALUES; map them to its nearest level."""
        return {
            LogLevel.VALUES: "DEBUG",
            LogLevel.SUCCESS: "INFO",
            LogLevel.HEADER: "WARNING",
        }.get(self, self.value)


def message(level: str, text: str, **kwargs) -> None:
    """Log ``text`` at ``level``.

    Keyword arguments are formatted into ``text``; callables among them are
    only evaluated when the level is enabled.
    """
    level = level.upper()
    if kwargs:
        logger.opt(lazy=True).log(level, text, **kwargs)
    else:
        logger.log(level, text)


def configure_logger(
    verbose: Optional[Union[bool, str, int, LogLevel]] = None,
    log_dir: Optional[Union[str, Path]] = None,
) -> str:
    """Install the console sink and, optionally, a rotating file sink.

    Parameters
    ----------
    verbose : bool, str, int, LogLevel or None
        Verbosity, see :meth:`LogLevel.from_value`.
    log_dir : str or Path, optional
        Directory receiving ``sigscreen_<time>.log`` files. Created if missing.

    Returns
    -------
    mne_level : str
        The verbosity to pass to :func:`mne.set_log_level`.
    """
    logger.remove()
    level = LogLevel.from_value(verbose)

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_dir / "sigscreen_{time}.log"),
            rotation="1 day",
            retention="1 week",
            level=level.value,
            format=FILE_FORMAT,
            enqueue=True,
            colorize=False,
        )

    logger.add(sys.stderr, level=level.value, format=CONSOLE_FORMAT, colorize=True)
    return level.mne_level


configure_logger()
