"""File logging for agentlink, enabled by ``--verbose``.

Without ``setup_logger()`` only the ``NullHandler`` of the ``capabilities``
package is attached, so library records are dropped instead of reaching
Python's last-resort stderr handler.

Each run gets its own file named after the subcommand, e.g.
``~/.agentlink/logs/link_20260101_120000.log``.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from .runtime import get_log_dir

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are noisy at DEBUG
_QUIET_LOGGERS = ("asyncio", "markdown_it")

_log_file_path: Optional[str] = None


def setup_logger(
    command: str = "agentlink",
    log_dir: Optional[str] = None,
    log_level: Optional[str] = None,
    log_to_console: bool = False,
) -> None:
    """Attach a file handler to the root logger (once per process).

    Args:
        command: Subcommand name, used as the log file prefix
        log_dir: Directory for log files (default: ~/.agentlink/logs/)
        log_level: Level name; defaults to Config.LOG_LEVEL
        log_to_console: Also emit WARNING and above to stderr
    """
    global _log_file_path

    if _log_file_path is not None:
        return

    if log_level is None:
        from config import Config

        log_level = Config.LOG_LEVEL
    level = getattr(logging, log_level.upper(), logging.DEBUG)

    log_path = Path(log_dir or get_log_dir())
    log_path.mkdir(exist_ok=True, parents=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_path / f"{command}_{timestamp}.log"

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    root = logging.getLogger()
    root.setLevel(level)

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)

    if log_to_console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))

    _log_file_path = str(log_file)
    root.info(f"agentlink {command}: logging at {log_level.upper()} to {_log_file_path}")


def get_logger(name: str) -> logging.Logger:
    """Module logger; capabilities.* loggers stay silent until setup_logger() runs."""
    return logging.getLogger(name)


def get_log_file_path() -> Optional[str]:
    """Current log file, or None when file logging is off."""
    return _log_file_path
