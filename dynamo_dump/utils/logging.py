"""
Logging setup for dynamo_dump.

Backup and restore runs report their progress through the ``dynamo_dump``
logger, so the console handler writes timestamped lines to stderr and leaves
stdout for the final result. When a log directory is given, every run also
appends DEBUG-level detail to a dated file in it.

Environment:
    DYNAMO_DUMP_LOG_LEVEL: console level name (default INFO)
    DYNAMO_DUMP_DEBUG: "1", "true" or "yes" forces DEBUG
    DYNAMO_DUMP_LOG_FILE: explicit log file; "none", "disabled" or an empty
        value turns file logging off
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

# Root logger name for the package hierarchy
LOGGER_NAME = "dynamo_dump"

# Console format (timestamped progress feed)
CONSOLE_FORMAT = "%(asctime)s - %(levelname)s: %(message)s"

# Verbose console and log file format
VERBOSE_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
)

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ENV_LOG_LEVEL = "DYNAMO_DUMP_LOG_LEVEL"
ENV_DEBUG = "DYNAMO_DUMP_DEBUG"
ENV_LOG_FILE = "DYNAMO_DUMP_LOG_FILE"

# Dated log files are named dynamo_dump_YYYYMMDD.log
LOG_FILE_PREFIX = "dynamo_dump_"

# ANSI colour codes per level
LEVEL_COLORS = {
    logging.DEBUG: "36",
    logging.INFO: "32",
    logging.WARNING: "33",
    logging.ERROR: "31",
    logging.CRITICAL: "35",
}


def stderr_supports_color() -> bool:
    """True if stderr is a terminal that accepts ANSI colours."""
    isatty = getattr(sys.stderr, "isatty", None)
    if isatty is None or not isatty():
        return False
    # https://no-color.org/
    if os.environ.get("NO_COLOR"):
        return False
    return os.environ.get("TERM", "") != "dumb"


class ColoredFormatter(logging.Formatter):
    """Formatter that colours each console line by its level."""

    def __init__(
        self,
        fmt: Optional[str] = None,
        datefmt: Optional[str] = None,
        use_colors: bool = True,
    ):
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors and stderr_supports_color()

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        color = LEVEL_COLORS.get(record.levelno)
        if not self.use_colors or color is None:
            return text
        return f"\033[{color}m{text}\033[0m"


def get_log_level_from_env() -> int:
    """
    Get the console logging level from the environment.

    Returns:
        Logging level constant; INFO for unknown or missing names
    """
    if os.environ.get(ENV_DEBUG, "").lower() in ("1", "true", "yes"):
        return logging.DEBUG

    name = os.environ.get(ENV_LOG_LEVEL, "INFO").upper()
    if name == "WARN":
        name = "WARNING"
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def resolve_log_file(log_dir: Optional[Path] = None) -> Optional[Path]:
    """
    Decide where the run log goes.

    DYNAMO_DUMP_LOG_FILE wins when set; otherwise a dated file in log_dir.

    Returns:
        Path to the log file, or None if file logging is off
    """
    override = os.environ.get(ENV_LOG_FILE)
    if override is not None:
        if override.lower() in ("", "none", "disabled"):
            return None
        return Path(override).expanduser()

    if log_dir is None:
        return None
    return log_dir / f"{LOG_FILE_PREFIX}{datetime.now():%Y%m%d}.log"


def setup_logging(
    level: Optional[int] = None,
    verbose: bool = False,
    log_dir: Optional[Path] = None,
    use_colors: bool = True,
) -> logging.Logger:
    """
    Configure the dynamo_dump logger for a CLI run.

    Args:
        level: Console level; taken from the environment when None
        verbose: Force DEBUG and include logger names and source lines
        log_dir: Directory for the dated log file (None = console only)
        use_colors: Colour console lines when stderr supports it

    Returns:
        The package logger
    """
    if verbose:
        level = logging.DEBUG
    elif level is None:
        level = get_log_level_from_env()

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()
    # Records stop here so nothing is printed twice through the root logger
    logger.propagate = False

    console_format = VERBOSE_FORMAT if verbose else CONSOLE_FORMAT
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(ColoredFormatter(console_format, DATE_FORMAT, use_colors))
    logger.addHandler(console)

    log_file = resolve_log_file(log_dir)
    if log_file is not None:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
        except OSError as e:
            logger.warning(f"Could not create log file {log_file}: {e}")
        else:
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(VERBOSE_FORMAT, DATE_FORMAT))
            logger.addHandler(file_handler)
            logger.debug(f"Log file: {log_file}")

    return logger


def cleanup_old_logs(log_dir: Path, keep_count: int = 10) -> int:
    """
    Delete all but the newest keep_count dated log files in log_dir.

    Returns:
        Number of files deleted
    """
    if keep_count <= 0 or not log_dir.is_dir():
        return 0

    logs = sorted(
        log_dir.glob(f"{LOG_FILE_PREFIX}*.log"),
        key=lambda p: p.stat().st_mtime,
        reverse=True,
    )

    deleted = 0
    for old_log in logs[keep_count:]:
        try:
            old_log.unlink()
        except OSError as e:
            get_logger(__name__).debug(f"Could not delete old log {old_log}: {e}")
            continue
        deleted += 1
    return deleted


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the dynamo_dump hierarchy for name."""
    if not name.startswith(LOGGER_NAME):
        name = f"{LOGGER_NAME}.{name}"
    return logging.getLogger(name)
