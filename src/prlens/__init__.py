"""prlens - Intent-based pull request review."""
from datetime import datetime, timezone
import glob
import logging
from logging.handlers import RotatingFileHandler
import os
import sys
from types import TracebackType


__version__ = "0.1"

DEFAULT_LOG_DIR = "~/.prlens/logs"
MAX_LOG_FILES = 50
MAX_LOG_BYTES = 1024 * 1024

# Libraries whose debug output would drown out ours
QUIET_LOGGERS = ("aiohttp", "asyncio")


def setup_logging(log_dir: str | None = None, level: int = logging.DEBUG) -> str:
    """
    Send this run's log records to a new timestamped file.

    Each run writes its own file, rotated at MAX_LOG_BYTES; files beyond MAX_LOG_FILES
    are removed, oldest first.

    Args:
        log_dir: Directory for log files, default ~/.prlens/logs
        level: Level for prlens's own loggers

    Returns:
        Path of the new log file
    """
    log_dir = os.path.expanduser(log_dir or DEFAULT_LOG_DIR)
    os.makedirs(log_dir, exist_ok=True)

    timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d-%H-%M-%S-%f")[:23]
    log_file = os.path.join(log_dir, f"{timestamp}.log")

    handler = RotatingFileHandler(
        log_file,
        maxBytes=MAX_LOG_BYTES,
        backupCount=MAX_LOG_FILES - 1,
        encoding='utf-8'
    )

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[handler]
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    removed = cleanup_old_logs(log_dir, MAX_LOG_FILES)
    logging.getLogger("prlens").info("prlens %s logging to %s (%d old logs removed)", __version__, log_file, removed)
    return log_file


def cleanup_old_logs(log_dir: str, max_logs: int) -> int:
    """
    Remove the oldest log files in a directory until at most max_logs remain.

    Rotated backups ("<name>.log.1", ...) count as log files.

    Args:
        log_dir: Directory holding the log files
        max_logs: Number of files to keep

    Returns:
        Number of files removed
    """
    logger = logging.getLogger("prlens")
    log_files = sorted(glob.glob(os.path.join(glob.escape(log_dir), "*.log*")), key=os.path.getmtime)

    removed = 0
    for path in log_files[:max(len(log_files) - max_logs, 0)]:
        try:
            os.remove(path)
            removed += 1

        except OSError as e:
            logger.warning("Failed to remove old log %s: %s", path, str(e))

    if removed:
        logger.debug("Removed %d old log files from %s", removed, log_dir)

    return removed


def install_global_exception_handler() -> None:
    """Log uncaught exceptions before the default hook prints them."""
    logger = logging.getLogger('GlobalExceptionHandler')

    def handle_exception(
        exc_type: type[BaseException],
        exc_value: BaseException,
        exc_traceback: TracebackType | None
    ) -> None:
        if not issubclass(exc_type, KeyboardInterrupt):
            logger.critical(
                "Uncaught %s: %s",
                exc_type.__name__,
                exc_value,
                exc_info=(exc_type, exc_value, exc_traceback)
            )

        sys.__excepthook__(exc_type, exc_value, exc_traceback)

    sys.excepthook = handle_exception
