"""Logging for the MAC address resolver.

Every module logs through get_logger(__name__), which hands out children of
the 'macresolver' logger. The library itself never installs handlers; the
``macresolver`` command calls setup_logging() once at startup.

Usage:
    from config.logging_config import setup_logging, get_logger

    setup_logging(debug=True, log_to_file=False)

    logger = get_logger(__name__)
    logger.info("Network scan completed")
"""
import logging
import sys
import time
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict, List, Optional

from config.constants import STORAGE
from config.exceptions import OperationCanceledError

ROOT_LOGGER_NAME = 'macresolver'

# Concurrent scans interleave; the thread name tells them apart
FILE_LOG_FORMAT = '%(asctime)s [%(threadName)s] %(name)s %(levelname)s: %(message)s'
CONSOLE_LOG_FORMAT = '%(levelname)s %(name)s: %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

_loggers: Dict[str, logging.Logger] = {}

logging.getLogger(ROOT_LOGGER_NAME).addHandler(logging.NullHandler())


class ResolverFormatter(logging.Formatter):
    """Console formatter that colours the level name on a terminal."""

    LEVEL_COLORS = {
        logging.DEBUG: '\033[2m',       # Dim
        logging.INFO: '\033[32m',       # Green
        logging.WARNING: '\033[33m',    # Yellow
        logging.ERROR: '\033[31m',      # Red
        logging.CRITICAL: '\033[1;31m', # Bold red
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = True, stream=None):
        super().__init__(fmt=CONSOLE_LOG_FORMAT)
        stream = stream if stream is not None else sys.stderr
        self.use_colors = use_colors and hasattr(stream, 'isatty') and stream.isatty()

    def format(self, record: logging.LogRecord) -> str:
        if not self.use_colors:
            return super().format(record)
        color = self.LEVEL_COLORS.get(record.levelno, '')
        # Copy so other handlers see the plain level name
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


def _file_handler(data_dir: Path) -> logging.Handler:
    data_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        data_dir / STORAGE.LOG_FILE,
        maxBytes=STORAGE.LOG_MAX_BYTES,
        backupCount=STORAGE.LOG_BACKUP_COUNT,
        encoding='utf-8',
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _console_handler(debug: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    # The CLI prints results on stdout; keep stderr quiet unless debugging
    handler.setLevel(logging.DEBUG if debug else logging.WARNING)
    handler.setFormatter(ResolverFormatter(stream=sys.stderr))
    return handler


def setup_logging(
    data_dir: Optional[Path] = None,
    debug: bool = False,
    console_output: bool = True,
    log_to_file: bool = True
) -> logging.Logger:
    """Install the resolver's handlers on the 'macresolver' logger.

    Calling it again replaces the handlers from the previous call.

    Args:
        data_dir: Directory for the rotating log file. Defaults to
            ~/.macresolver/
        debug: Log scheduling decisions and entry filtering (DEBUG).
        console_output: Also log to stderr.
        log_to_file: Write to STORAGE.LOG_FILE in data_dir.

    Returns:
        The 'macresolver' logger.
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(logging.DEBUG if debug else logging.INFO)

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    handlers: List[logging.Handler] = []
    if log_to_file:
        handlers.append(_file_handler(data_dir or Path.home() / STORAGE.DATA_DIR_NAME))
    if console_output:
        handlers.append(_console_handler(debug))

    for handler in handlers:
        root_logger.addHandler(handler)

    root_logger.debug(
        f"Logging initialized: debug={debug}, file={log_to_file}, console={console_output}"
    )
    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Logger for a module, e.g. get_logger('resolver.engine').

    Names are kept to their last two components.
    """
    short_name = '.'.join(name.split('.')[-2:])
    logger = _loggers.get(short_name)
    if logger is None:
        logger = logging.getLogger(f'{ROOT_LOGGER_NAME}.{short_name}')
        _loggers[short_name] = logger
    return logger


def log_subprocess_call(
    logger: logging.Logger,
    command: List[str],
    returncode: int,
    duration_ms: float,
) -> None:
    """Log an external scanner invocation with its exit code and duration.

    Addresses are not logged; only the tool name and argument count.
    """
    tool = Path(command[0]).name if command else '?'
    level = logging.DEBUG if returncode == 0 else logging.WARNING
    logger.log(
        level,
        f"{tool} ({len(command) - 1} args) exited with rc={returncode} after {duration_ms:.1f}ms"
    )


class LogContext:
    """Logs the start and the outcome of a timed operation.

    A cancelled operation is reported as such; any other exception is
    reported as a failure. Exceptions are never suppressed.

    Example:
        >>> with LogContext(logger, "Network scan", level=logging.INFO):
        ...     scanner.scan()
        # Logs: "Network scan completed in 1234ms"
    """

    def __init__(self, logger: logging.Logger, operation: str, level: int = logging.DEBUG):
        self.logger = logger
        self.operation = operation
        self.level = level
        self.start_time: Optional[float] = None
        self.elapsed_ms: Optional[float] = None

    def __enter__(self) -> 'LogContext':
        self.start_time = time.monotonic()
        self.logger.log(self.level, f"{self.operation} started")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.elapsed_ms = (time.monotonic() - self.start_time) * 1000

        if exc_type is None:
            self.logger.log(self.level, f"{self.operation} completed in {self.elapsed_ms:.0f}ms")
        elif issubclass(exc_type, OperationCanceledError):
            self.logger.log(self.level, f"{self.operation} cancelled after {self.elapsed_ms:.0f}ms")
        else:
            self.logger.warning(
                f"{self.operation} failed after {self.elapsed_ms:.0f}ms: "
                f"{exc_type.__name__}: {exc_val}"
            )
        return False
