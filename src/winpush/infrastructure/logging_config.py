"""
Logging configuration module.

Console output is colored by level when stderr is a terminal; the
optional log file is always plain text at DEBUG and records the worker
thread, since targets may be processed concurrently.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, TextIO

# Libraries that log every WinRM request at INFO/DEBUG
NOISY_LOGGERS = ("winrm", "urllib3", "requests_ntlm", "requests_kerberos", "spnego")

CONSOLE_FORMAT = "[%(asctime)s] %(levelname)s [%(name)s] %(message)s"
CONSOLE_DATEFMT = "%H:%M:%S"
FILE_FORMAT = "[%(asctime)s] %(levelname)-8s [%(threadName)s] [%(name)s] %(message)s"
FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

_RESET = "\033[0m"
_DIM = "\033[2m"

LEVEL_STYLES = {
    logging.DEBUG: "\033[2;37m",
    logging.INFO: "\033[36m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[91m",
    logging.CRITICAL: "\033[1;37;41m",
}


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the level name and dims the logger name."""

    def __init__(self, fmt: str, datefmt: Optional[str] = None, use_colors: bool = True):
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        if not self.use_colors:
            return super().format(record)

        # Shallow copy: the file handler must see the unstyled record
        styled = logging.makeLogRecord(record.__dict__)
        style = LEVEL_STYLES.get(record.levelno, "")
        styled.levelname = f"{style}{record.levelname:8}{_RESET}"
        styled.name = f"{_DIM}{record.name}{_RESET}"
        return super().format(styled)


def _enable_windows_ansi() -> None:
    """Turn on virtual terminal processing for the Windows console."""
    if sys.platform != "win32":
        return
    try:
        import ctypes
        kernel32 = ctypes.windll.kernel32
        # STD_ERROR_HANDLE; PROCESSED_OUTPUT | WRAP_AT_EOL | VIRTUAL_TERMINAL_PROCESSING
        kernel32.SetConsoleMode(kernel32.GetStdHandle(-12), 7)
    except (AttributeError, OSError):
        pass  # legacy console, stays uncolored


def build_console_handler(level: int, stream: Optional[TextIO] = None) -> logging.Handler:
    stream = stream or sys.stderr
    handler = logging.StreamHandler(stream)
    use_colors = hasattr(stream, "isatty") and stream.isatty()
    handler.setFormatter(ColoredFormatter(CONSOLE_FORMAT, CONSOLE_DATEFMT, use_colors=use_colors))
    handler.setLevel(level)
    return handler


def build_file_handler(log_file: str) -> logging.Handler:
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter(FILE_FORMAT, FILE_DATEFMT))
    handler.setLevel(logging.DEBUG)
    return handler


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> None:
    """
    Configure application-wide logging.

    Console output goes to stderr so that --json output on stdout stays
    machine readable.

    Args:
        level: Console logging level
        log_file: Optional path to a log file (always DEBUG)
    """
    _enable_windows_ansi()

    handlers = [build_console_handler(level)]
    if log_file:
        handlers.append(build_file_handler(log_file))

    # Root passes everything; each handler filters
    logging.basicConfig(level=logging.DEBUG, handlers=handlers, force=True)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.debug("Logging initialized at %s", logging.getLevelName(level))
    if log_file:
        logger.debug("Log file: %s", log_file)
