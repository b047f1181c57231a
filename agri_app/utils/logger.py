"""
Logging for the AgriVision dashboard

Every app start gets its own directory under AGRI_LOG_DIR:
    session_<YYYYmmdd_HHMMSS>/app.log     INFO and up, rotating
    session_<YYYYmmdd_HHMMSS>/debug.log   DEBUG records only
    session_<YYYYmmdd_HHMMSS>/errors.log  ERROR and up
latest.log / latest_errors.log in AGRI_LOG_DIR point at the current session.

Services and controllers use get_logger(__name__); @log_function traces
entry/exit of sync and async callables at DEBUG and logs failures at ERROR.
"""

import os
import sys
import logging
import logging.handlers
import functools
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional
import asyncio

LOG_DIR = Path(os.getenv("AGRI_LOG_DIR", "/tmp/agri_logs" if os.path.exists("/tmp") else "logs"))
SESSION_ID = datetime.now().strftime('%Y%m%d_%H%M%S')
SESSION_DIR = LOG_DIR / f"session_{SESSION_ID}"

LOG_FILE = SESSION_DIR / "app.log"
ERROR_LOG_FILE = SESSION_DIR / "errors.log"
DEBUG_LOG_FILE = SESSION_DIR / "debug.log"

MB = 1024 * 1024

FORMATS = {
    'file': ('%(asctime)s | %(levelname)-8s | %(name)-30s | %(funcName)-20s | Line:%(lineno)-5d | %(message)s',
             '%Y-%m-%d %H:%M:%S'),
    'debug': ('%(asctime)s | %(name)s.%(funcName)s:%(lineno)d | %(message)s', '%H:%M:%S'),
    'console': ('%(asctime)s | %(levelname)s | %(message)s', '%H:%M:%S'),
}


def _level_from_env(default: int = logging.INFO) -> int:
    name = os.getenv("AGRI_LOG_LEVEL", "").upper()
    if not name:
        return default
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else default


def _formatter(kind: str) -> logging.Formatter:
    fmt, datefmt = FORMATS[kind]
    return logging.Formatter(fmt, datefmt=datefmt)


def _handler(handler: logging.Handler, level: int, kind: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(_formatter(kind))
    return handler


def _point_latest(link: Path, target: Path):
    if link.is_symlink() or link.exists():
        link.unlink()
    link.symlink_to(target)


def setup_logging(level: Optional[int] = None) -> logging.Logger:
    """Replace the root logger's handlers with the session file set plus stdout"""
    level = level if level is not None else _level_from_env()
    SESSION_DIR.mkdir(parents=True, exist_ok=True)

    debug_only = _handler(
        logging.handlers.RotatingFileHandler(DEBUG_LOG_FILE, maxBytes=50 * MB, backupCount=2, encoding='utf-8'),
        logging.DEBUG, 'debug',
    )
    debug_only.addFilter(lambda record: record.levelno == logging.DEBUG)

    handlers = [
        _handler(
            logging.handlers.RotatingFileHandler(LOG_FILE, maxBytes=10 * MB, backupCount=5, encoding='utf-8'),
            logging.INFO, 'file',
        ),
        debug_only,
        _handler(logging.FileHandler(ERROR_LOG_FILE, encoding='utf-8'), logging.ERROR, 'file'),
        _handler(logging.StreamHandler(sys.stdout), max(level, logging.INFO), 'console'),
    ]

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    for handler in handlers:
        root.addHandler(handler)

    if sys.platform != 'win32':
        try:
            _point_latest(LOG_DIR / "latest.log", LOG_FILE)
            _point_latest(LOG_DIR / "latest_errors.log", ERROR_LOG_FILE)
        except OSError as e:
            root.debug(f"latest log links not updated: {e}")

    root.info(f"AgriVision log session {SESSION_ID} -> {SESSION_DIR} "
              f"(level={logging.getLevelName(level)}, python {sys.version.split()[0]})")
    return root


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def _safe_repr(obj: Any, max_len: int = 100) -> str:
    """Truncated repr that never raises"""
    try:
        text = repr(obj)
    except Exception:
        return f"<{type(obj).__name__} object>"
    return text if len(text) <= max_len else text[:max_len] + "..."


class _Trace:
    """Entry/exit/error lines for one call of a decorated function"""

    def __init__(self, func: Callable, prefix: str):
        self.logger = logging.getLogger(func.__module__)
        self.name = f"{func.__module__}.{func.__qualname__}"
        self.prefix = prefix

    def enter(self, args, kwargs):
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(f"{self.prefix}ENTER >>> {self.name} args={_safe_repr(args)} kwargs={_safe_repr(kwargs)}")

    def exit(self, result):
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(f"{self.prefix}EXIT <<< {self.name} -> {_safe_repr(result)}")

    def error(self, e: Exception):
        self.logger.error(f"{self.prefix}ERROR in {self.name}: {e}")
        self.logger.debug(f"  Traceback:\n{traceback.format_exc()}")


def log_function(func: Callable) -> Callable:
    """Trace entry and exit at DEBUG, log and re-raise failures"""

    if asyncio.iscoroutinefunction(func):
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            trace = _Trace(func, "ASYNC ")
            trace.enter(args, kwargs)
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                trace.error(e)
                raise
            trace.exit(result)
            return result

        return async_wrapper

    @functools.wraps(func)
    def sync_wrapper(*args, **kwargs):
        trace = _Trace(func, "")
        trace.enter(args, kwargs)
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            trace.error(e)
            raise
        trace.exit(result)
        return result

    return sync_wrapper


class LogOperation:
    """with-block that logs start, outcome and duration"""

    def __init__(self, operation_name: str, logger: logging.Logger = None):
        self.operation_name = operation_name
        self.logger = logger or logging.getLogger(__name__)
        self.start_time: Optional[datetime] = None

    def __enter__(self):
        self.start_time = datetime.now()
        self.logger.info(f"START OPERATION: {self.operation_name}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = (datetime.now() - self.start_time).total_seconds()
        if exc_type is None:
            self.logger.info(f"END OPERATION: {self.operation_name} [SUCCESS in {duration:.2f}s]")
        else:
            self.logger.error(f"END OPERATION: {self.operation_name} [FAILED in {duration:.2f}s] {exc_val}")
        return False


if not logging.getLogger().handlers:
    setup_logging()
