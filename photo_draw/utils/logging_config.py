"""Logging setup for the vectorize CLI and for apps embedding photo_draw.

Library modules only call logging.getLogger(__name__). Handlers are installed
here, once, by whichever application owns the process.

Public API:
    setup_logging(log_level="INFO", context={"app": "vectorize"})
    push_context(conversion="a1b2c3") / pop_context(["conversion"])
    install_excepthook()
    shutdown()

Line formats:
    Human: 2026-03-02T09:14:07.512Z | INFO     | vectorize_0 | app=vectorize conversion=a1b2c3 | Converted 3 components
    JSON:  {"t": "2026-03-02T09:14:07.512000+00:00", "lvl": "INFO", "app": "vectorize", "msg": "..."}

Timestamps are always UTC. Context fields live in a ContextVar, so a thread
pool worker sees the fields of the thread that created it only when the task
runs inside a copied context; conversion-level messages are logged from the
submitting thread for that reason.

Calling setup_logging() again replaces the handlers of the previous call.
"""

import contextvars
import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

_context: contextvars.ContextVar = contextvars.ContextVar('photo_draw_log_context', default={})

# Handlers installed by the last setup_logging() call
_installed: List[logging.Handler] = []


class ContextFormatter(logging.Formatter):
    """Render records as one human-readable or JSON line with context fields."""

    LEVEL_COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def __init__(self, fmt_mode: str = "human", use_color: bool = True):
        super().__init__()
        if fmt_mode not in ("human", "json"):
            raise ValueError(f"fmt_mode must be 'human' or 'json', got '{fmt_mode}'")
        self.fmt_mode = fmt_mode
        self.use_color = use_color and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        fields = _context.get({})

        if self.fmt_mode == "json":
            entry = {
                't': ts.isoformat(),
                'lvl': record.levelname,
                'name': record.name,
                'pid': os.getpid(),
                'thread': record.threadName,
                **fields,
                'msg': record.getMessage(),
            }
            if record.exc_info:
                entry['exc'] = self.formatException(record.exc_info)
            return json.dumps(entry, default=str)

        level = f"{record.levelname:8s}"
        if self.use_color:
            level = f"{self.LEVEL_COLORS.get(record.levelname, '')}{level}{self.RESET}"

        parts = [ts.strftime('%Y-%m-%dT%H:%M:%S.%f')[:-3] + 'Z', level]
        # Pool workers are worth telling apart; the main thread is implied
        if record.threadName != "MainThread":
            parts.append(record.threadName)
        if fields:
            parts.append(' '.join(f"{k}={v}" for k, v in fields.items()))
        parts.append(record.getMessage())

        line = ' | '.join(parts)
        if record.exc_info:
            line += '\n' + self.formatException(record.exc_info)
        return line


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    *,
    json: bool = False,
    color: bool = True,
    to_stderr: bool = True,
    max_bytes: Optional[int] = None,
    backup_count: int = 3,
    capture_warnings: bool = True,
    quiet_libs: Optional[List[str]] = None,
    context: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Install console and/or file handlers on the root logger.

    Parameters
    ----------
    log_level : str
        "DEBUG", "INFO", "WARNING", "ERROR" or "CRITICAL"
    log_file : str, optional
        Also log to this file (parent directories are created)
    json : bool
        JSON lines for the file handler, or for the console when there is no file
    color : bool
        ANSI level colors on a TTY console
    to_stderr : bool
        Install the console handler
    max_bytes : int, optional
        Rotate ``log_file`` at this size, keeping ``backup_count`` old files
    backup_count : int
        Rotated files to keep
    capture_warnings : bool
        Route warnings.warn() through the 'py.warnings' logger
    quiet_libs : list[str], optional
        Loggers raised to WARNING (e.g. ["PIL"], whose plugin loading is chatty at DEBUG)
    context : dict, optional
        Fields pushed onto the logging context

    Returns
    -------
    dict
        {"handlers": [...]} as installed

    Examples
    --------
    >>> setup_logging(log_level="DEBUG", log_file="outputs/logs/vectorize.log",
    ...               max_bytes=10_000_000, context={"app": "vectorize"})
    """
    root = logging.getLogger()
    for handler in _installed:
        root.removeHandler(handler)
        handler.close()
    _installed.clear()

    root.setLevel(getattr(logging, log_level.upper()))

    if to_stderr:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(ContextFormatter("json" if (json and not log_file) else "human", color))
        _installed.append(console)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        if max_bytes:
            file_handler = logging.handlers.RotatingFileHandler(
                log_file, maxBytes=max_bytes, backupCount=backup_count
            )
        else:
            file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(ContextFormatter("json" if json else "human", use_color=False))
        _installed.append(file_handler)

    for handler in _installed:
        root.addHandler(handler)

    if context:
        push_context(**context)

    for lib in quiet_libs or []:
        logging.getLogger(lib).setLevel(logging.WARNING)

    if capture_warnings:
        logging.captureWarnings(True)

    return {'handlers': list(_installed)}


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def push_context(**fields) -> None:
    """Add fields to every subsequent record logged from this context.

    >>> push_context(conversion="a1b2c3", image="scan.jpg")
    """
    _context.set({**_context.get({}), **fields})


def pop_context(keys: Optional[List[str]] = None) -> None:
    """Remove ``keys`` from the logging context, or everything when None."""
    if keys is None:
        _context.set({})
    else:
        _context.set({k: v for k, v in _context.get({}).items() if k not in keys})


def install_excepthook() -> None:
    """Log uncaught exceptions at CRITICAL before the interpreter exits (Ctrl-C excepted)."""
    def log_exception(exc_type, exc_value, exc_traceback):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return
        logging.getLogger("photo_draw").critical(
            "Uncaught exception", exc_info=(exc_type, exc_value, exc_traceback)
        )

    sys.excepthook = log_exception


def shutdown() -> None:
    """Flush and close all handlers (end of main())."""
    logging.shutdown()
