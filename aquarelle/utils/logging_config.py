"""Logging setup shared by the CLI, the CI harness and embedding hosts.

Library modules only call ``logging.getLogger(__name__)``; applications call
setup_logging() once. Records carry contextual fields (seed, size, frame)
taken from a contextvar:

    2026-10-18T09:15:02.118Z | INFO     | seed=42.0 size=64x64 | Saved render
    {"ts": "2026-10-18T09:15:02.118+00:00", "level": "INFO", "seed": 42.0, ...}

Render bands submitted to a thread pool run inside copy_context(), so the
fields of the submitting thread follow the work.

Public API:
    setup_logging(log_level="INFO", log_file=None, json_format=False, ...)
    get_logger(name)
    push_context(**fields) / pop_context(keys=None)
    log_context(**fields)       # scoped push, restored on exit
    install_excepthook()
"""

import contextvars
import json
import logging
import logging.handlers
import sys
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

_fields: contextvars.ContextVar = contextvars.ContextVar('aquarelle_log_fields', default={})

# Handlers installed by setup_logging(); replaced (not duplicated) on re-run
_installed: List[logging.Handler] = []

_ANSI = {
    logging.DEBUG: '\033[36m',
    logging.INFO: '\033[32m',
    logging.WARNING: '\033[33m',
    logging.ERROR: '\033[31m',
    logging.CRITICAL: '\033[35m',
}

_ROTATING = {
    'size': lambda path, opts: logging.handlers.RotatingFileHandler(
        path, maxBytes=opts.get('max_bytes', 10_000_000), backupCount=opts.get('backup_count', 3)
    ),
    'time': lambda path, opts: logging.handlers.TimedRotatingFileHandler(
        path, when=opts.get('when', 'D'), interval=opts.get('interval', 1),
        backupCount=opts.get('backup_count', 7)
    ),
}


class ContextFormatter(logging.Formatter):
    """Render a record as one human line or one JSON object.

    Parameters
    ----------
    fmt_mode : str
        "human" or "json"
    use_color : bool
        Color the level name (only when stderr is a terminal)
    """

    def __init__(self, fmt_mode: str = "human", use_color: bool = True):
        super().__init__()
        if fmt_mode not in ("human", "json"):
            raise ValueError(f"fmt_mode must be 'human' or 'json', got {fmt_mode!r}")
        self.fmt_mode = fmt_mode
        self.use_color = use_color and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        fields = _fields.get()
        stamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        if self.fmt_mode == "json":
            return self._json(record, stamp, fields)

        level = f"{record.levelname:<8}"
        if self.use_color:
            level = f"{_ANSI.get(record.levelno, '')}{level}\033[0m"
        columns = [stamp.strftime('%Y-%m-%dT%H:%M:%S.') + f"{stamp.microsecond // 1000:03d}Z", level]
        if fields:
            columns.append(' '.join(f"{k}={v}" for k, v in fields.items()))
        columns.append(record.getMessage())

        text = ' | '.join(columns)
        if record.exc_info:
            text = f"{text}\n{self.formatException(record.exc_info)}"
        return text

    def _json(self, record: logging.LogRecord, stamp: datetime, fields: Mapping[str, Any]) -> str:
        payload = {
            'ts': stamp.isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'msg': record.getMessage(),
            **fields,
        }
        if record.exc_info:
            payload['exc'] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    *,
    json_format: bool = False,
    color: bool = True,
    to_stderr: bool = True,
    rotate: Optional[Dict[str, Any]] = None,
    capture_warnings: bool = True,
    quiet_libs: Optional[List[str]] = None,
    context: Optional[Dict[str, Any]] = None
) -> List[logging.Handler]:
    """Install console and/or file handlers on the root logger.

    Calling it again replaces the handlers from the previous call; handlers
    installed by someone else (e.g. pytest's capture) are left alone.

    Parameters
    ----------
    log_level : str
        Level name, case-insensitive
    log_file : str, optional
        Also log to this file (parent directories are created)
    json_format : bool
        JSON lines in the file handler
    color : bool
        ANSI level colors on the console
    to_stderr : bool
        Console handler on stderr
    rotate : dict, optional
        {"mode": "size", "max_bytes": ..., "backup_count": ...} or
        {"mode": "time", "when": "D", "interval": 1, "backup_count": ...}
    capture_warnings : bool
        Route ``warnings`` through logging
    quiet_libs : list[str], optional
        Loggers raised to WARNING; default ["PIL"]
    context : dict, optional
        Fields pushed onto the log context

    Returns
    -------
    list[logging.Handler]
        The handlers now installed

    Raises
    ------
    ValueError
        On an unknown level name or rotation mode
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")

    handlers: List[logging.Handler] = []
    if to_stderr:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(ContextFormatter("human", use_color=color))
        handlers.append(console)
    if log_file:
        handlers.append(_file_handler(Path(log_file), rotate, json_format))

    root = logging.getLogger()
    while _installed:
        old = _installed.pop()
        root.removeHandler(old)
        old.close()
    for handler in handlers:
        root.addHandler(handler)
        _installed.append(handler)
    root.setLevel(level)

    for name in (["PIL"] if quiet_libs is None else quiet_libs):
        logging.getLogger(name).setLevel(logging.WARNING)
    if capture_warnings:
        logging.captureWarnings(True)
    if context:
        push_context(**context)
    return handlers


def _file_handler(path: Path, rotate: Optional[Dict[str, Any]], json_format: bool) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    if rotate:
        mode = rotate.get('mode', 'size')
        if mode not in _ROTATING:
            raise ValueError(f"Unknown rotation mode: {mode!r} (expected 'size' or 'time')")
        handler = _ROTATING[mode](path, rotate)
    else:
        handler = logging.FileHandler(path)
    handler.setFormatter(ContextFormatter("json" if json_format else "human", use_color=False))
    return handler


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def push_context(**fields) -> None:
    """Attach fields to every later record in this context."""
    _fields.set({**_fields.get(), **fields})


def pop_context(keys: Optional[List[str]] = None) -> None:
    """Drop the named fields, or all fields when keys is None."""
    if keys is None:
        _fields.set({})
    else:
        _fields.set({k: v for k, v in _fields.get().items() if k not in keys})


@contextmanager
def log_context(**fields):
    """Scoped push_context(); the previous fields are restored on exit.

    Examples
    --------
    >>> with log_context(frame=3):
    ...     logger.debug("rendering")   # "... | seed=42.0 frame=3 | rendering"
    """
    token = _fields.set({**_fields.get(), **fields})
    try:
        yield
    finally:
        _fields.reset(token)


def install_excepthook() -> None:
    """Log uncaught exceptions at CRITICAL before the interpreter exits."""
    previous = sys.excepthook

    def hook(exc_type, exc_value, exc_traceback):
        if not issubclass(exc_type, KeyboardInterrupt):
            logging.getLogger("aquarelle").critical(
                "Uncaught exception", exc_info=(exc_type, exc_value, exc_traceback)
            )
        previous(exc_type, exc_value, exc_traceback)

    sys.excepthook = hook
