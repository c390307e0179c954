"""Logging configuration for the shoptools entry points.

Library modules only create module loggers
(``logging.getLogger(__name__)``); handlers are installed here, by the
command-line wrapper, exactly once per process.

    - Console handler (stderr) with optional colour
    - Optional file handler with size or time rotation
    - JSON line output for log shippers
    - Contextual fields (job, base, tool) carried by contextvars
    - Python warnings and uncaught exceptions routed to logging

Public API:
    setup_logging(log_level="INFO", context={"app": "render_job"})
    push_context(job="cabinet.yaml")
    pop_context(keys=["job"])
    install_excepthook()
    shutdown()

Format examples:
    Human: 2026-03-02T09:14:07.512Z | INFO     | app=render_job job=a.yaml | Rendered 3 files
    JSON:  {"t":"2026-03-02T09:14:07.512+00:00","lvl":"INFO","job":"a.yaml","msg":"..."}
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

_context_var: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar(
    "shoptools_logging_context"
)

_installed: List[logging.Handler] = []

_LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
_RESET = "\033[0m"


def _current_context() -> Dict[str, Any]:
    return _context_var.get({})


class ContextFormatter(logging.Formatter):
    """Formatter that appends the contextual fields to every record.

    Parameters
    ----------
    fmt_mode : str
        ``"human"`` or ``"json"``.
    use_color : bool
        Colour the level name; ignored unless stderr is a terminal.
    tz : str
        ``"UTC"`` or ``"local"``.
    """

    def __init__(
        self,
        fmt_mode: str = "human",
        use_color: bool = True,
        tz: str = "UTC"
    ):
        super().__init__()
        self.fmt_mode = fmt_mode
        self.use_color = use_color and sys.stderr.isatty()
        self.tz = tz

    def format(self, record: logging.LogRecord) -> str:
        if self.tz == "UTC":
            ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        else:
            ts = datetime.fromtimestamp(record.created)
        context = _current_context()
        if self.fmt_mode == "json":
            return self._format_json(record, ts, context)
        return self._format_human(record, ts, context)

    def _format_json(
        self,
        record: logging.LogRecord,
        ts: datetime,
        context: Dict[str, Any]
    ) -> str:
        payload: Dict[str, Any] = {
            "t": ts.isoformat(),
            "lvl": record.levelname,
            "name": record.name,
            "pid": os.getpid(),
        }
        payload.update(context)
        payload["msg"] = record.getMessage()
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)

    def _format_human(
        self,
        record: logging.LogRecord,
        ts: datetime,
        context: Dict[str, Any]
    ) -> str:
        stamp = ts.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"
        level = f"{record.levelname:8s}"
        if self.use_color:
            level = f"{_LEVEL_COLORS.get(record.levelname, '')}{level}{_RESET}"

        parts = [stamp, level]
        if context:
            parts.append(" ".join(f"{k}={v}" for k, v in context.items()))
        parts.append(record.getMessage())
        line = " | ".join(parts)

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    *,
    json: bool = False,
    color: bool = True,
    to_stderr: bool = True,
    rotate: Optional[Dict[str, Any]] = None,
    tz: str = "UTC",
    capture_warnings: bool = True,
    quiet_libs: Optional[List[str]] = None,
    context: Optional[Dict[str, Any]] = None,
) -> List[logging.Handler]:
    """Configure the root logger (idempotent).

    Parameters
    ----------
    log_level : str
        "DEBUG", "INFO", "WARNING", "ERROR" or "CRITICAL"
    log_file : str, optional
        Log file path; None for no file logging
    json : bool
        JSON lines in the file handler instead of the human format
    color : bool
        ANSI colours on the console handler
    to_stderr : bool
        Log to stderr
    rotate : dict, optional
        - {"mode": "size", "max_bytes": 5_000_000, "backup_count": 3}
        - {"mode": "time", "when": "D", "interval": 1, "backup_count": 7}
    tz : str
        "UTC" (default) or "local"
    capture_warnings : bool
        Route ``warnings.warn`` through logging
    quiet_libs : list[str], optional
        Logger names forced to WARNING (e.g. ["yaml"])
    context : dict, optional
        Initial contextual fields (e.g. {"app": "render_job"})

    Returns
    -------
    list[logging.Handler]
        Handlers installed on the root logger.

    Notes
    -----
    Repeated calls replace the handlers of the previous call.
    """
    root = logging.getLogger()
    _remove_installed(root)

    level = getattr(logging, log_level.upper(), None)
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level!r}")
    root.setLevel(level)

    handlers: List[logging.Handler] = []
    if to_stderr:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(ContextFormatter("human", color, tz))
        handlers.append(console)
    if log_file:
        handlers.append(_create_file_handler(log_file, rotate, json, tz))
    for handler in handlers:
        root.addHandler(handler)
    _installed.extend(handlers)

    if context:
        push_context(**context)

    for lib in quiet_libs or []:
        logging.getLogger(lib).setLevel(logging.WARNING)

    if capture_warnings:
        route_warnings()

    return handlers


def _create_file_handler(
    log_file: str,
    rotate: Optional[Dict[str, Any]],
    json_format: bool,
    tz: str
) -> logging.Handler:
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handler: logging.Handler
    if not rotate:
        handler = logging.FileHandler(log_path, encoding="utf-8")
    elif rotate.get("mode", "size") == "size":
        handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=rotate.get("max_bytes", 5_000_000),
            backupCount=rotate.get("backup_count", 3),
            encoding="utf-8",
        )
    elif rotate["mode"] == "time":
        handler = logging.handlers.TimedRotatingFileHandler(
            log_path,
            when=rotate.get("when", "D"),
            interval=rotate.get("interval", 1),
            backupCount=rotate.get("backup_count", 7),
            encoding="utf-8",
        )
    else:
        raise ValueError(
            f"Unknown rotation mode: {rotate['mode']}. Use 'size' or 'time'."
        )

    fmt_mode = "json" if json_format else "human"
    handler.setFormatter(ContextFormatter(fmt_mode, use_color=False, tz=tz))
    return handler


def push_context(**kwargs: Any) -> None:
    """Add contextual fields to all subsequent log records.

    Examples
    --------
    >>> push_context(job="cabinet.yaml")
    >>> logger.info("Rendered")  # → "... | job=cabinet.yaml | Rendered"
    """
    _context_var.set({**_current_context(), **kwargs})


def pop_context(keys: Optional[List[str]] = None) -> None:
    """Remove contextual fields; all of them when *keys* is None."""
    if keys is None:
        _context_var.set({})
        return
    remaining = {k: v for k, v in _current_context().items() if k not in keys}
    _context_var.set(remaining)


def install_excepthook() -> None:
    """Log uncaught exceptions (except Ctrl+C) before the process exits."""
    def log_exception(exc_type, exc_value, exc_traceback):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return
        logging.getLogger(__name__).critical(
            "Uncaught exception",
            exc_info=(exc_type, exc_value, exc_traceback)
        )

    sys.excepthook = log_exception


def route_warnings() -> None:
    """Route Python warnings to the ``py.warnings`` logger."""
    logging.captureWarnings(True)
    logging.getLogger("py.warnings").setLevel(logging.WARNING)


def _remove_installed(root: logging.Logger) -> None:
    while _installed:
        handler = _installed.pop()
        root.removeHandler(handler)
        handler.flush()
        handler.close()


def shutdown() -> None:
    """Flush and remove the handlers installed by :func:`setup_logging`."""
    _remove_installed(logging.getLogger())
