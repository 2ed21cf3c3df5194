"""
Logging configuration shared by the GUI entry point and headless use.

Public API:
    setup_logging(level="INFO", log_file=None, fmt_mode="human")
    get_logger(name)

Repeated setup_logging() calls replace the handlers installed by the
previous call instead of stacking new ones.
"""
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Union

_ROOT_LOGGER_NAME = ""
_installed_handlers: List[logging.Handler] = []


class SimulatorFormatter(logging.Formatter):
    """Human-readable or JSON-line formatter.

    Human: 2026-10-19T08:58:12.345+00:00 | INFO | core.parser | Parsed 12 commands
    JSON:  {"t": "...", "lvl": "INFO", "name": "core.parser", "msg": "..."}
    """

    def __init__(self, fmt_mode: str = "human"):
        super().__init__()
        self.fmt_mode = fmt_mode

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec="milliseconds")
        if self.fmt_mode == "json":
            payload = {
                't': ts,
                'lvl': record.levelname,
                'name': record.name,
                'msg': record.getMessage(),
            }
            if record.exc_info:
                payload['exc'] = self.formatException(record.exc_info)
            return json.dumps(payload)

        line = f"{ts} | {record.levelname} | {record.name} | {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(
    level: Union[str, int] = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    fmt_mode: str = "human",
) -> logging.Logger:
    """Configure the root logger with a console handler and an optional file.

    Parameters
    ----------
    level : str or int
        Minimum level, e.g. "DEBUG" or logging.INFO
    log_file : Optional[Union[str, Path]]
        Also write records to this file (parent directories are created)
    fmt_mode : str
        "human" or "json"
    """
    if fmt_mode not in ("human", "json"):
        raise ValueError(f"Unknown log format mode: {fmt_mode!r}")

    root = logging.getLogger(_ROOT_LOGGER_NAME)
    for handler in _installed_handlers:
        root.removeHandler(handler)
        handler.close()
    _installed_handlers.clear()

    formatter = SimulatorFormatter(fmt_mode)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    _installed_handlers.append(console)

    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        _installed_handlers.append(file_handler)

    for handler in _installed_handlers:
        root.addHandler(handler)

    if isinstance(level, str):
        level = level.upper()
    root.setLevel(level)
    return root


def get_logger(name: str) -> logging.Logger:
    """Get a module logger; configuration comes from setup_logging()."""
    return logging.getLogger(name)
