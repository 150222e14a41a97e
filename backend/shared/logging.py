"""Structured logging for the engine host, built on structlog.

The host calls setup_logging() once at startup. With a log directory the
engine also writes to a file there; rotate_log_file() swaps that file for a
per-game one when a game is created. bind_game_context() tags every line
emitted while serving one game with its id.

Environment variables:
- LOG_FORMAT: "json" for log aggregation, "console" or unset for readable output.
- LOG_LEVEL: DEBUG, INFO (default), WARNING, ERROR or CRITICAL.
"""

from __future__ import annotations

import logging
import os
import sys
from contextlib import contextmanager
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Iterator, MutableMapping
    from typing import Any

LOG_FILE_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"

_LOG_FORMATS = ("", "console", "json")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _enum_values(
    _logger: object,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Render enum members (statuses, actions, error codes) by value."""
    for key, value in event_dict.items():
        if isinstance(value, Enum):
            event_dict[key] = value.value
        elif isinstance(value, list | tuple):
            event_dict[key] = [v.value if isinstance(v, Enum) else v for v in value]
    return event_dict


def _under_pytest() -> bool:
    return "pytest" in sys.modules


def _env_choice(name: str, default: str, allowed: tuple[str, ...], *, upper: bool) -> str:
    raw = os.environ.get(name, default)
    value = raw.upper() if upper else raw.lower()
    if value not in allowed:
        msg = f"Invalid {name}={raw!r}. Expected one of: {', '.join(v or '<unset>' for v in allowed)}."
        raise ValueError(msg)
    return value


def _json_mode() -> bool:
    return _env_choice("LOG_FORMAT", "", _LOG_FORMATS, upper=False) == "json"


def _env_level() -> int:
    return getattr(logging, _env_choice("LOG_LEVEL", "INFO", _LOG_LEVELS, upper=True))


def _formatter(*, json_mode: bool, colors: bool) -> structlog.stdlib.ProcessorFormatter:
    renderer = structlog.processors.JSONRenderer() if json_mode else structlog.dev.ConsoleRenderer(colors=colors)
    return structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )


def _open_log_file(log_dir: Path | str, stem: str) -> Path:
    """Create ``<log_dir>/<stem>.log`` and attach it to the root logger."""
    dir_path = Path(log_dir)
    dir_path.mkdir(parents=True, exist_ok=True)
    file_path = dir_path / f"{stem}.log"
    handler = logging.FileHandler(file_path)
    handler.setFormatter(_formatter(json_mode=_json_mode(), colors=False))
    logging.getLogger().addHandler(handler)
    return file_path


def _timestamp() -> str:
    return datetime.now(tz=UTC).strftime(LOG_FILE_TIMESTAMP_FORMAT)


def setup_logging(
    log_dir: Path | str | None = None,
    level: int | None = None,
) -> Path | None:
    """
    Route structlog through the stdlib root logger.

    Always logs to stdout. With ``log_dir`` (outside tests) also opens a
    timestamped log file there and returns its path. ``level`` overrides
    LOG_LEVEL. Calling again replaces every handler.
    """
    json_mode = _json_mode()
    level = _env_level() if level is None else level

    # exceptions are formatted by the handlers' ProcessorFormatter
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            _enum_values,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    for handler in root.handlers[:]:
        handler.close()
        root.removeHandler(handler)
    root.setLevel(level)

    stdout = logging.StreamHandler(sys.stdout)
    stdout.setFormatter(_formatter(json_mode=json_mode, colors=sys.stdout.isatty()))
    root.addHandler(stdout)

    if log_dir is None or _under_pytest():
        return None
    return _open_log_file(log_dir, _timestamp())


def rotate_log_file(log_dir: Path | str, name: str | None = None) -> Path | None:
    """
    Close the current log file and continue in a new one.

    The new file is named after ``name`` (a game id) or the current time.
    The stdout handler stays in place. Does nothing under tests.
    """
    if _under_pytest():
        return None

    root = logging.getLogger()
    for handler in root.handlers[:]:
        if isinstance(handler, logging.FileHandler):
            handler.close()
            root.removeHandler(handler)
    return _open_log_file(log_dir, name or _timestamp())


@contextmanager
def bind_game_context(game_id: str, **extra: object) -> Iterator[None]:
    """Bind game_id (and any extra keys) into structlog context for the block."""
    with structlog.contextvars.bound_contextvars(game_id=game_id, **extra):
        yield
