"""Structured logging for the portal, built on structlog over stdlib logging.

Output is controlled by two environment variables:

- ``LOG_FORMAT``: ``json`` emits one JSON object per line for log shipping;
  ``console`` (or unset) renders human-readable lines, colored on a TTY.
- ``LOG_LEVEL``: any stdlib level name, ``INFO`` when unset.

Event values under secret-looking keys (passwords, session tokens, hashes)
are masked inside the structlog chain, before any handler formats them.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import MutableMapping
    from typing import Any

REDACTED = "[redacted]"
SECRET_KEYS = frozenset(
    {
        "password",
        "current_password",
        "new_password",
        "secondary_password",
        "session_token",
        "token",
        "password_hash",
    },
)

LOG_FORMATS = ("json", "console")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FILE_NAME_FORMAT = "%Y-%m-%d_%H-%M-%S.log"

# Third-party loggers that report every request on their own
QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore")


def redact_secrets(
    _logger: object,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Mask the value of every key listed in ``SECRET_KEYS``."""
    for key in SECRET_KEYS.intersection(event_dict):
        event_dict[key] = REDACTED
    return event_dict


def _is_test() -> bool:
    return "pytest" in sys.modules


def _env_choice(name: str, choices: tuple[str, ...], default: str) -> str:
    value = os.environ.get(name, "").strip().lower() or default
    if value not in {c.lower() for c in choices}:
        msg = f"Invalid {name}={value!r}. Must be one of {', '.join(choices)}."
        raise ValueError(msg)
    return value


def _renderer(*, json_mode: bool, colors: bool) -> structlog.types.Processor:
    if json_mode:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=colors)


def _handler(handler: logging.Handler, *, json_mode: bool, colors: bool = False) -> logging.Handler:
    """Attach a ProcessorFormatter so structlog and stdlib records render the same way."""
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                _renderer(json_mode=json_mode, colors=colors),
            ],
        ),
    )
    return handler


def _log_file(log_dir: Path | str) -> Path:
    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    return directory / datetime.now(tz=UTC).strftime(LOG_FILE_NAME_FORMAT)


def setup_logging(
    log_dir: Path | str | None = None,
    level: int | None = None,
) -> Path | None:
    """Route structlog through the root logger, to stdout and optionally a file.

    Calling it again replaces the previous handlers. A timestamped file is
    created in ``log_dir`` when given, except under pytest. Returns the log
    file path, or None when only stdout is used.
    """
    json_mode = _env_choice("LOG_FORMAT", LOG_FORMATS, "console") == "json"
    if level is None:
        level = getattr(logging, _env_choice("LOG_LEVEL", LOG_LEVELS, "info").upper())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            redact_secrets,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root.addHandler(_handler(logging.StreamHandler(sys.stdout), json_mode=json_mode, colors=sys.stdout.isatty()))

    if log_dir is None or _is_test():
        return None
    path = _log_file(log_dir)
    root.addHandler(_handler(logging.FileHandler(path), json_mode=json_mode))
    return path
