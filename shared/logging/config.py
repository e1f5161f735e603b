"""Install the JSON formatter on the process loggers."""

from __future__ import annotations

import logging
from typing import Iterable, Mapping

from .structured import JsonFormatter

__all__ = ["setup_logging"]


def _json_handler(static: Mapping[str, str]) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter(static=static))
    return handler


def _coerce_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(
    *,
    level: str | int = logging.INFO,
    static_fields: Mapping[str, str] | None = None,
    access_logger_name: str = "aiohttp.access",
    quiet_loggers: Iterable[str] = ("discord",),
) -> logging.Logger:
    """Configure JSON logging for the bot process.

    Parameters
    ----------
    level:
        Root log level, a name such as ``"DEBUG"`` or a number. Unknown names
        fall back to ``INFO``.
    static_fields:
        Fields added to every structured log event (bot name, env).
    access_logger_name:
        Logger used for ``http_request`` lines from the web server. It gets
        its own handler and does not propagate to the root logger.
    quiet_loggers:
        Library loggers capped at ``WARNING``; discord.py is chatty during
        gateway reconnects.

    Returns
    -------
    logging.Logger
        The configured access logger instance.
    """

    static = dict(static_fields or {})

    root = logging.getLogger()
    root.setLevel(_coerce_level(level))
    streams = [h for h in root.handlers if isinstance(h, logging.StreamHandler)]
    for handler in streams:
        handler.setFormatter(JsonFormatter(static=static))
    if not streams:
        root.addHandler(_json_handler(static))

    for name in quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)

    access = logging.getLogger(access_logger_name)
    access.propagate = False
    access.handlers.clear()
    access.addHandler(_json_handler({**static, "logger": access_logger_name}))
    access.setLevel(logging.INFO)
    return access
