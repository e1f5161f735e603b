"""Raw environment readers; :mod:`shared.config` caches what they return."""

from __future__ import annotations

import os
from typing import Optional

DEFAULT_PORT = 10000


def _env_str(name: str, default: str = "") -> str:
    value = (os.getenv(name) or "").strip()
    return value or default


def get_port(default: int = DEFAULT_PORT) -> int:
    """Port for the aiohttp server (health + archives); hosts inject ``$PORT``."""

    try:
        return int(_env_str("PORT", str(default)))
    except ValueError:
        return default


def get_env_name(default: str = "dev") -> str:
    return _env_str("ENV_NAME", default)


def get_bot_name(default: str = "ModBot") -> str:
    return _env_str("BOT_NAME", default)


def get_command_prefix(default: str = "!") -> str:
    return _env_str("COMMAND_PREFIX", default)


def get_log_level(default: str = "INFO") -> str:
    return _env_str("LOG_LEVEL", default).upper()


def get_base_url(name: str) -> Optional[str]:
    """Return ``$name`` without a trailing slash, or ``None`` when unset."""

    return _env_str(name).rstrip("/") or None
