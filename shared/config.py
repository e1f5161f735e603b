"""Runtime configuration helpers for the moderation bot."""

from __future__ import annotations

import logging
import os
import re
from typing import Dict, Iterable, Optional, Set

from config import runtime as _runtime
from shared.redaction import mask_secret, sanitize_text

__all__ = [
    "reload_config",
    "get_env_name",
    "get_bot_name",
    "get_port",
    "get_command_prefix",
    "get_log_level",
    "get_bot_version",
    "get_discord_token",
    "get_log_channel_id",
    "get_admin_role_ids",
    "get_staff_role_ids",
    "get_public_base_url",
    "get_render_external_url",
    "get_archive_base_url",
    "redact_token",
    "redact_ids",
    "redact_value",
]

log = logging.getLogger("modbot.config")

# ===== Config Schema (authoritative) =====
_REQUIRED_ENV = ("DISCORD_TOKEN",)


def _require_env(name: str) -> str:
    value = os.getenv(name)
    if value is None or str(value).strip() == "":
        raise RuntimeError(f"Missing required environment variable: {name}")
    return value


for _name in _REQUIRED_ENV:
    _require_env(_name)

_MISSING_VALUE = "—"
_INT_RE = re.compile(r"\d+")

_log_channel_warning_emitted = False

_CONFIG: Dict[str, object] = {}

_SECRET_KEYS = {"DISCORD_TOKEN"}
_ID_SET_KEYS = {"ADMIN_ROLE_IDS", "STAFF_ROLE_IDS"}


def _first_int(raw: str | None) -> Optional[int]:
    if not raw:
        return None
    for match in _INT_RE.finditer(raw):
        try:
            return int(match.group(0))
        except (TypeError, ValueError):
            continue
    return None


def _int_set(raw: str | None) -> Set[int]:
    values: Set[int] = set()
    if not raw:
        return values
    for match in _INT_RE.finditer(raw):
        try:
            values.add(int(match.group(0)))
        except (TypeError, ValueError):
            continue
    return values


def _refresh_log_channel() -> Optional[int]:
    """Resolve the log channel identifier and warn once when it is unset."""

    global _log_channel_warning_emitted

    channel_id = _first_int(os.getenv("LOG_CHANNEL_ID"))
    if channel_id is None:
        if not _log_channel_warning_emitted:
            log.warning(
                "Log channel disabled; set LOG_CHANNEL_ID to enable Discord log posting."
            )
            _log_channel_warning_emitted = True
    else:
        _log_channel_warning_emitted = False
    return channel_id


def _load_config() -> Dict[str, object]:
    return {
        "PORT": _runtime.get_port(),
        "BOT_NAME": _runtime.get_bot_name(),
        "ENV_NAME": _runtime.get_env_name(),
        "COMMAND_PREFIX": _runtime.get_command_prefix(),
        "DISCORD_TOKEN": os.getenv("DISCORD_TOKEN", ""),
        "LOG_CHANNEL_ID": _refresh_log_channel(),
        "LOG_LEVEL": _runtime.get_log_level(),
        "ADMIN_ROLE_IDS": _int_set(os.getenv("ADMIN_ROLE_IDS")),
        "STAFF_ROLE_IDS": _int_set(os.getenv("STAFF_ROLE_IDS")),
        "PUBLIC_BASE_URL": _runtime.get_base_url("PUBLIC_BASE_URL"),
        "RENDER_EXTERNAL_URL": _runtime.get_base_url("RENDER_EXTERNAL_URL"),
        "BOT_VERSION": os.getenv("BOT_VERSION", "dev"),
    }


def _log_snapshot(snapshot: Dict[str, object]) -> None:
    redacted = {key: redact_value(key, value) for key, value in snapshot.items()}
    log.info("config loaded", extra={"config": redacted})


def reload_config() -> Dict[str, object]:
    """Reload configuration from environment and return a snapshot."""

    for _name in _REQUIRED_ENV:
        _require_env(_name)

    snapshot = _load_config()

    global _CONFIG
    _CONFIG = snapshot
    _log_snapshot(snapshot)
    return dict(_CONFIG)


def get_env_name(default: str = "dev") -> str:
    value = _CONFIG.get("ENV_NAME")
    return str(value) if isinstance(value, str) and value else default


def get_bot_name(default: str = "ModBot") -> str:
    value = _CONFIG.get("BOT_NAME")
    return str(value) if isinstance(value, str) and value else default


def get_port(default: int = 10000) -> int:
    try:
        return int(_CONFIG.get("PORT", default))
    except (TypeError, ValueError):
        return default


def get_command_prefix(default: str = "!") -> str:
    value = _CONFIG.get("COMMAND_PREFIX")
    return str(value) if isinstance(value, str) and value else default


def get_log_level(default: str = "INFO") -> str:
    value = _CONFIG.get("LOG_LEVEL")
    return str(value) if isinstance(value, str) and value else default


def get_bot_version(default: str = "dev") -> str:
    value = _CONFIG.get("BOT_VERSION")
    return str(value) if isinstance(value, str) and value else default


def get_discord_token() -> str:
    token = _CONFIG.get("DISCORD_TOKEN", "")
    return str(token)


def get_log_channel_id() -> Optional[int]:
    value = _CONFIG.get("LOG_CHANNEL_ID")
    if value is None:
        return None
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return None
    return parsed if parsed > 0 else None


def _role_set(key: str) -> Set[int]:
    raw = _CONFIG.get(key, set())
    if isinstance(raw, (set, list, tuple)):
        result: Set[int] = set()
        for value in raw:
            try:
                result.add(int(value))
            except (TypeError, ValueError):
                continue
        return result
    return set()


def get_admin_role_ids() -> Set[int]:
    return _role_set("ADMIN_ROLE_IDS")


def get_staff_role_ids() -> Set[int]:
    return _role_set("STAFF_ROLE_IDS")


def get_public_base_url() -> str | None:
    value = _CONFIG.get("PUBLIC_BASE_URL")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def get_render_external_url() -> str | None:
    value = _CONFIG.get("RENDER_EXTERNAL_URL")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def get_archive_base_url() -> str:
    """Return the base URL archive links are built from, without a trailing slash."""

    base = get_public_base_url() or get_render_external_url()
    if not base:
        base = f"http://localhost:{get_port()}"
    return base.rstrip("/")


def redact_token(token: Optional[str]) -> str:
    token = (token or "").strip()
    if not token:
        return _MISSING_VALUE
    masked = sanitize_text(token)
    if isinstance(masked, str) and masked != token:
        return masked
    return mask_secret(token)


def redact_ids(values: Iterable[int]) -> str:
    uniq = sorted({int(v) for v in values if isinstance(v, int)})
    if not uniq:
        return _MISSING_VALUE
    if len(uniq) <= 3:
        return ", ".join(str(v) for v in uniq)
    return f"{len(uniq)} ids"


def redact_value(key: str, value: object) -> str:
    key_upper = str(key).upper()

    if key_upper in _SECRET_KEYS or "TOKEN" in key_upper or key_upper.endswith("_SECRET"):
        return redact_token(None if value is None else str(value))

    if key_upper in _ID_SET_KEYS:
        try:
            iterable = list(value)  # type: ignore[arg-type]
        except TypeError:
            iterable = []
        return redact_ids(int(v) for v in iterable if isinstance(v, int))

    if value in (None, "", [], (), {}):
        return _MISSING_VALUE
    return str(sanitize_text(str(value)))


reload_config()
