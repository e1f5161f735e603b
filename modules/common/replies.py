"""Standard user-facing reply helpers."""

from __future__ import annotations

import logging
from typing import Any

log = logging.getLogger("modbot.replies")

ERROR_PREFIX = "⚠"


async def send_error_message(channel: Any, body: str) -> Any:
    """Post ``body`` as a warning line in ``channel``."""

    log.debug(
        "error reply",
        extra={"channel_id": getattr(channel, "id", None), "reason": body},
    )
    return await channel.send(f"{ERROR_PREFIX} {body}")

