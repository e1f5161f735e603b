"""In-memory archive store with per-entry expiry."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

log = logging.getLogger("modbot.archives")

ARCHIVE_PURGE_INTERVAL_SEC = 15 * 60


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Archive:
    id: str
    body: str
    created_at: datetime
    expires_at: Optional[datetime]

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now


class ArchiveStore:
    """Keeps exported text in process memory until it expires."""

    def __init__(self, *, clock: Callable[[], datetime] = _utc_now) -> None:
        self._clock = clock
        self._archives: Dict[str, Archive] = {}

    def __len__(self) -> int:
        return len(self._archives)

    async def create(self, body: str, expires_at: Optional[datetime] = None) -> str:
        archive_id = str(uuid.uuid4())
        self._archives[archive_id] = Archive(
            id=archive_id,
            body=body,
            created_at=self._clock(),
            expires_at=expires_at,
        )
        log.info(
            "archive created",
            extra={
                "archive_id": archive_id,
                "bytes": len(body.encode("utf-8")),
                "expires_at": expires_at.isoformat() if expires_at else None,
            },
        )
        return archive_id

    def get(self, archive_id: str) -> Optional[Archive]:
        archive = self._archives.get(archive_id)
        if archive is None:
            return None
        if archive.is_expired(self._clock()):
            self._archives.pop(archive_id, None)
            return None
        return archive

    @staticmethod
    def get_url(base_url: str, archive_id: str) -> str:
        return f"{base_url.rstrip('/')}/archives/{archive_id}"

    def purge_expired(self) -> int:
        now = self._clock()
        expired = [key for key, archive in self._archives.items() if archive.is_expired(now)]
        for key in expired:
            del self._archives[key]
        if expired:
            log.info("expired archives purged", extra={"count": len(expired)})
        return len(expired)


def render_archive(archive: Archive) -> str:
    """Return the archive body with a footer stating when it expires."""

    if archive.expires_at is None:
        return archive.body
    stamp = archive.expires_at.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
    return f"{archive.body}\n\n-------------\n\nThis archive expires at {stamp}"
