"""Short-lived text archives served over the runtime web server."""

from __future__ import annotations

from .store import Archive, ArchiveStore

__all__ = ["Archive", "ArchiveStore"]
