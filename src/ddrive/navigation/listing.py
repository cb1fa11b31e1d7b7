"""ListingCache: per-directory listings with explicit invalidation."""

from __future__ import annotations

import logging
from typing import Optional

from ddrive.client import RemoteServiceClient
from ddrive.models import RemoteEntry

logger = logging.getLogger(__name__)


class ListingCache:
    """
    Caches directory listings keyed by parent id (None is the drive root).

    Entries are only dropped through invalidate()/invalidate_all(); callers
    that change remote state are responsible for invalidating what they
    touched.
    """

    def __init__(self, client: RemoteServiceClient) -> None:
        self._client = client
        self._listings: dict[Optional[str], list[RemoteEntry]] = {}

    async def list(self, parent_id: Optional[str] = None, *, refresh: bool = False) -> list[RemoteEntry]:
        if not refresh and parent_id in self._listings:
            return list(self._listings[parent_id])
        return await self.refresh(parent_id)

    async def refresh(self, parent_id: Optional[str] = None) -> list[RemoteEntry]:
        entries = await self._client.list_children(parent_id)
        self._listings[parent_id] = entries
        return list(entries)

    def cached(self, parent_id: Optional[str] = None) -> Optional[list[RemoteEntry]]:
        listing = self._listings.get(parent_id)
        return list(listing) if listing is not None else None

    def find(self, entry_id: str) -> Optional[RemoteEntry]:
        """Look an entry up in any cached listing (no remote call)."""
        for listing in self._listings.values():
            for entry in listing:
                if entry.entry_id == entry_id:
                    return entry
        return None

    def invalidate(self, parent_id: Optional[str] = None) -> None:
        if self._listings.pop(parent_id, None) is not None:
            logger.debug("Invalidated listing of %s", parent_id or "root")

    def invalidate_all(self) -> None:
        self._listings.clear()
