"""BreadcrumbResolver: ancestor chain of the current directory."""

from __future__ import annotations

import logging
from typing import Optional

from ddrive.client import RemoteServiceClient
from ddrive.errors import DDriveError
from ddrive.models import RemoteEntry
from ddrive.progress import StateStream

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 50


class BreadcrumbResolver:
    """
    Rebuilds the root-first ancestor chain by following parent ids.

    The walk stops at a root entry, at an id already in the chain (cycle) or
    after max_depth parent fetches. A failed fetch truncates the chain at the
    last ancestor that did resolve.
    """

    def __init__(
        self,
        client: RemoteServiceClient,
        *,
        max_depth: int = DEFAULT_MAX_DEPTH,
        state: Optional[StateStream] = None,
    ) -> None:
        self._client = client
        self._max_depth = max_depth
        self._state = state
        self._current_id: Optional[str] = None
        self._chain: Optional[list[RemoteEntry]] = None

    @property
    def chain(self) -> list[RemoteEntry]:
        return list(self._chain or [])

    async def build_chain(self, current_entry: RemoteEntry) -> list[RemoteEntry]:
        crumbs = [current_entry]
        seen = {current_entry.entry_id}
        current = current_entry
        depth = 0

        while current.parent_id and depth < self._max_depth:
            depth += 1
            if current.parent_id in seen:
                logger.warning("Parent cycle detected at %s", current.parent_id)
                break
            try:
                parent = await self._client.get_entry(current.parent_id)
            except DDriveError as exc:
                logger.warning("Could not fetch ancestor %s: %s", current.parent_id, exc)
                break
            if parent.entry_id in seen:
                logger.warning("Parent cycle detected at %s", parent.entry_id)
                break
            crumbs.append(parent)
            seen.add(parent.entry_id)
            current = parent

        crumbs.reverse()
        return crumbs

    async def update(self, directory_id: Optional[str]) -> list[RemoteEntry]:
        """
        Rebuild the chain when the current directory changed.

        A result that arrives after the directory changed again is dropped.
        """
        if self._chain is not None and directory_id == self._current_id:
            return self.chain

        self._current_id = directory_id
        if directory_id is None:
            chain: list[RemoteEntry] = []
        else:
            try:
                current = await self._client.get_entry(directory_id)
            except DDriveError as exc:
                logger.warning("Could not fetch current directory %s: %s", directory_id, exc)
                current = None
            chain = await self.build_chain(current) if current is not None else []

        if directory_id != self._current_id:
            return chain

        self._chain = chain
        if self._state is not None:
            self._state.update(breadcrumbs=tuple(chain))
        return list(chain)
