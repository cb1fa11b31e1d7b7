"""FolderPathResolver: map a relative directory path onto remote directories."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from ddrive.client import RemoteServiceClient
from ddrive.errors import DDriveError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PathResolution:
    """
    Outcome of resolving one relative path.

    directory_id is the deepest directory reached (None means drive root).
    When complete is False, failed_segment could not be created and
    directory_id is its parent.
    """

    directory_id: Optional[str]
    complete: bool
    failed_segment: Optional[str] = None


class FolderPathResolver:
    """
    Walks a path segment by segment, reusing existing remote directories by
    name and creating only the missing ones.

    One resolver is meant to serve one folder batch: resolved (parent, name)
    pairs are remembered, so each directory is listed/created at most once
    per batch. Resolutions are serialized so concurrent callers cannot
    create the same directory twice.
    """

    def __init__(self, client: RemoteServiceClient) -> None:
        self._client = client
        self._resolved: dict[tuple[Optional[str], str], str] = {}
        self._lock = asyncio.Lock()

    async def resolve(
        self,
        base_parent_id: Optional[str],
        segments: Sequence[str],
    ) -> Optional[str]:
        """Return the id of the directory for segments under base_parent_id."""
        resolution = await self.resolve_path(base_parent_id, segments)
        return resolution.directory_id

    async def resolve_path(
        self,
        base_parent_id: Optional[str],
        segments: Sequence[str],
    ) -> PathResolution:
        async with self._lock:
            current = base_parent_id
            for segment in _clean_segments(segments):
                key = (current, segment)
                known = self._resolved.get(key)
                if known is not None:
                    current = known
                    continue

                found = await self._find_directory(current, segment)
                if found is None:
                    try:
                        created = await self._client.create_directory(segment, current)
                    except DDriveError as exc:
                        logger.warning(
                            "Could not create directory %r under %s: %s",
                            segment,
                            current or "root",
                            exc,
                        )
                        return PathResolution(current, complete=False, failed_segment=segment)
                    logger.debug("Created directory %r (%s)", segment, created.entry_id)
                    found = created.entry_id

                self._resolved[key] = found
                current = found

            return PathResolution(current, complete=True)

    async def _find_directory(self, parent_id: Optional[str], name: str) -> Optional[str]:
        try:
            children = await self._client.list_children(parent_id)
        except DDriveError as exc:
            # Treat as absent; creation is attempted next.
            logger.warning("Listing %s failed, assuming %r is absent: %s", parent_id or "root", name, exc)
            return None

        for child in children:
            if child.is_directory and child.name == name:
                return child.entry_id
        return None


def _clean_segments(segments: Sequence[str]) -> list[str]:
    return [s for s in segments if s and s not in (".", "..")]
