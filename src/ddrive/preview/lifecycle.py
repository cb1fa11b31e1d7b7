"""MediaPreviewLifecycle: one in-flight fetch and one live handle per viewer."""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Iterable, Optional

from ddrive.client import RemoteServiceClient
from ddrive.errors import DDriveError, InvalidArgumentError, user_message
from ddrive.models import (
    HandleKind,
    MediaKind,
    PreviewHandle,
    PreviewSnapshot,
    PreviewState,
    RemoteEntry,
)
from ddrive.progress import StateStream
from ddrive.util.mime import classify_media, extension_of, is_previewable

logger = logging.getLogger(__name__)


class MediaPreviewLifecycle:
    """
    Viewer state machine: CLOSED -> LOADING -> READY | ERRORED.

    Every transition away from READY revokes the current handle, and every
    new open/next/prev cancels the fetch still in flight. Videos are not
    downloaded; they resolve to an authenticated URL the player can stream
    with range requests.
    """

    def __init__(
        self,
        client: RemoteServiceClient,
        state: Optional[StateStream] = None,
        *,
        temp_dir: Optional[Path] = None,
    ) -> None:
        self._client = client
        self._state = state
        self._temp_dir = temp_dir

        self._status = PreviewState.CLOSED
        self._siblings: list[RemoteEntry] = []
        self._index = 0
        self._handle: Optional[PreviewHandle] = None
        self._task: Optional[asyncio.Task[PreviewHandle]] = None
        self._error: Optional[str] = None

    # ----------------------------
    # Read APIs
    # ----------------------------
    @property
    def state(self) -> PreviewState:
        return self._status

    @property
    def handle(self) -> Optional[PreviewHandle]:
        return self._handle

    @property
    def current_entry(self) -> Optional[RemoteEntry]:
        if self._status is PreviewState.CLOSED or not self._siblings:
            return None
        return self._siblings[self._index]

    def snapshot(self) -> PreviewSnapshot:
        entry = self.current_entry
        return PreviewSnapshot(
            state=self._status,
            entry_id=entry.entry_id if entry is not None else None,
            index=self._index if entry is not None else 0,
            count=len(self._siblings),
            handle=self._handle,
            error=self._error,
        )

    # ----------------------------
    # Transitions
    # ----------------------------
    async def open(
        self,
        entry: RemoteEntry,
        siblings: Optional[Iterable[RemoteEntry]] = None,
    ) -> Optional[PreviewHandle]:
        """
        Open entry within an ordered sibling list.

        Returns the ready handle, or None if the load errored or was
        superseded by another open/next/prev/close.
        """
        self._siblings = _previewable_siblings(entry, siblings)
        self._index = next(
            i for i, e in enumerate(self._siblings) if e.entry_id == entry.entry_id
        )
        return await self._load(self._siblings[self._index])

    async def next(self) -> Optional[PreviewHandle]:
        return await self._step(1)

    async def prev(self) -> Optional[PreviewHandle]:
        return await self._step(-1)

    def close(self) -> None:
        """Cancel any fetch, revoke the handle and return to CLOSED."""
        self._cancel_inflight()
        self._release_handle()
        self._status = PreviewState.CLOSED
        self._siblings = []
        self._index = 0
        self._error = None
        self._publish()

    # ----------------------------
    # Internals
    # ----------------------------
    async def _step(self, offset: int) -> Optional[PreviewHandle]:
        if self._status is PreviewState.CLOSED or not self._siblings:
            return None
        target = max(0, min(len(self._siblings) - 1, self._index + offset))
        if target == self._index:
            return self._handle
        self._index = target
        return await self._load(self._siblings[target])

    async def _load(self, entry: RemoteEntry) -> Optional[PreviewHandle]:
        self._cancel_inflight()
        self._release_handle()
        self._status = PreviewState.LOADING
        self._error = None
        self._publish()

        task = asyncio.create_task(self._acquire(entry))
        self._task = task
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            raise

        if self._task is not task:
            # Superseded while loading; a handle that still got created is not ours to keep.
            if not task.cancelled() and task.exception() is None:
                task.result().revoke()
            logger.debug("Preview of %s superseded", entry.entry_id)
            return None
        self._task = None

        if task.cancelled():
            return None
        exc = task.exception()
        if exc is not None:
            if not isinstance(exc, (DDriveError, OSError)):
                raise exc
            logger.warning("Preview of %s failed: %s", entry.entry_id, exc)
            self._status = PreviewState.ERRORED
            self._error = user_message(exc, "Failed to load preview")
            self._publish()
            return None

        self._handle = task.result()
        self._status = PreviewState.READY
        self._publish()
        return self._handle

    async def _acquire(self, entry: RemoteEntry) -> PreviewHandle:
        media_kind = classify_media(entry.name, entry.mime_type)
        if media_kind is MediaKind.UNSUPPORTED:
            raise InvalidArgumentError(
                "Preview is not available for this file type",
                details={"entry_id": entry.entry_id, "server_message": True},
            )
        if media_kind is MediaKind.VIDEO:
            return PreviewHandle(
                entry_id=entry.entry_id,
                resource_url=self._client.direct_download_url(entry.entry_id, inline=True),
                kind=HandleKind.DIRECT_URL,
                media_kind=media_kind,
            )

        extra_params = None
        if media_kind is MediaKind.PDF:
            extra_params = {"cacheBust": str(time.time_ns())}
        path = await self._download_to_temp(entry, extra_params)
        return PreviewHandle(
            entry_id=entry.entry_id,
            resource_url=path.as_uri(),
            kind=HandleKind.OBJECT_URL,
            media_kind=media_kind,
            _release=lambda: path.unlink(missing_ok=True),
        )

    async def _download_to_temp(
        self,
        entry: RemoteEntry,
        extra_params: Optional[dict[str, str]],
    ) -> Path:
        ext = extension_of(entry.name)
        fd, name = tempfile.mkstemp(
            prefix="ddrive-preview-",
            suffix=f".{ext}" if ext else "",
            dir=self._temp_dir,
        )
        path = Path(name)
        completed = False
        try:
            with os.fdopen(fd, "wb") as fh:
                async for chunk in self._client.iter_download(
                    entry.entry_id,
                    inline=True,
                    extra_params=extra_params,
                ):
                    fh.write(chunk)
            completed = True
        finally:
            if not completed:
                path.unlink(missing_ok=True)
        return path.resolve()

    def _cancel_inflight(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()

    def _release_handle(self) -> None:
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.revoke()

    def _publish(self) -> None:
        if self._state is not None:
            self._state.update(preview=self.snapshot())


def _previewable_siblings(
    entry: RemoteEntry,
    siblings: Optional[Iterable[RemoteEntry]],
) -> list[RemoteEntry]:
    """Previewable files of the listing, with the opened entry always present."""
    if siblings is None:
        return [entry]
    files = [
        e for e in siblings
        if e.is_file and is_previewable(e.name, e.mime_type)
    ]
    if not any(e.entry_id == entry.entry_id for e in files):
        files.append(entry)
    return files
