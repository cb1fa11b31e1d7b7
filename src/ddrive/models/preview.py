"""Preview handle models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional


class MediaKind(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    PDF = "pdf"
    TEXT = "text"
    UNSUPPORTED = "unsupported"


class HandleKind(str, Enum):
    OBJECT_URL = "object-url"
    DIRECT_URL = "direct-url"


class PreviewState(str, Enum):
    CLOSED = "closed"
    LOADING = "loading"
    READY = "ready"
    ERRORED = "errored"


def _noop() -> None:
    return None


@dataclass(slots=True, eq=False)
class PreviewHandle:
    """
    A revocable reference to a locally renderable resource.

    revoke() releases the resource exactly once; later calls are ignored.
    """

    entry_id: str
    resource_url: str
    kind: HandleKind
    media_kind: MediaKind
    _release: Callable[[], None] = field(default=_noop, repr=False)
    _revoked: bool = field(default=False, repr=False)

    @property
    def revoked(self) -> bool:
        return self._revoked

    def revoke(self) -> None:
        if self._revoked:
            return
        self._revoked = True
        self._release()


@dataclass(slots=True, frozen=True)
class PreviewSnapshot:
    """Read-only view of a viewer for presentation layers."""

    state: PreviewState
    entry_id: Optional[str] = None
    index: int = 0
    count: int = 0
    handle: Optional[PreviewHandle] = None
    error: Optional[str] = None
