"""Data model for remote drive entries."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class EntryKind(str, Enum):
    """Remote entry types as reported by the server."""

    FILE = "FILE"
    DIRECTORY = "DIRECTORY"


@dataclass(slots=True)
class RemoteEntry:
    """
    Represents a file or directory stored on the remote drive.

    Notes:
        - entry_id is assigned by the server and is the only identity.
        - parent_id is a lookup-only back reference (None for root level).
        - chunk_count is only known for stat responses; listings omit it.
    """

    entry_id: str
    name: str
    kind: EntryKind

    size_bytes: int = 0
    mime_type: Optional[str] = None
    parent_id: Optional[str] = None
    path: Optional[str] = None
    starred: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    chunk_count: Optional[int] = None

    @property
    def is_directory(self) -> bool:
        return self.kind is EntryKind.DIRECTORY

    @property
    def is_file(self) -> bool:
        return self.kind is EntryKind.FILE
