"""Client-side selection items (files picked for upload)."""

from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional


@dataclass(slots=True, frozen=True)
class LocalFile:
    """
    One selected file.

    relative_path uses '/' separators and encodes the virtual directory tree
    of a folder selection ("Photos/2024/a.jpg"); for a plain file pick it is
    just the file name. Content comes from either path or data.
    """

    relative_path: str
    size: int
    path: Optional[Path] = None
    data: Optional[bytes] = None
    mime_type: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.relative_path or not self.relative_path.strip("/"):
            raise ValueError("LocalFile.relative_path must be a non-empty string")
        if (self.path is None) == (self.data is None):
            raise ValueError("LocalFile requires exactly one of path or data")
        if self.size < 0:
            raise ValueError("LocalFile.size must not be negative")

    @classmethod
    def from_path(cls, path: Path, relative_path: Optional[str] = None) -> "LocalFile":
        path = Path(path)
        return cls(
            relative_path=relative_path or path.name,
            size=path.stat().st_size,
            path=path,
        )

    @classmethod
    def from_bytes(cls, relative_path: str, data: bytes) -> "LocalFile":
        return cls(relative_path=relative_path, size=len(data), data=data)

    @property
    def segments(self) -> list[str]:
        return [s for s in self.relative_path.split("/") if s]

    @property
    def name(self) -> str:
        return self.segments[-1]

    def open(self) -> BinaryIO:
        if self.data is None:
            return self.path.open("rb")
        return io.BytesIO(self.data)
