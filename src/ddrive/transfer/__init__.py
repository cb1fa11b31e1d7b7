"""Upload orchestration exports for ddrive."""

from __future__ import annotations

from .coordinator import TransferCoordinator
from .folder_resolver import FolderPathResolver, PathResolution
from .selection import (
    base_folder_name,
    collect_local_selection,
    directory_segments,
    filter_selection,
)

__all__ = [
    "TransferCoordinator",
    "FolderPathResolver",
    "PathResolution",
    "collect_local_selection",
    "filter_selection",
    "base_folder_name",
    "directory_segments",
]
