"""Helpers to turn a local folder pick into a flat upload selection."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from ddrive.errors import InvalidArgumentError
from ddrive.models import LocalFile
from ddrive.util.mime import is_os_metadata


def collect_local_selection(root: Path) -> list[LocalFile]:
    """
    Build a selection from a local directory.

    Relative paths start with the directory's own name, the same shape a
    browser folder picker produces ("Photos/2024/a.jpg").
    """
    root = Path(root)
    if not root.is_dir():
        raise InvalidArgumentError("root must be a directory", details={"root": str(root)})

    files: list[LocalFile] = []
    for path in sorted(root.rglob("*")):
        if not path.is_file():
            continue
        rel = f"{root.name}/{path.relative_to(root).as_posix()}"
        files.append(LocalFile.from_path(path, relative_path=rel))
    return filter_selection(files)


def filter_selection(files: Iterable[LocalFile]) -> list[LocalFile]:
    """Drop OS metadata files (.DS_Store and other dot-files)."""
    return [f for f in files if not is_os_metadata(f.name)]


def base_folder_name(files: list[LocalFile]) -> str:
    """Top-level folder of a selection, or '' for a flat pick."""
    if not files:
        return ""
    segments = files[0].segments
    return segments[0] if len(segments) > 1 else ""


def directory_segments(local_file: LocalFile) -> list[str]:
    """Directory part of the relative path (including the base folder)."""
    return local_file.segments[:-1]
