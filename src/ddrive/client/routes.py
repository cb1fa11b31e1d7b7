"""Endpoint paths of the d-drive REST API (relative to ClientConfig.api_url)."""

from __future__ import annotations

from urllib.parse import quote

FILES: str = "/files"
ENTRY: str = "/files/{entry_id}"
DIRECTORY: str = "/files/directory"
UPLOAD_STREAM: str = "/files/upload/stream"
COPY: str = "/files/{entry_id}/copy"
MOVE: str = "/files/{entry_id}/move"
DOWNLOAD: str = "/files/{entry_id}/download"
ALL_FOLDERS: str = "/files/folders/all"


def entry_path(template: str, entry_id: str) -> str:
    """Fill an entry id into a route template (the id is path-escaped)."""
    return template.format(entry_id=quote(entry_id, safe=""))
