from __future__ import annotations

import uuid


def new_uuid() -> str:
    """Generate a UUID4 string."""
    return str(uuid.uuid4())


def new_unit_id() -> str:
    """Generate a new TransferUnit ID."""
    return new_uuid()


def new_job_id() -> str:
    """Generate a new BulkJob ID."""
    return new_uuid()


def file_identity(group_key: str | None, relative_path: str, slot: int | None = None) -> str:
    """
    Key used to track the cumulative bytes of one file inside a group.

    slot tells apart queued files that share a relative path.
    """
    key = f"{group_key or 'root'}::{relative_path}"
    return key if slot is None else f"{key}#{slot}"
