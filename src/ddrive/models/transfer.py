"""Transfer progress models (uploads and copies)."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class UnitKind(str, Enum):
    SINGLE_FILE = "single_file"
    FOLDER_GROUP = "folder_group"


class TransferStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TransferStatus.SUCCEEDED, TransferStatus.FAILED)


class TransferOperation(str, Enum):
    UPLOAD = "upload"
    COPY = "copy"


@dataclass(slots=True)
class TransferUnit:
    """
    One observable transfer.

    A SINGLE_FILE unit tracks one upload (bytes) or one copy (chunks).
    A FOLDER_GROUP unit aggregates every file of one folder upload and only
    becomes terminal once remaining_file_count reaches zero.
    """

    unit_id: str
    kind: UnitKind
    name: str

    byte_total: int = 0
    byte_loaded: int = 0
    progress: int = 0
    status: TransferStatus = TransferStatus.PENDING
    operation: TransferOperation = TransferOperation.UPLOAD

    group_key: Optional[str] = None
    remaining_file_count: int = 0
    failed_file_count: int = 0

    def copy(self) -> "TransferUnit":
        return TransferUnit(
            unit_id=self.unit_id,
            kind=self.kind,
            name=self.name,
            byte_total=self.byte_total,
            byte_loaded=self.byte_loaded,
            progress=self.progress,
            status=self.status,
            operation=self.operation,
            group_key=self.group_key,
            remaining_file_count=self.remaining_file_count,
            failed_file_count=self.failed_file_count,
        )
