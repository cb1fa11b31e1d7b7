"""Public model exports for ddrive."""

from __future__ import annotations

from .bulk import BulkAction, BulkItem, BulkJob, JobStatus
from .entry import EntryKind, RemoteEntry
from .local_file import LocalFile
from .notifications import Notification, NotificationLevel
from .preview import HandleKind, MediaKind, PreviewHandle, PreviewSnapshot, PreviewState
from .transfer import TransferOperation, TransferStatus, TransferUnit, UnitKind

__all__ = [
    "EntryKind",
    "RemoteEntry",
    "LocalFile",
    "UnitKind",
    "TransferStatus",
    "TransferOperation",
    "TransferUnit",
    "BulkAction",
    "BulkItem",
    "BulkJob",
    "JobStatus",
    "MediaKind",
    "HandleKind",
    "PreviewState",
    "PreviewHandle",
    "PreviewSnapshot",
    "Notification",
    "NotificationLevel",
]
