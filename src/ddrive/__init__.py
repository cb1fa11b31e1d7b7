"""ddrive public API."""

from __future__ import annotations

from ddrive.bulk import BulkOperationExecutor
from ddrive.client import RemoteServiceClient
from ddrive.config import ClientConfig
from ddrive.engine import DriveEngine
from ddrive.errors import (
    ApiError,
    AuthError,
    ConflictError,
    DDriveError,
    HttpErrorInfo,
    InvalidArgumentError,
    InvalidStateError,
    NetworkError,
    NotFoundError,
    PermissionError,
    RateLimitError,
    map_http_error,
    user_message,
)
from ddrive.events import CommandDispatcher, NewItemCommand, NewItemKind
from ddrive.models import (
    BulkAction,
    BulkItem,
    BulkJob,
    EntryKind,
    JobStatus,
    LocalFile,
    MediaKind,
    Notification,
    NotificationLevel,
    PreviewHandle,
    PreviewSnapshot,
    PreviewState,
    RemoteEntry,
    TransferOperation,
    TransferStatus,
    TransferUnit,
    UnitKind,
)
from ddrive.navigation import BreadcrumbResolver, FolderTree, ListingCache
from ddrive.preview import MediaPreviewLifecycle
from ddrive.progress import EngineState, Notifier, ProgressAggregator, StateStream
from ddrive.transfer import FolderPathResolver, TransferCoordinator, collect_local_selection
from ddrive.util import classify_media, configure_logging

__all__ = [
    # High-level
    "DriveEngine",
    "ClientConfig",
    "RemoteServiceClient",
    # Components
    "TransferCoordinator",
    "FolderPathResolver",
    "ProgressAggregator",
    "BulkOperationExecutor",
    "MediaPreviewLifecycle",
    "BreadcrumbResolver",
    "FolderTree",
    "ListingCache",
    "CommandDispatcher",
    "StateStream",
    "EngineState",
    "Notifier",
    # Models
    "RemoteEntry",
    "EntryKind",
    "LocalFile",
    "TransferUnit",
    "UnitKind",
    "TransferStatus",
    "TransferOperation",
    "BulkAction",
    "BulkItem",
    "BulkJob",
    "JobStatus",
    "MediaKind",
    "PreviewHandle",
    "PreviewSnapshot",
    "PreviewState",
    "Notification",
    "NotificationLevel",
    "NewItemCommand",
    "NewItemKind",
    # Helpers
    "collect_local_selection",
    "classify_media",
    "configure_logging",
    # Errors
    "DDriveError",
    "InvalidStateError",
    "AuthError",
    "PermissionError",
    "InvalidArgumentError",
    "NotFoundError",
    "ConflictError",
    "RateLimitError",
    "NetworkError",
    "ApiError",
    "HttpErrorInfo",
    "map_http_error",
    "user_message",
]
