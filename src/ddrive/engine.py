"""DriveEngine: wires the client, progress state and orchestration components."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterable, Optional

from ddrive.bulk import BulkOperationExecutor
from ddrive.client import RemoteServiceClient
from ddrive.config import ClientConfig
from ddrive.errors import ConflictError, DDriveError, InvalidArgumentError, user_message
from ddrive.events import CommandDispatcher, NewItemCommand, NewItemKind
from ddrive.models import (
    BulkAction,
    BulkJob,
    LocalFile,
    PreviewHandle,
    RemoteEntry,
    TransferUnit,
)
from ddrive.navigation import BreadcrumbResolver, FolderTree, ListingCache
from ddrive.preview import MediaPreviewLifecycle
from ddrive.progress import (
    EngineState,
    Notifier,
    ProgressAggregator,
    StateListener,
    StateStream,
)
from ddrive.transfer import TransferCoordinator, collect_local_selection

logger = logging.getLogger(__name__)


class DriveEngine:
    """High-level entry point: every user action goes through here."""

    def __init__(self, config: Optional[ClientConfig] = None) -> None:
        config = config or ClientConfig.from_env()
        self._wire(RemoteServiceClient(config), config)

    @classmethod
    def from_client(
        cls,
        client: RemoteServiceClient,
        config: Optional[ClientConfig] = None,
    ) -> "DriveEngine":
        """Create an engine around an injected client (useful for tests)."""
        obj = cls.__new__(cls)
        obj._wire(client, config or client.config)
        return obj

    def _wire(self, client: RemoteServiceClient, config: ClientConfig) -> None:
        self._client = client
        self._config = config
        self._state = StateStream()
        self._notifier = Notifier()
        self._aggregator = ProgressAggregator(self._state, self._notifier, config)
        self._listing = ListingCache(client)
        self._coordinator = TransferCoordinator(client, self._aggregator, self._notifier)
        self._executor = BulkOperationExecutor(
            client,
            self._aggregator,
            self._notifier,
            config,
            listing=self._listing,
        )
        self._preview = MediaPreviewLifecycle(client, self._state)
        self._breadcrumbs = BreadcrumbResolver(
            client,
            max_depth=config.breadcrumb_max_depth,
            state=self._state,
        )
        self._dispatcher = CommandDispatcher()
        self._dispatcher.subscribe(NewItemKind.FOLDER, self._on_new_folder)

    # ----------------------------
    # Components
    # ----------------------------
    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def client(self) -> RemoteServiceClient:
        return self._client

    @property
    def state(self) -> StateStream:
        return self._state

    @property
    def notifier(self) -> Notifier:
        return self._notifier

    @property
    def dispatcher(self) -> CommandDispatcher:
        return self._dispatcher

    @property
    def preview(self) -> MediaPreviewLifecycle:
        return self._preview

    @property
    def listing(self) -> ListingCache:
        return self._listing

    @property
    def aggregator(self) -> ProgressAggregator:
        return self._aggregator

    def current_state(self) -> EngineState:
        return self._state.current()

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        return self._state.subscribe(listener)

    # ----------------------------
    # Navigation
    # ----------------------------
    async def list_directory(
        self,
        parent_id: Optional[str] = None,
        *,
        refresh: bool = False,
    ) -> list[RemoteEntry]:
        return await self._listing.list(parent_id, refresh=refresh)

    async def change_directory(self, directory_id: Optional[str]) -> list[RemoteEntry]:
        """Make directory_id current. Returns its listing; breadcrumbs follow."""
        entries = await self._listing.list(directory_id)
        await self._breadcrumbs.update(directory_id)
        return entries

    async def folder_tree(self) -> FolderTree:
        return FolderTree.from_entries(await self._client.list_all_directories())

    # ----------------------------
    # Create / upload
    # ----------------------------
    async def create_folder(self, name: str, parent_id: Optional[str] = None) -> Optional[RemoteEntry]:
        try:
            entry = await self._client.create_directory(name, parent_id)
        except DDriveError as exc:
            logger.warning("Creating folder %s failed: %s", name, exc)
            self._notifier.error(user_message(exc, "Failed to create folder"))
            return None
        self._listing.invalidate(parent_id)
        self._notifier.success(f"Created folder {entry.name}")
        return entry

    async def upload_files(
        self,
        files: Iterable[LocalFile],
        parent_id: Optional[str] = None,
    ) -> list[TransferUnit]:
        units = await self._coordinator.upload_files(files, parent_id)
        self._listing.invalidate(parent_id)
        return units

    async def upload_folder(
        self,
        selection: Iterable[LocalFile],
        parent_id: Optional[str] = None,
    ) -> Optional[TransferUnit]:
        unit = await self._coordinator.upload_folder(selection, parent_id)
        # New subdirectories may have appeared anywhere below parent_id.
        self._listing.invalidate_all()
        return unit

    async def upload_path(
        self,
        path: Path,
        parent_id: Optional[str] = None,
    ) -> list[TransferUnit]:
        """Upload a local file, or a local directory as one folder group."""
        path = Path(path)
        if path.is_dir():
            unit = await self.upload_folder(collect_local_selection(path), parent_id)
            return [unit] if unit is not None else []
        if path.is_file():
            return await self.upload_files([LocalFile.from_path(path)], parent_id)
        raise InvalidArgumentError("Path does not exist", details={"path": str(path)})

    # ----------------------------
    # Bulk actions
    # ----------------------------
    async def copy(self, entries: Iterable[RemoteEntry]) -> BulkJob:
        return await self._executor.execute(BulkAction.COPY, entries)

    async def delete(self, entries: Iterable[RemoteEntry]) -> BulkJob:
        return await self._executor.execute(BulkAction.DELETE, entries)

    async def move(
        self,
        entries: Iterable[RemoteEntry],
        destination_parent_id: Optional[str],
    ) -> BulkJob:
        """
        Move entries into destination_parent_id (None is the root).

        Raises:
            InvalidArgumentError: if a directory would move into itself or
                one of its descendants.
        """
        entries = list(entries)
        if destination_parent_id is not None and any(e.is_directory for e in entries):
            tree = await self.folder_tree()
            for entry in entries:
                if entry.is_directory and not tree.can_move(entry.entry_id, destination_parent_id):
                    raise InvalidArgumentError(
                        "Cannot move a folder into itself",
                        details={"entry_id": entry.entry_id, "destination": destination_parent_id},
                    )
        return await self._executor.execute(BulkAction.MOVE, entries, destination_parent_id)

    async def rename(self, entry: RemoteEntry, new_name: str) -> Optional[RemoteEntry]:
        """
        Rename one entry.

        On a name conflict the parent listing is refreshed so the caller shows
        what is actually stored, and None is returned.
        """
        try:
            renamed = await self._client.rename_entry(entry.entry_id, new_name)
        except ConflictError as exc:
            logger.info("Rename of %s conflicted: %s", entry.entry_id, exc)
            self._notifier.error(user_message(exc, "Failed to rename"))
            self._listing.invalidate(entry.parent_id)
            try:
                await self._listing.refresh(entry.parent_id)
            except DDriveError as refresh_exc:
                logger.warning("Refreshing listing after conflict failed: %s", refresh_exc)
            return None
        except DDriveError as exc:
            logger.warning("Rename of %s failed: %s", entry.entry_id, exc)
            self._notifier.error(user_message(exc, f"Failed to rename {entry.name}"))
            return None

        self._listing.invalidate(entry.parent_id)
        self._notifier.success(f"Renamed to {renamed.name}")
        return renamed

    # ----------------------------
    # Preview
    # ----------------------------
    async def open_preview(
        self,
        entry: RemoteEntry,
        siblings: Optional[Iterable[RemoteEntry]] = None,
    ) -> Optional[PreviewHandle]:
        if siblings is None:
            siblings = self._listing.cached(entry.parent_id)
        return await self._preview.open(entry, siblings)

    def close_preview(self) -> None:
        self._preview.close()

    # ----------------------------
    # Lifecycle
    # ----------------------------
    async def aclose(self) -> None:
        self._preview.close()
        await self._client.aclose()

    async def __aenter__(self) -> "DriveEngine":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _on_new_folder(self, command: NewItemCommand) -> None:
        if not command.name:
            # Presentation layers prompt for the name themselves.
            return
        await self.create_folder(command.name, command.parent_id)
