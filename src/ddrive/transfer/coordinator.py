"""TransferCoordinator: drives single uploads and folder batches."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Optional

from ddrive.client import RemoteServiceClient
from ddrive.errors import DDriveError, InvalidStateError, user_message
from ddrive.models import LocalFile, TransferStatus, TransferUnit
from ddrive.progress import Notifier, ProgressAggregator
from ddrive.util.ids import file_identity, new_uuid

from .folder_resolver import FolderPathResolver
from .selection import base_folder_name, directory_segments, filter_selection

logger = logging.getLogger(__name__)


class TransferCoordinator:
    """
    Issues upload requests and attributes their progress to transfer units.

    Policy:
        - No automatic retry: a failed upload may already be partially
          stored server-side, so retrying is left to the user.
        - A unit is terminal only once its request has settled; folder groups
          only once every queued file has settled.
    """

    def __init__(
        self,
        client: RemoteServiceClient,
        aggregator: ProgressAggregator,
        notifier: Notifier,
    ) -> None:
        self._client = client
        self._aggregator = aggregator
        self._notifier = notifier

    async def start_upload(
        self,
        local_file: LocalFile,
        destination_parent_id: Optional[str],
        group_key: Optional[str] = None,
    ) -> TransferUnit:
        """
        Upload one file.

        Without group_key the file gets its own unit reporting its own
        percentage. With group_key the file's bytes feed the folder group.

        Returns:
            The unit's state right after settlement (the group unit for
            grouped files).
        """
        if group_key is None:
            return await self._upload_single(local_file, destination_parent_id)
        return await self._upload_grouped(local_file, destination_parent_id, group_key)

    async def upload_files(
        self,
        files: Iterable[LocalFile],
        parent_id: Optional[str],
    ) -> list[TransferUnit]:
        """Upload independent files concurrently, one unit each."""
        return list(await asyncio.gather(*(self._upload_single(f, parent_id) for f in files)))

    async def upload_folder(
        self,
        selection: Iterable[LocalFile],
        parent_id: Optional[str],
    ) -> Optional[TransferUnit]:
        """
        Upload a folder selection as one FolderGroup.

        Directories are resolved one file at a time (existing ones reused),
        then each file upload runs as its own task. Returns None when the
        selection holds nothing uploadable.
        """
        files = filter_selection(selection)
        if not files:
            logger.info("Folder selection is empty after filtering; nothing to upload")
            return None

        display_name = base_folder_name(files) or "Root"
        group_key = f"{display_name}:{new_uuid()}"
        total_bytes = sum(f.size for f in files)
        group = self._aggregator.register_group(group_key, display_name, total_bytes, len(files))
        logger.info("Uploading folder %s: %d files, %d bytes", display_name, len(files), total_bytes)

        resolver = FolderPathResolver(self._client)
        tasks: list[asyncio.Task[TransferUnit]] = []
        for slot, local_file in enumerate(files):
            resolution = await resolver.resolve_path(parent_id, directory_segments(local_file))
            if not resolution.complete:
                self._aggregator.report_group_problem(
                    group_key,
                    f"Could not create folder {resolution.failed_segment}; "
                    "some files were uploaded to a parent folder",
                )
            tasks.append(
                asyncio.create_task(
                    self._upload_grouped(
                        local_file, resolution.directory_id, group_key, slot
                    )
                )
            )

        await asyncio.gather(*tasks)
        return self._final_state(group)

    # ----------------------------
    # Internals
    # ----------------------------
    async def _upload_single(
        self,
        local_file: LocalFile,
        parent_id: Optional[str],
    ) -> TransferUnit:
        unit = self._aggregator.register_single(local_file.name, local_file.size)

        def on_progress(sent: int, total: int) -> None:
            percent = round(sent * 100 / total) if total else 0
            self._aggregator.set_progress(
                unit.unit_id,
                percent,
                loaded=_file_bytes(local_file, sent, total),
            )

        try:
            entry = await self._client.upload_file(local_file, parent_id, on_progress)
        except (DDriveError, OSError) as exc:
            logger.warning("Upload of %s failed: %s", local_file.relative_path, exc)
            self._aggregator.settle(unit.unit_id, False)
            self._notifier.error(user_message(exc, f"Failed to upload {local_file.name}"))
            return self._final_state(unit, TransferStatus.FAILED)

        logger.debug("Uploaded %s as %s", local_file.relative_path, entry.entry_id)
        self._aggregator.settle(unit.unit_id, True)
        return self._final_state(unit, TransferStatus.SUCCEEDED)

    async def _upload_grouped(
        self,
        local_file: LocalFile,
        parent_id: Optional[str],
        group_key: str,
        slot: Optional[int] = None,
    ) -> TransferUnit:
        group = self._aggregator.get_group(group_key)
        if group is None:
            raise InvalidStateError("Unknown folder group", details={"group_key": group_key})
        identity = file_identity(group_key, local_file.relative_path, slot)

        def on_progress(sent: int, total: int) -> None:
            self._aggregator.report_file_progress(
                group_key,
                identity,
                _file_bytes(local_file, sent, total),
            )

        outcome = True
        try:
            await self._client.upload_file(local_file, parent_id, on_progress)
        except (DDriveError, OSError) as exc:
            logger.warning("Upload of %s failed: %s", local_file.relative_path, exc)
            outcome = False

        self._aggregator.settle_group_file(group_key, identity, outcome)
        return self._final_state(group)

    def _final_state(
        self,
        unit: TransferUnit,
        status: Optional[TransferStatus] = None,
    ) -> TransferUnit:
        current = self._aggregator.get(unit.unit_id)
        if current is not None:
            return current
        # Already removed after a zero grace period.
        fallback = unit.copy()
        if status is not None:
            fallback.status = status
        return fallback


def _file_bytes(local_file: LocalFile, sent: int, total: int) -> int:
    """Scale request body bytes to file bytes (the body adds multipart framing)."""
    if total <= 0:
        return 0
    return min(local_file.size, local_file.size * sent // total)
