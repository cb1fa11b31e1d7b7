"""ProgressAggregator: transfer/job progress bookkeeping and notification de-duplication."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from ddrive.config import ClientConfig
from ddrive.errors import InvalidArgumentError, InvalidStateError
from ddrive.models import (
    BulkJob,
    JobStatus,
    TransferOperation,
    TransferStatus,
    TransferUnit,
    UnitKind,
)
from ddrive.util.ids import new_unit_id

from .notifier import Notifier
from .state import StateStream

logger = logging.getLogger(__name__)


@dataclass
class _GroupBook:
    unit_id: str
    expected_files: int
    settled_files: set[str]
    success_notified: bool = False
    error_notified: bool = False


class ProgressAggregator:
    """
    Single owner of all transfer and bulk-job progress state.

    Every mutation goes through this object; everything it hands out is a
    copy, so observers can never corrupt the bookkeeping. Per-file byte
    counters and per-group notification flags live here and nowhere else.
    """

    def __init__(
        self,
        state: StateStream,
        notifier: Notifier,
        config: Optional[ClientConfig] = None,
    ) -> None:
        self._state = state
        self._notifier = notifier
        self._config = config or ClientConfig()

        self._units: dict[str, TransferUnit] = {}
        self._file_loaded: dict[str, int] = {}
        self._groups: dict[str, _GroupBook] = {}
        self._jobs: dict[str, BulkJob] = {}

    # ----------------------------
    # Read APIs
    # ----------------------------
    def snapshot(self) -> list[TransferUnit]:
        return [unit.copy() for unit in self._units.values()]

    def get(self, unit_id: str) -> Optional[TransferUnit]:
        unit = self._units.get(unit_id)
        return unit.copy() if unit is not None else None

    def get_group(self, group_key: str) -> Optional[TransferUnit]:
        book = self._groups.get(group_key)
        return self.get(book.unit_id) if book is not None else None

    def jobs(self) -> list[BulkJob]:
        return [job.copy() for job in self._jobs.values()]

    # ----------------------------
    # Registration
    # ----------------------------
    def register_single(
        self,
        name: str,
        byte_total: int,
        *,
        operation: TransferOperation = TransferOperation.UPLOAD,
    ) -> TransferUnit:
        unit = TransferUnit(
            unit_id=new_unit_id(),
            kind=UnitKind.SINGLE_FILE,
            name=name,
            byte_total=max(0, byte_total),
            operation=operation,
        )
        self._units[unit.unit_id] = unit
        self._publish()
        return unit.copy()

    def register_group(
        self,
        group_key: str,
        display_name: str,
        byte_total: int,
        file_count: int,
    ) -> TransferUnit:
        if file_count < 1:
            raise InvalidArgumentError(
                "A folder group needs at least one file",
                details={"group_key": group_key},
            )
        if group_key in self._groups:
            raise InvalidStateError(
                "Folder group already registered",
                details={"group_key": group_key},
            )

        unit = TransferUnit(
            unit_id=new_unit_id(),
            kind=UnitKind.FOLDER_GROUP,
            name=display_name,
            byte_total=max(0, byte_total),
            group_key=group_key,
            remaining_file_count=file_count,
        )
        self._units[unit.unit_id] = unit
        self._groups[group_key] = _GroupBook(
            unit_id=unit.unit_id,
            expected_files=file_count,
            settled_files=set(),
        )
        self._publish()
        return unit.copy()

    # ----------------------------
    # Progress
    # ----------------------------
    def report(self, unit_id: str, delta: int) -> None:
        """Add a byte delta to a unit (clamped to its total)."""
        unit = self._live_unit(unit_id)
        if unit is None or delta <= 0:
            return
        loaded = unit.byte_loaded + delta
        if unit.byte_total:
            loaded = min(loaded, unit.byte_total)
        unit.byte_loaded = loaded
        self._raise_progress(unit, _percent(loaded, unit.byte_total))
        self._publish()

    def report_file_progress(
        self,
        group_key: str,
        file_identity: str,
        loaded: int,
    ) -> int:
        """
        Attribute a cumulative byte count of one file to its folder group.

        The delta against the last value recorded for the same file is what
        reaches the group, so many concurrently reporting files sum up
        correctly. Returns the applied delta.
        """
        book = self._groups.get(group_key)
        if book is None:
            raise InvalidStateError("Unknown folder group", details={"group_key": group_key})

        previous = self._file_loaded.get(file_identity, 0)
        delta = loaded - previous
        if delta <= 0:
            return 0
        self._file_loaded[file_identity] = loaded
        self.report(book.unit_id, delta)
        return delta

    def set_progress(self, unit_id: str, percent: int, loaded: Optional[int] = None) -> None:
        """Set a single unit's own percentage (never lowers it)."""
        unit = self._live_unit(unit_id)
        if unit is None:
            return
        if loaded is not None and loaded > unit.byte_loaded:
            unit.byte_loaded = min(loaded, unit.byte_total) if unit.byte_total else loaded
        self._raise_progress(unit, percent)
        self._publish()

    def observe(self, unit_id: str, observed: int) -> None:
        """
        Record an observed absolute count (e.g. chunks seen on a copy).

        Publishes on every observation, even if nothing changed, so pollers
        produce one state per poll.
        """
        unit = self._live_unit(unit_id)
        if unit is None:
            return
        if observed > unit.byte_loaded:
            unit.byte_loaded = min(observed, unit.byte_total) if unit.byte_total else observed
        self._raise_progress(unit, _percent(unit.byte_loaded, unit.byte_total))
        self._publish()

    # ----------------------------
    # Settlement
    # ----------------------------
    def settle(self, unit_id: str, outcome: bool) -> None:
        """Move a single-file unit to its terminal status."""
        unit = self._units.get(unit_id)
        if unit is None:
            raise InvalidStateError("Unknown transfer unit", details={"unit_id": unit_id})
        if unit.kind is UnitKind.FOLDER_GROUP:
            raise InvalidStateError(
                "Folder groups settle per file",
                details={"unit_id": unit_id},
            )
        if unit.status.is_terminal:
            return

        if outcome:
            unit.status = TransferStatus.SUCCEEDED
            unit.progress = 100
            unit.byte_loaded = unit.byte_total
        else:
            unit.status = TransferStatus.FAILED
        self._publish()
        self._schedule_unit_removal(unit_id, self._grace_for(unit))

    def settle_group_file(self, group_key: str, file_identity: str, outcome: bool) -> None:
        """
        Record that one file of a folder group has settled.

        Each file identity counts once. The group becomes terminal only when
        every expected file has settled, whatever the order.
        """
        book = self._groups.get(group_key)
        if book is None:
            raise InvalidStateError("Unknown folder group", details={"group_key": group_key})
        if file_identity in book.settled_files:
            logger.debug("Ignoring repeated settlement of %s", file_identity)
            return
        book.settled_files.add(file_identity)
        self._file_loaded.pop(file_identity, None)

        unit = self._units[book.unit_id]
        unit.remaining_file_count = max(0, unit.remaining_file_count - 1)
        if not outcome:
            unit.failed_file_count += 1
            if not book.error_notified:
                book.error_notified = True
                self._notifier.error("Failed to upload some folder contents", group_key=group_key)
        if unit.status is TransferStatus.PENDING:
            unit.status = TransferStatus.ACTIVE

        if unit.remaining_file_count == 0:
            self._finish_group(group_key, book, unit)
        self._publish()

    def report_group_problem(self, group_key: str, message: str) -> None:
        """Surface a partial failure of a group (shares the single error toast)."""
        book = self._groups.get(group_key)
        if book is None:
            raise InvalidStateError("Unknown folder group", details={"group_key": group_key})
        if book.error_notified:
            return
        book.error_notified = True
        self._notifier.error(message, group_key=group_key)

    def _finish_group(self, group_key: str, book: _GroupBook, unit: TransferUnit) -> None:
        succeeded = book.expected_files - unit.failed_file_count
        if unit.failed_file_count == 0:
            unit.status = TransferStatus.SUCCEEDED
            unit.progress = 100
            unit.byte_loaded = unit.byte_total
        else:
            unit.status = TransferStatus.FAILED

        if not book.success_notified:
            book.success_notified = True
            if unit.failed_file_count:
                message = f"Uploaded {succeeded} of {book.expected_files} files to {unit.name}"
            else:
                message = f"Uploaded {succeeded} files to {unit.name}"
            self._notifier.success(message, group_key=group_key)

        logger.info(
            "Folder upload %s finished: %d ok, %d failed",
            unit.name,
            succeeded,
            unit.failed_file_count,
        )
        self._schedule_unit_removal(unit.unit_id, self._config.folder_upload_grace_sec)

    # ----------------------------
    # Bulk jobs
    # ----------------------------
    def publish_job(self, job: BulkJob) -> None:
        self._jobs[job.job_id] = job.copy()
        self._publish()

    def finish_job(self, job: BulkJob) -> None:
        job.status = JobStatus.FINISHED
        self.publish_job(job)
        self._schedule(self._config.bulk_job_grace_sec, self._remove_job, job.job_id)

    # ----------------------------
    # Internals
    # ----------------------------
    def _live_unit(self, unit_id: str) -> Optional[TransferUnit]:
        unit = self._units.get(unit_id)
        if unit is None or unit.status.is_terminal:
            return None
        if unit.status is TransferStatus.PENDING:
            unit.status = TransferStatus.ACTIVE
        return unit

    def _raise_progress(self, unit: TransferUnit, percent: int) -> None:
        percent = max(0, min(100, percent))
        if percent > unit.progress:
            unit.progress = percent

    def _grace_for(self, unit: TransferUnit) -> float:
        if unit.operation is TransferOperation.COPY:
            return self._config.copy_grace_sec
        return self._config.single_upload_grace_sec

    def _schedule_unit_removal(self, unit_id: str, delay: float) -> None:
        self._schedule(delay, self._remove_unit, unit_id)

    def _schedule(self, delay: float, callback: Callable[[str], None], key: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            callback(key)
            return
        loop.call_later(delay, callback, key)

    def _remove_unit(self, unit_id: str) -> None:
        unit = self._units.pop(unit_id, None)
        if unit is None:
            return
        if unit.group_key is not None:
            self._groups.pop(unit.group_key, None)
        self._publish()

    def _remove_job(self, job_id: str) -> None:
        if self._jobs.pop(job_id, None) is not None:
            self._publish()

    def _publish(self) -> None:
        self._state.update(
            transfers=tuple(self.snapshot()),
            jobs=tuple(self.jobs()),
        )


def _percent(loaded: int, total: int) -> int:
    if total <= 0:
        return 0
    return round(loaded * 100 / total)
