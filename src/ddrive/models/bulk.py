"""Bulk job models (copy / move / delete over a selection)."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class BulkAction(str, Enum):
    COPY = "copy"
    MOVE = "move"
    DELETE = "delete"


class JobStatus(str, Enum):
    RUNNING = "running"
    FINISHED = "finished"


@dataclass(slots=True, frozen=True)
class BulkItem:
    """One unit of work inside a BulkJob."""

    entry_id: str
    name: str
    work_units: int = 1
    is_directory: bool = False


@dataclass(slots=True)
class BulkJob:
    """
    Progress of one bulk action.

    completed_work_units never decreases and never exceeds total_work_units.
    """

    job_id: str
    action: BulkAction
    items: list[BulkItem] = field(default_factory=list)

    total_work_units: int = 0
    completed_work_units: int = 0
    failed_count: int = 0
    current_item_name: Optional[str] = None
    status: JobStatus = JobStatus.RUNNING

    @property
    def total_item_count(self) -> int:
        return len(self.items)

    @property
    def succeeded_count(self) -> int:
        return self.total_item_count - self.failed_count

    @property
    def progress(self) -> int:
        if self.total_work_units <= 0:
            return 100 if self.status is JobStatus.FINISHED else 0
        return round(self.completed_work_units * 100 / self.total_work_units)

    def advance(self, units: int) -> None:
        """Advance completed work, clamped to the total."""
        if units <= 0:
            return
        self.completed_work_units = min(
            self.completed_work_units + units, self.total_work_units
        )

    def copy(self) -> "BulkJob":
        return BulkJob(
            job_id=self.job_id,
            action=self.action,
            items=list(self.items),
            total_work_units=self.total_work_units,
            completed_work_units=self.completed_work_units,
            failed_count=self.failed_count,
            current_item_name=self.current_item_name,
            status=self.status,
        )
