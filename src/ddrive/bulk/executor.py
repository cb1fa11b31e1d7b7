"""BulkOperationExecutor: copy / move / delete over a selection with work-unit progress."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Iterable, Optional

from ddrive.client import RemoteServiceClient
from ddrive.config import ClientConfig
from ddrive.errors import DDriveError, InvalidArgumentError
from ddrive.models import (
    BulkAction,
    BulkItem,
    BulkJob,
    RemoteEntry,
    TransferOperation,
)
from ddrive.navigation import ListingCache
from ddrive.progress import Notifier, ProgressAggregator
from ddrive.util.ids import new_job_id

logger = logging.getLogger(__name__)

_VERBS = {
    BulkAction.COPY: "copied",
    BulkAction.MOVE: "moved",
    BulkAction.DELETE: "deleted",
}


@dataclass
class _Plan:
    items: list[BulkItem]
    expected_chunks: dict[str, int] = field(default_factory=dict)
    touched_parents: set[Optional[str]] = field(default_factory=set)


class BulkOperationExecutor:
    """
    Runs one bulk action to completion while publishing BulkJob snapshots.

    Policy:
        - Items run strictly one after another, in selection order.
        - A failing item is counted and its weight still completes, so a
          finished job always reports completed == total.
        - Delete removes every file individually (non-recursive) before the
          selected directories are removed recursively.
    """

    def __init__(
        self,
        client: RemoteServiceClient,
        aggregator: ProgressAggregator,
        notifier: Notifier,
        config: Optional[ClientConfig] = None,
        listing: Optional[ListingCache] = None,
    ) -> None:
        self._client = client
        self._aggregator = aggregator
        self._notifier = notifier
        self._config = config or client.config
        self._listing = listing

    async def execute(
        self,
        action: BulkAction,
        entries: Iterable[RemoteEntry],
        destination_parent_id: Optional[str] = None,
    ) -> BulkJob:
        """
        Run action over entries.

        destination_parent_id is the move target (None moves to the root)
        and is ignored for copy and delete.
        """
        action = BulkAction(action)
        selected = _dedupe(entries)
        if not selected:
            raise InvalidArgumentError("Nothing selected", details={"action": action.value})

        if action is BulkAction.DELETE:
            plan = await self._plan_delete(selected)
        elif action is BulkAction.COPY:
            plan = await self._plan_copy(selected)
        else:
            plan = _Plan(items=[_item(e, 1) for e in selected])
            plan.touched_parents.add(destination_parent_id)
        plan.touched_parents.update(e.parent_id for e in selected)

        job = BulkJob(
            job_id=new_job_id(),
            action=action,
            items=plan.items,
            total_work_units=sum(i.work_units for i in plan.items),
        )
        self._aggregator.publish_job(job)
        logger.info(
            "Bulk %s started: %d items, %d work units",
            action.value,
            job.total_item_count,
            job.total_work_units,
        )

        for item in plan.items:
            job.current_item_name = item.name
            self._aggregator.publish_job(job)
            start = job.completed_work_units
            try:
                if action is BulkAction.DELETE:
                    await self._client.delete_entry(item.entry_id, recursive=item.is_directory)
                elif action is BulkAction.MOVE:
                    await self._client.move_entry(item.entry_id, destination_parent_id)
                else:
                    await self._copy_one(job, item, plan.expected_chunks.get(item.entry_id, 1))
            except DDriveError as exc:
                logger.warning("Bulk %s of %s failed: %s", action.value, item.name, exc)
                job.failed_count += 1
            job.advance(start + item.work_units - job.completed_work_units)
            self._aggregator.publish_job(job)

        job.current_item_name = None
        self._aggregator.finish_job(job)
        self._notify_outcome(job)
        self._invalidate(plan.touched_parents)
        return job.copy()

    # ----------------------------
    # Planning
    # ----------------------------
    async def _plan_copy(self, selected: list[RemoteEntry]) -> _Plan:
        plan = _Plan(items=[])
        for entry in selected:
            chunks = await self._chunk_count(entry)
            plan.expected_chunks[entry.entry_id] = chunks
            plan.items.append(_item(entry, max(1, chunks)))
        return plan

    async def _plan_delete(self, selected: list[RemoteEntry]) -> _Plan:
        files: list[BulkItem] = []
        directories: list[BulkItem] = []
        seen: set[str] = set()
        touched: set[Optional[str]] = set()
        subtrees: dict[str, set[str]] = {}

        for entry in selected:
            if entry.entry_id in seen:
                continue
            seen.add(entry.entry_id)
            if entry.is_file:
                files.append(_item(entry, max(1, await self._chunk_count(entry))))
                continue
            descendants, subtrees[entry.entry_id] = await self._walk_directory(entry.entry_id, seen)
            for descendant in descendants:
                files.append(_item(descendant, max(1, await self._chunk_count(descendant))))
            directories.append(_item(entry, 1))
            touched.add(entry.entry_id)

        return _Plan(items=files + _outermost(directories, subtrees), touched_parents=touched)

    async def _walk_directory(
        self,
        root_id: str,
        seen: set[str],
    ) -> tuple[list[RemoteEntry], set[str]]:
        """
        Breadth-first walk below root_id.

        Returns the files not yet in seen (their ids are added to it) and the
        ids of every subdirectory reached.
        """
        found: list[RemoteEntry] = []
        queue: deque[str] = deque([root_id])
        visited: set[str] = {root_id}

        while queue:
            parent_id = queue.popleft()
            try:
                children = await self._client.list_children(parent_id)
            except DDriveError as exc:
                logger.warning("Could not list %s for delete: %s", parent_id, exc)
                continue
            for child in children:
                if child.is_directory:
                    if child.entry_id not in visited:
                        visited.add(child.entry_id)
                        queue.append(child.entry_id)
                    continue
                if child.entry_id in seen:
                    continue
                seen.add(child.entry_id)
                found.append(child)
        visited.discard(root_id)
        return found, visited

    async def _chunk_count(self, entry: RemoteEntry) -> int:
        """Stored chunk count of a file (1 when it cannot be fetched)."""
        if entry.chunk_count is not None:
            return entry.chunk_count
        try:
            stat = await self._client.get_entry(entry.entry_id)
        except DDriveError as exc:
            logger.debug("Chunk count of %s unavailable: %s", entry.entry_id, exc)
            return 1
        return stat.chunk_count if stat.chunk_count is not None else 1

    # ----------------------------
    # Copy
    # ----------------------------
    async def _copy_one(self, job: BulkJob, item: BulkItem, expected: int) -> None:
        """
        Copy one entry and poll the new entry until its chunks are all there.

        The job advances by observed chunk deltas while polling; the caller
        completes the rest of the item's weight.
        """
        unit = self._aggregator.register_single(
            item.name,
            expected,
            operation=TransferOperation.COPY,
        )
        try:
            created = await self._client.copy_entry(item.entry_id)
            if created is None:
                logger.info("Copy of %s returned no id; treating as complete", item.name)
            else:
                await self._poll_copy(job, unit.unit_id, created.entry_id, expected)
        except DDriveError:
            self._aggregator.settle(unit.unit_id, False)
            raise
        self._aggregator.settle(unit.unit_id, True)

    async def _poll_copy(self, job: BulkJob, unit_id: str, copy_id: str, expected: int) -> None:
        max_polls = max(expected, 1) * self._config.copy_polls_per_chunk
        credited = 0
        for attempt in range(max_polls):
            try:
                stat = await self._client.get_entry(copy_id)
                observed = stat.chunk_count or 0
            except DDriveError as exc:
                logger.debug("Copy poll %d of %s failed: %s", attempt, copy_id, exc)
                observed = credited

            step = min(observed, expected) - credited
            if step > 0:
                job.advance(step)
                credited += step
            self._aggregator.observe(unit_id, observed)
            self._aggregator.publish_job(job)
            if observed >= expected:
                return
            await asyncio.sleep(self._config.poll_interval_sec)

        raise DDriveError(
            "Copy did not complete in time",
            details={"entry_id": copy_id, "expected": expected, "observed": credited},
        )

    # ----------------------------
    # Wrap-up
    # ----------------------------
    def _notify_outcome(self, job: BulkJob) -> None:
        verb = _VERBS[job.action]
        if job.failed_count:
            self._notifier.success(f"{job.succeeded_count} {verb}, {job.failed_count} failed")
            self._notifier.error(f"{job.failed_count} items failed to {job.action.value}")
        else:
            self._notifier.success(f"{job.succeeded_count} {verb}")
        logger.info(
            "Bulk %s finished: %d ok, %d failed",
            job.action.value,
            job.succeeded_count,
            job.failed_count,
        )

    def _invalidate(self, parents: set[Optional[str]]) -> None:
        if self._listing is None:
            return
        for parent_id in parents:
            self._listing.invalidate(parent_id)


def _item(entry: RemoteEntry, weight: int) -> BulkItem:
    return BulkItem(
        entry_id=entry.entry_id,
        name=entry.name,
        work_units=weight,
        is_directory=entry.is_directory,
    )


def _outermost(directories: list[BulkItem], subtrees: dict[str, set[str]]) -> list[BulkItem]:
    """Drop selected directories that sit below another kept selected directory."""
    kept: list[BulkItem] = []
    for item in directories:
        if any(item.entry_id in subtrees.get(k.entry_id, ()) for k in kept):
            continue
        below = subtrees.get(item.entry_id, set())
        kept = [k for k in kept if k.entry_id not in below]
        kept.append(item)
    return kept


def _dedupe(entries: Iterable[RemoteEntry]) -> list[RemoteEntry]:
    seen: set[str] = set()
    out: list[RemoteEntry] = []
    for entry in entries:
        if entry.entry_id in seen:
            continue
        seen.add(entry.entry_id)
        out.append(entry)
    return out
