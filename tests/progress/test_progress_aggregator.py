import asyncio
import unittest

from ddrive.config import ClientConfig
from ddrive.errors import InvalidArgumentError, InvalidStateError
from ddrive.models import (
    BulkAction,
    BulkJob,
    JobStatus,
    NotificationLevel,
    TransferOperation,
    TransferStatus,
)
from ddrive.progress import Notifier, ProgressAggregator, StateStream


def _make(**config_kwargs):
    state = StateStream()
    notifier = Notifier()
    aggregator = ProgressAggregator(state, notifier, ClientConfig(**config_kwargs))
    return aggregator, state, notifier


def _progress_history(state: StateStream, unit_id: str):
    history = []

    def listener(s) -> None:
        for unit in s.transfers:
            if unit.unit_id == unit_id:
                history.append((unit.progress, unit.status))

    state.subscribe(listener)
    return history


class TestSingleUnits(unittest.IsolatedAsyncioTestCase):
    async def test_register_and_report(self) -> None:
        agg, state, _ = _make()
        unit = agg.register_single("a.bin", 200)
        self.assertEqual(unit.status, TransferStatus.PENDING)

        agg.report(unit.unit_id, 50)
        current = agg.get(unit.unit_id)
        self.assertEqual(current.status, TransferStatus.ACTIVE)
        self.assertEqual(current.progress, 25)
        self.assertEqual(state.current().transfers[0].byte_loaded, 50)

        agg.report(unit.unit_id, 1000)
        self.assertEqual(agg.get(unit.unit_id).byte_loaded, 200)

    async def test_progress_never_decreases_before_terminal(self) -> None:
        agg, state, _ = _make()
        unit = agg.register_single("a.bin", 100)
        history = _progress_history(state, unit.unit_id)

        for percent in (10, 40, 30, 40, 20, 90):
            agg.set_progress(unit.unit_id, percent)
        agg.settle(unit.unit_id, True)

        values = [p for p, _ in history]
        self.assertEqual(values, sorted(values))
        self.assertEqual(history[-1], (100, TransferStatus.SUCCEEDED))

    async def test_terminal_unit_ignores_further_reports(self) -> None:
        agg, _, _ = _make()
        unit = agg.register_single("a.bin", 100)
        agg.set_progress(unit.unit_id, 30)
        agg.settle(unit.unit_id, False)
        agg.set_progress(unit.unit_id, 80)
        agg.settle(unit.unit_id, True)

        current = agg.get(unit.unit_id)
        self.assertEqual(current.status, TransferStatus.FAILED)
        self.assertEqual(current.progress, 30)

    async def test_observe_publishes_every_poll(self) -> None:
        agg, state, _ = _make()
        unit = agg.register_single("a.bin", 5, operation=TransferOperation.COPY)
        history = _progress_history(state, unit.unit_id)

        for observed in (0, 2, 2, 5):
            agg.observe(unit.unit_id, observed)

        self.assertEqual([p for p, _ in history], [0, 40, 40, 100])

    async def test_settled_unit_is_removed_after_grace(self) -> None:
        agg, state, _ = _make(single_upload_grace_sec=0.01, copy_grace_sec=0.05)
        upload = agg.register_single("a.bin", 1)
        copy = agg.register_single("b.bin", 1, operation=TransferOperation.COPY)
        agg.settle(upload.unit_id, True)
        agg.settle(copy.unit_id, True)

        self.assertEqual(len(state.current().transfers), 2)
        await asyncio.sleep(0.03)
        self.assertIsNone(agg.get(upload.unit_id))
        self.assertIsNotNone(agg.get(copy.unit_id))
        await asyncio.sleep(0.05)
        self.assertEqual(state.current().transfers, ())

    async def test_settle_unknown_or_group_raises(self) -> None:
        agg, _, _ = _make()
        with self.assertRaises(InvalidStateError):
            agg.settle("missing", True)
        group = agg.register_group("g", "Photos", 10, 2)
        with self.assertRaises(InvalidStateError):
            agg.settle(group.unit_id, True)


class TestFolderGroups(unittest.IsolatedAsyncioTestCase):
    async def test_register_group_validation(self) -> None:
        agg, _, _ = _make()
        with self.assertRaises(InvalidArgumentError):
            agg.register_group("g", "Photos", 0, 0)
        agg.register_group("g", "Photos", 0, 1)
        with self.assertRaises(InvalidStateError):
            agg.register_group("g", "Photos", 0, 1)

    async def test_concurrent_file_progress_is_summed_by_delta(self) -> None:
        agg, _, _ = _make()
        group = agg.register_group("g", "Photos", 300, 3)

        self.assertEqual(agg.report_file_progress("g", "g::a", 50), 50)
        self.assertEqual(agg.report_file_progress("g", "g::b", 100), 100)
        self.assertEqual(agg.report_file_progress("g", "g::a", 100), 50)
        # Repeated or stale cumulative values add nothing.
        self.assertEqual(agg.report_file_progress("g", "g::a", 100), 0)
        self.assertEqual(agg.report_file_progress("g", "g::a", 60), 0)

        current = agg.get(group.unit_id)
        self.assertEqual(current.byte_loaded, 200)
        self.assertEqual(current.progress, 67)

    async def test_group_terminal_only_when_all_files_settled(self) -> None:
        for order in (["a", "b", "c"], ["c", "a", "b"], ["b", "c", "a"]):
            agg, _, _ = _make()
            group = agg.register_group("g", "Photos", 30, 3)
            for i, name in enumerate(order):
                agg.settle_group_file("g", f"g::{name}", True)
                current = agg.get(group.unit_id)
                if i < 2:
                    self.assertFalse(current.status.is_terminal)
                    self.assertEqual(current.remaining_file_count, 2 - i)
            final = agg.get(group.unit_id)
            self.assertEqual(final.remaining_file_count, 0)
            self.assertEqual(final.status, TransferStatus.SUCCEEDED)
            self.assertEqual(final.progress, 100)

    async def test_repeated_settlement_counts_once(self) -> None:
        agg, _, _ = _make()
        group = agg.register_group("g", "Photos", 20, 2)
        agg.settle_group_file("g", "g::a", True)
        agg.settle_group_file("g", "g::a", True)
        current = agg.get(group.unit_id)
        self.assertEqual(current.remaining_file_count, 1)
        self.assertFalse(current.status.is_terminal)

    async def test_single_success_and_error_notification(self) -> None:
        agg, _, notifier = _make()
        group = agg.register_group("g", "Photos", 50, 5)
        agg.settle_group_file("g", "g::1", False)
        agg.report_group_problem("g", "Could not create folder x")
        agg.settle_group_file("g", "g::2", True)
        agg.settle_group_file("g", "g::3", False)
        agg.settle_group_file("g", "g::4", True)
        agg.settle_group_file("g", "g::5", True)

        levels = [n.level for n in notifier.history]
        self.assertEqual(levels.count(NotificationLevel.SUCCESS), 1)
        self.assertEqual(levels.count(NotificationLevel.ERROR), 1)
        success = [n for n in notifier.history if n.level is NotificationLevel.SUCCESS][0]
        self.assertEqual(success.message, "Uploaded 3 of 5 files to Photos")
        self.assertEqual(success.group_key, "g")

        final = agg.get(group.unit_id)
        self.assertEqual(final.status, TransferStatus.FAILED)
        self.assertEqual(final.failed_file_count, 2)

    async def test_all_succeeded_message(self) -> None:
        agg, _, notifier = _make()
        agg.register_group("g", "Photos", 20, 2)
        agg.settle_group_file("g", "g::a", True)
        agg.settle_group_file("g", "g::b", True)
        self.assertEqual([n.message for n in notifier.history], ["Uploaded 2 files to Photos"])

    async def test_all_failed_still_emits_one_success_count(self) -> None:
        agg, _, notifier = _make()
        group = agg.register_group("g", "Photos", 20, 2)
        agg.settle_group_file("g", "g::a", False)
        agg.settle_group_file("g", "g::b", False)
        self.assertEqual(
            [(n.level, n.message) for n in notifier.history],
            [
                (NotificationLevel.ERROR, "Failed to upload some folder contents"),
                (NotificationLevel.SUCCESS, "Uploaded 0 of 2 files to Photos"),
            ],
        )
        self.assertEqual(agg.get(group.unit_id).status, TransferStatus.FAILED)

    async def test_group_removed_after_grace(self) -> None:
        agg, _, _ = _make(folder_upload_grace_sec=0.01)
        agg.register_group("g", "Photos", 10, 1)
        agg.settle_group_file("g", "g::a", True)
        self.assertIsNotNone(agg.get_group("g"))
        await asyncio.sleep(0.03)
        self.assertIsNone(agg.get_group("g"))
        with self.assertRaises(InvalidStateError):
            agg.settle_group_file("g", "g::b", True)


class TestJobs(unittest.IsolatedAsyncioTestCase):
    async def test_publish_and_finish_job(self) -> None:
        agg, state, _ = _make(bulk_job_grace_sec=0.01)
        job = BulkJob(job_id="j", action=BulkAction.MOVE, total_work_units=2)
        agg.publish_job(job)
        job.advance(1)
        self.assertEqual(state.current().jobs[0].completed_work_units, 0)

        agg.finish_job(job)
        self.assertEqual(state.current().jobs[0].status, JobStatus.FINISHED)
        await asyncio.sleep(0.03)
        self.assertEqual(agg.jobs(), [])
        self.assertEqual(state.current().jobs, ())


class TestWithoutEventLoop(unittest.TestCase):
    def test_removal_is_immediate_without_running_loop(self) -> None:
        agg, _, _ = _make()
        unit = agg.register_single("a.bin", 10)
        agg.settle(unit.unit_id, True)
        self.assertIsNone(agg.get(unit.unit_id))


if __name__ == "__main__":
    unittest.main()
