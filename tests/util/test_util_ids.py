import unittest
import uuid

from ddrive.util.ids import file_identity, new_job_id, new_unit_id, new_uuid


class TestUtilIds(unittest.TestCase):
    def test_new_uuid_is_valid_uuid4(self) -> None:
        value = new_uuid()
        parsed = uuid.UUID(value)
        self.assertEqual(str(parsed), value)
        self.assertEqual(parsed.version, 4)

    def test_new_unit_id_is_valid_uuid4(self) -> None:
        parsed = uuid.UUID(new_unit_id())
        self.assertEqual(parsed.version, 4)

    def test_new_job_id_is_valid_uuid4(self) -> None:
        parsed = uuid.UUID(new_job_id())
        self.assertEqual(parsed.version, 4)

    def test_ids_are_unique(self) -> None:
        values = {new_uuid(), new_uuid(), new_uuid()}
        self.assertEqual(len(values), 3)

    def test_file_identity(self) -> None:
        self.assertEqual(file_identity("Photos:1", "Photos/a.jpg"), "Photos:1::Photos/a.jpg")
        self.assertEqual(file_identity(None, "a.jpg"), "root::a.jpg")
        self.assertNotEqual(
            file_identity("g1", "Photos/a.jpg"),
            file_identity("g2", "Photos/a.jpg"),
        )
        self.assertEqual(file_identity("g1", "Photos/a.jpg", 0), "g1::Photos/a.jpg#0")
        self.assertNotEqual(
            file_identity("g1", "Photos/a.jpg", 0),
            file_identity("g1", "Photos/a.jpg", 1),
        )
