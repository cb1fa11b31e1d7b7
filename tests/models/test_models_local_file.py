import tempfile
import unittest
from pathlib import Path

from ddrive.models import LocalFile


class TestLocalFile(unittest.TestCase):
    def test_from_bytes(self) -> None:
        f = LocalFile.from_bytes("Photos/2024/a.jpg", b"abc")
        self.assertEqual(f.size, 3)
        self.assertEqual(f.name, "a.jpg")
        self.assertEqual(f.segments, ["Photos", "2024", "a.jpg"])
        with f.open() as fh:
            self.assertEqual(fh.read(), b"abc")

    def test_from_path(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "note.txt"
            path.write_bytes(b"hello")
            f = LocalFile.from_path(path)
            self.assertEqual(f.relative_path, "note.txt")
            self.assertEqual(f.size, 5)
            with f.open() as fh:
                self.assertEqual(fh.read(), b"hello")

    def test_requires_exactly_one_source(self) -> None:
        with self.assertRaises(ValueError):
            LocalFile(relative_path="a.txt", size=0)
        with self.assertRaises(ValueError):
            LocalFile(relative_path="a.txt", size=1, path=Path("a.txt"), data=b"a")

    def test_rejects_empty_relative_path(self) -> None:
        with self.assertRaises(ValueError):
            LocalFile.from_bytes("", b"")
        with self.assertRaises(ValueError):
            LocalFile.from_bytes("/", b"")

    def test_open_empty_bytes_reads_data_not_path(self) -> None:
        f = LocalFile.from_bytes("Photos/empty.txt", b"")
        with f.open() as fh:
            self.assertEqual(fh.read(), b"")
