import os
import tempfile
import unittest

from exceptions import InvalidInputError
from validators import (
    validate_author,
    validate_date,
    validate_query,
    validate_repo_path,
)


class TestValidators(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.repo = self._tmp.name

    def tearDown(self):
        self._tmp.cleanup()

    def test_repo_path(self):
        self.assertEqual(validate_repo_path(self.repo), self.repo)
        with self.assertRaises(InvalidInputError):
            validate_repo_path("relative/path")
        with self.assertRaises(InvalidInputError):
            validate_repo_path("")
        with self.assertRaises(InvalidInputError):
            validate_repo_path(os.path.join(self.repo, "missing"))

    def test_repo_path_must_be_directory(self):
        file_path = os.path.join(self.repo, "file.txt")
        with open(file_path, "w", encoding="utf-8") as f:
            f.write("x")
        with self.assertRaises(InvalidInputError):
            validate_repo_path(file_path)

    def test_date(self):
        self.assertEqual(validate_date("2024-01-01"), "2024-01-01")
        self.assertEqual(validate_date(""), "")
        self.assertEqual(validate_date("x" * 30), "x" * 30)
        for bad in ("-bad", "x" * 31, "2024-01-01\n--all"):
            with self.assertRaises(InvalidInputError, msg=bad):
                validate_date(bad)

    def test_author(self):
        self.assertEqual(validate_author("Alice"), "Alice")
        with self.assertRaises(InvalidInputError):
            validate_author("--all")

    def test_query(self):
        validate_query(self.repo, "2024-01-01", "", ["Alice"])
        with self.assertRaises(InvalidInputError):
            validate_query(self.repo, "2024-01-01", "-x", [])
        with self.assertRaises(InvalidInputError):
            validate_query(self.repo, "", "", ["Alice", "-bad"])


if __name__ == "__main__":
    unittest.main()
