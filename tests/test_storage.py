from __future__ import annotations

import json
from pathlib import Path
import sys
import tempfile
import unittest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from blockwatch.data.storage import exclusive_lock, read_json_safely, write_json


class StorageTests(unittest.TestCase):
    def test_write_json_replaces_whole_file_and_leaves_no_temp(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "nested" / "out.json"
            write_json(path, {"a": 1, "名前": "テスト"})
            write_json(path, {"b": 2})
            self.assertEqual(json.loads(path.read_text(encoding="utf-8")), {"b": 2})
            leftovers = [p.name for p in path.parent.iterdir() if p.name.endswith(".tmp")]
            self.assertEqual(leftovers, [])

    def test_write_json_keeps_non_ascii_readable(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "out.json"
            write_json(path, {"date": "2月10日"})
            self.assertIn("2月10日", path.read_text(encoding="utf-8"))

    def test_read_json_safely_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            missing = Path(td) / "missing.json"
            broken = Path(td) / "broken.json"
            broken.write_text("{not json", encoding="utf-8")
            self.assertEqual(read_json_safely(missing, default={}), {})
            self.assertEqual(read_json_safely(broken, default={"x": 1}), {"x": 1})

    def test_exclusive_lock_creates_sidecar(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "ledger.json"
            with exclusive_lock(path):
                self.assertTrue((Path(td) / "ledger.json.lock").exists())
            with exclusive_lock(path):
                pass


if __name__ == "__main__":
    unittest.main()
