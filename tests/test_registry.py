from __future__ import annotations

from datetime import datetime
import json
from pathlib import Path
import sys
import tempfile
import unittest
from zoneinfo import ZoneInfo

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from blockwatch.config import SheetRegistry, normalize_sheet_name
from blockwatch.errors import ConfigurationError

NOW = datetime(2026, 2, 25, 9, 30, tzinfo=ZoneInfo("Asia/Tokyo"))


class SheetRegistryTests(unittest.TestCase):
    def test_missing_file_is_empty_registry(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            reg = SheetRegistry.load(Path(td) / "sheets.json")
            self.assertEqual((reg.spreadsheet_id, reg.sheets), ("", []))

    def test_add_normalizes_and_rejects_duplicates(self) -> None:
        reg = SheetRegistry(path=Path("unused.json"))
        self.assertEqual(reg.add("  チャンネル　A  "), "チャンネル A")
        with self.assertRaises(ConfigurationError):
            reg.add("チャンネル A")
        with self.assertRaises(ConfigurationError):
            reg.add("   ")
        self.assertEqual(normalize_sheet_name("a \t b"), "a b")

    def test_move_and_remove(self) -> None:
        reg = SheetRegistry(path=Path("unused.json"), sheets=["A", "B", "C"])
        self.assertFalse(reg.move(0, "up"))
        self.assertTrue(reg.move(0, "down"))
        self.assertEqual(reg.sheets, ["B", "A", "C"])
        self.assertFalse(reg.move(2, "down"))
        self.assertEqual(reg.remove(1), "A")
        self.assertEqual(reg.sheets, ["B", "C"])
        with self.assertRaises(ConfigurationError):
            reg.remove(5)
        with self.assertRaises(ConfigurationError):
            reg.move(0, "sideways")

    def test_save_and_load(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "config" / "sheets.json"
            reg = SheetRegistry(path=path)
            reg.set_spreadsheet_id("  sheet-123 ")
            reg.add("A")
            reg.save(now=NOW)

            data = json.loads(path.read_text(encoding="utf-8"))
            self.assertEqual(data, {"spreadsheet_id": "sheet-123", "sheets": ["A"], "updated_at": "2026-02-25T09:30:00+09:00"})
            loaded = SheetRegistry.load(path)
            self.assertEqual(loaded.sheets, ["A"])
            self.assertEqual(loaded.spreadsheet_id, "sheet-123")

    def test_invalid_file_raises(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "sheets.json"
            path.write_text("[]", encoding="utf-8")
            with self.assertRaises(ConfigurationError):
                SheetRegistry.load(path)


if __name__ == "__main__":
    unittest.main()
