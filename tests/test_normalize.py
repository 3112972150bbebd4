from __future__ import annotations

from pathlib import Path
import sys
import unittest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from blockwatch.data.normalize import normalize_value, to_halfwidth
from blockwatch.models import CellKind, CellValue


class NormalizeValueTests(unittest.TestCase):
    def test_thousands_separator(self) -> None:
        self.assertEqual(normalize_value("1,234"), 1234.0)
        self.assertEqual(normalize_value("１，２３４"), 1234.0)

    def test_colon_durations_are_seconds(self) -> None:
        self.assertEqual(normalize_value("0:42"), 42.0)
        self.assertEqual(normalize_value("1:02:03"), 3723.0)
        self.assertEqual(normalize_value("１：３０"), 90.0)

    def test_kanji_durations_are_seconds(self) -> None:
        self.assertEqual(normalize_value("1時間23分"), 4980.0)
        self.assertEqual(normalize_value("12分34秒"), 754.0)
        self.assertEqual(normalize_value("45秒"), 45.0)

    def test_first_number_token(self) -> None:
        self.assertEqual(normalize_value("12.5%"), 12.5)
        self.assertEqual(normalize_value("-3.2pt"), -3.2)
        self.assertEqual(normalize_value("約300回"), 300.0)

    def test_native_numbers_pass_through(self) -> None:
        self.assertEqual(normalize_value(5), 5.0)
        self.assertEqual(normalize_value(2.5), 2.5)
        self.assertIsNone(normalize_value(float("nan")))
        self.assertIsNone(normalize_value(float("inf")))

    def test_unusable_cells_are_none(self) -> None:
        for raw in (None, "", "   ", "N/A", "記入済み", True):
            self.assertIsNone(normalize_value(raw), raw)

    def test_to_halfwidth_covers_ideographic_space(self) -> None:
        self.assertEqual(to_halfwidth("ＡＢ　１２"), "AB 12")


class CellValueTests(unittest.TestCase):
    def test_kinds(self) -> None:
        self.assertIs(CellValue.of(None).kind, CellKind.BLANK)
        self.assertIs(CellValue.of(" \t").kind, CellKind.BLANK)
        self.assertIs(CellValue.of("x").kind, CellKind.TEXT)
        self.assertIs(CellValue.of(0).kind, CellKind.NUMBER)
        self.assertIs(CellValue.of(False).kind, CellKind.TEXT)

    def test_zero_is_not_blank(self) -> None:
        self.assertFalse(CellValue.of(0).is_blank)
        self.assertFalse(CellValue.of("0").is_blank)


if __name__ == "__main__":
    unittest.main()
