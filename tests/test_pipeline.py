from __future__ import annotations

from datetime import datetime
import json
from pathlib import Path
import sys
import tempfile
import unittest
from zoneinfo import ZoneInfo

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from blockwatch.data.pipeline import DatasetExporter, clean_sheet_names, load_dataset
from blockwatch.data.sources import StaticGridSource
from blockwatch.errors import MalformedDatasetError, UpstreamFetchError
from blockwatch.models import METRIC_KEYS
from tests.helpers import VIEWS, make_grid, make_metrics

NOW = datetime(2026, 2, 25, 9, 0, tzinfo=ZoneInfo("Asia/Tokyo"))


class DatasetExporterTests(unittest.TestCase):
    def test_export_writes_sorted_blocks_per_sheet(self) -> None:
        grids = {
            "A": make_grid([("2月20日", 0, 1, make_metrics({VIEWS: "5"})), ("2月10日", 0, 0, make_metrics())]),
            "B's": [["メモ"]],
        }
        source = StaticGridSource(grids)
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            exporter = DatasetExporter(source=source, output_path=root / "data" / "date_blocks.json", root=root)
            exporter.export("sheet-123", ["A", " ", "B's"], now=NOW)

            payload = json.loads((root / "data" / "date_blocks.json").read_text(encoding="utf-8"))
            self.assertEqual(payload["updated_at"], "2026-02-25T09:00:00+09:00")
            self.assertEqual(payload["spreadsheet_id"], "sheet-123")
            self.assertEqual(payload["output_file"], str(Path("data") / "date_blocks.json"))
            self.assertEqual(list(payload["sheets"]), ["A", "B's"])
            self.assertEqual(payload["sheets"]["B's"], [])
            blocks = payload["sheets"]["A"]
            self.assertEqual([b["date"] for b in blocks], ["2月10日", "2月20日"])
            self.assertEqual(blocks[1]["a1"], "B1")
            self.assertEqual(list(blocks[1]["metrics"]), list(METRIC_KEYS))
            self.assertEqual(blocks[1]["metrics"][VIEWS], "5")

        self.assertEqual(source.requested, ["'A'!A:ZZ", "'B''s'!A:ZZ"])

    def test_fetch_failure_aborts_without_writing(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            out = Path(td) / "date_blocks.json"
            out.write_text('{"sheets": {}}', encoding="utf-8")
            exporter = DatasetExporter(source=StaticGridSource({"A": [["1月1日"]]}), output_path=out)
            with self.assertRaises(UpstreamFetchError):
                exporter.export("sid", ["A", "Missing"], now=NOW)
            self.assertEqual(out.read_text(encoding="utf-8"), '{"sheets": {}}')

    def test_list_dates_uses_strict_labels(self) -> None:
        source = StaticGridSource({"A": [["3月1日", "1月7日(火)"], ["1月2日", "3月1日"]]})
        exporter = DatasetExporter(source=source, output_path=Path("unused.json"))
        self.assertEqual(exporter.list_dates("A"), ["1月2日", "3月1日"])

    def test_clean_sheet_names(self) -> None:
        self.assertEqual(clean_sheet_names([" A ", "", None, 3, "B"]), ["A", "B"])


class LoadDatasetTests(unittest.TestCase):
    def test_missing_or_malformed_dataset(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            (root / "broken.json").write_text("{", encoding="utf-8")
            (root / "nosheets.json").write_text('{"updated_at": "x"}', encoding="utf-8")
            for name in ("missing.json", "broken.json", "nosheets.json"):
                with self.assertRaises(MalformedDatasetError):
                    load_dataset(root / name)

    def test_malformed_blocks_are_skipped(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "ds.json"
            path.write_text(
                json.dumps({"sheets": {"A": [{"date": "2月1日", "metrics": {}}, "junk", {"metrics": {}}], "B": "junk"}}),
                encoding="utf-8",
            )
            ds = load_dataset(path)
            self.assertEqual([b.date for b in ds.blocks("A")], ["2月1日"])
            self.assertEqual(ds.blocks("B"), [])
            self.assertEqual(ds.blocks("Z"), [])


if __name__ == "__main__":
    unittest.main()
