from __future__ import annotations

from contextlib import redirect_stdout
from datetime import date
import io
import json
from pathlib import Path
import sys
import tempfile
import unittest

import yaml

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from blockwatch.cli import build_parser, main


class CliTests(unittest.TestCase):
    def _config(self, patch: dict[str, dict] | None = None) -> Path:
        project_root = Path(__file__).resolve().parents[1]
        td = tempfile.TemporaryDirectory()
        self.addCleanup(td.cleanup)
        cfg_path = Path(td.name) / "config.yaml"
        cfg_data = yaml.safe_load((project_root / "config.yaml").read_text(encoding="utf-8"))
        for section, values in (patch or {}).items():
            cfg_data[section].update(values)
        cfg_path.write_text(yaml.safe_dump(cfg_data, allow_unicode=True), encoding="utf-8")
        return cfg_path

    def _run(self, argv: list[str]) -> tuple[int, dict]:
        buf = io.StringIO()
        with redirect_stdout(buf):
            code = main(argv)
        return code, json.loads(buf.getvalue())

    def test_parser_commands(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["run-all", "--dry-run", "--skip-export"])
        self.assertTrue(args.dry_run)
        self.assertTrue(args.skip_export)
        args = parser.parse_args(["--today", "2026-02-25", "check-below-avg"])
        self.assertEqual(args.today, date(2026, 2, 25))
        self.assertFalse(args.dry_run)
        args = parser.parse_args(["list-dates", "--sheet", "A", "--sheet", "B"])
        self.assertEqual(args.sheet, ["A", "B"])

    def test_validate_config(self) -> None:
        code, out = self._run(["--config", str(self._config()), "validate-config"])
        self.assertEqual(code, 0)
        self.assertTrue(out["ok"])

    def test_sheets_registry_commands(self) -> None:
        cfg = str(self._config())
        self._run(["--config", cfg, "sheets", "set-id", "sheet-123"])
        self._run(["--config", cfg, "sheets", "add", "A"])
        self._run(["--config", cfg, "sheets", "add", "B"])
        code, out = self._run(["--config", cfg, "sheets", "move", "1", "up"])
        self.assertEqual(code, 0)
        self.assertTrue(out["moved"])
        self.assertEqual(out["registry"]["sheets"], ["B", "A"])
        self.assertEqual(out["registry"]["spreadsheet_id"], "sheet-123")

        code, out = self._run(["--config", cfg, "sheets", "add", "A"])
        self.assertEqual(code, 1)
        self.assertEqual(out["error_type"], "configuration")

        code, out = self._run(["--config", cfg, "sheets", "list"])
        self.assertEqual(out["registry"]["sheets"], ["B", "A"])

    def test_check_without_dataset_exits_nonzero(self) -> None:
        code, out = self._run(["--config", str(self._config()), "check-missing", "--dry-run"])
        self.assertEqual(code, 1)
        self.assertEqual(out["error_type"], "malformed_dataset")

    def test_path_setting_without_value_is_configuration_error(self) -> None:
        cfg = self._config({"paths": {"dataset": None}})
        code, out = self._run(["--config", str(cfg), "check-missing", "--dry-run"])
        self.assertEqual(code, 1)
        self.assertEqual(out["error_type"], "configuration")
        self.assertIn("paths.dataset", out["error"])

    def test_service_account_without_value_is_configuration_error(self) -> None:
        cfg = self._config({"spreadsheet": {"service_account_file": None}})
        code, out = self._run(["--config", str(cfg), "export-blocks"])
        self.assertEqual(code, 1)
        self.assertEqual(out["error_type"], "configuration")

    def test_registry_write_failure_is_reported_as_json(self) -> None:
        cfg = self._config()
        (cfg.parent / "config").write_text("not a directory", encoding="utf-8")
        code, out = self._run(["--config", str(cfg), "sheets", "add", "A"])
        self.assertEqual(code, 1)
        self.assertFalse(out["ok"])
        self.assertEqual(out["error_type"], "io")


if __name__ == "__main__":
    unittest.main()
