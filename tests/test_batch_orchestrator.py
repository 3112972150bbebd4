from __future__ import annotations

from pathlib import Path
import sys
import unittest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from blockwatch.orchestration import STAGE_ORDER, BatchOrchestrator


class _Recorder:
    def __init__(self, fail_at: str | None = None) -> None:
        self.fail_at = fail_at
        self.calls: list[tuple[str, bool | None]] = []

    def _stage(self, name: str, dry_run: bool | None) -> dict:
        self.calls.append((name, dry_run))
        return {"stage": name, "ok": name != self.fail_at, "error": "boom" if name == self.fail_at else None}

    def orchestrator(self) -> BatchOrchestrator:
        return BatchOrchestrator(
            export_blocks=lambda: self._stage("export_blocks", None),
            check_missing=lambda dry_run: self._stage("check_missing", dry_run),
            check_below_average=lambda dry_run: self._stage("check_below_average", dry_run),
            check_followup=lambda dry_run: self._stage("check_followup", dry_run),
        )


class BatchOrchestratorTests(unittest.TestCase):
    def test_runs_stages_in_order(self) -> None:
        rec = _Recorder()
        out = rec.orchestrator().run_all(dry_run=True)
        self.assertTrue(out["ok"])
        self.assertTrue(out["dry_run"])
        self.assertIsNone(out["failed_stage"])
        self.assertEqual(tuple(out["steps"]), STAGE_ORDER)
        self.assertEqual(
            rec.calls,
            [("export_blocks", None), ("check_missing", True), ("check_below_average", True), ("check_followup", True)],
        )

    def test_stops_at_first_failure(self) -> None:
        rec = _Recorder(fail_at="check_missing")
        out = rec.orchestrator().run_all()
        self.assertFalse(out["ok"])
        self.assertEqual(out["failed_stage"], "check_missing")
        self.assertEqual([c[0] for c in rec.calls], ["export_blocks", "check_missing"])
        self.assertNotIn("check_below_average", out["steps"])

    def test_failed_export_skips_checks(self) -> None:
        rec = _Recorder(fail_at="export_blocks")
        out = rec.orchestrator().run_all()
        self.assertEqual(out["failed_stage"], "export_blocks")
        self.assertEqual(len(rec.calls), 1)

    def test_skip_export(self) -> None:
        rec = _Recorder()
        out = rec.orchestrator().run_all(skip_export=True)
        self.assertEqual(out["steps"]["export_blocks"], {"skipped": True})
        self.assertNotIn(("export_blocks", None), rec.calls)
        self.assertEqual(len(rec.calls), 3)


if __name__ == "__main__":
    unittest.main()
