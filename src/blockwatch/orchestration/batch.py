from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Callable


logger = logging.getLogger(__name__)

STAGE_ORDER = ("export_blocks", "check_missing", "check_below_average", "check_followup")


@dataclass(slots=True)
class BatchOrchestrator:
    """Runs extract -> missing -> below-average -> follow-up, stopping at the first failure."""

    export_blocks: Callable[[], dict[str, Any]]
    check_missing: Callable[[bool], dict[str, Any]]
    check_below_average: Callable[[bool], dict[str, Any]]
    check_followup: Callable[[bool], dict[str, Any]]

    def _steps(self, dry_run: bool) -> list[tuple[str, Callable[[], dict[str, Any]]]]:
        return [
            ("export_blocks", self.export_blocks),
            ("check_missing", lambda: self.check_missing(dry_run)),
            ("check_below_average", lambda: self.check_below_average(dry_run)),
            ("check_followup", lambda: self.check_followup(dry_run)),
        ]

    def run_all(self, dry_run: bool = False, skip_export: bool = False) -> dict[str, Any]:
        out: dict[str, Any] = {"ok": True, "dry_run": bool(dry_run), "steps": {}, "failed_stage": None}
        for name, step in self._steps(dry_run):
            if name == "export_blocks" and skip_export:
                out["steps"][name] = {"skipped": True}
                continue
            logger.info("[RUN] %s", name)
            result = step()
            out["steps"][name] = result
            if not result.get("ok", False):
                logger.error("[FAIL] %s: %s", name, result.get("error"))
                out["ok"] = False
                out["failed_stage"] = name
                break
            logger.info("[DONE] %s", name)
        return out
