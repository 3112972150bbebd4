from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
import logging
from pathlib import Path
from typing import Any, Callable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from blockwatch.checks import BelowAverageDetector, FollowupMonitor, MissingFieldScanner
from blockwatch.config import DEFAULT_CONFIG, SheetRegistry, SystemSettings, assert_valid_settings, load_settings, validate_settings
from blockwatch.data import DatasetExporter, GoogleSheetsGridSource, JsonLedger, load_dataset
from blockwatch.data.calendar import REFERENCE_YEAR
from blockwatch.data.pipeline import clean_sheet_names
from blockwatch.data.protocols import AlertSink, GridSource
from blockwatch.data.sources import DEFAULT_COLUMNS
from blockwatch.errors import BlockwatchError, ConfigurationError, UpstreamFetchError
from blockwatch.models import Dataset, StageResult
from blockwatch.orchestration import BatchOrchestrator
from blockwatch.reporting import (
    ChatworkAlertSink,
    render_below_average_alert,
    render_followup_alert,
    render_missing_alert,
    resolve_chatwork_credentials,
)
from blockwatch.reporting.chatwork import CHATWORK_API_BASE


logger = logging.getLogger(__name__)


def _setting_path(root: Path, section: dict[str, Any], dotted_key: str, default: str) -> Path:
    value = section.get(dotted_key.rsplit(".", 1)[-1], default)
    if not isinstance(value, str) or value.strip() == "":
        raise ConfigurationError(f"{dotted_key} must be a non-empty path, got {value!r}")
    return root / value.strip()


@dataclass(slots=True)
class EngineContext:
    settings: SystemSettings
    root: Path
    dataset_path: Path
    below_avg_ledger_path: Path
    followup_ledger_path: Path
    registry_path: Path


class BlockwatchEngine:
    def __init__(
        self,
        config_path: str | Path | None = None,
        grid_source: GridSource | None = None,
        alert_sink: AlertSink | None = None,
        today: date | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        settings = load_settings(config_path)
        root = Path(config_path).resolve().parent if config_path else DEFAULT_CONFIG.parent
        paths = settings.paths
        self.ctx = EngineContext(
            settings=settings,
            root=root,
            dataset_path=_setting_path(root, paths, "paths.dataset", "data/date_blocks.json"),
            below_avg_ledger_path=_setting_path(
                root, paths, "paths.below_avg_ledger", "data/notified_below_month_avg.json"
            ),
            followup_ledger_path=_setting_path(
                root, paths, "paths.followup_ledger", "data/notified_missing_improvement_after_below_avg.json"
            ),
            registry_path=_setting_path(root, settings.spreadsheet, "spreadsheet.sheets_file", "config/sheets.json"),
        )
        self._grid_source = grid_source
        self._alert_sink = alert_sink
        self._today = today
        self._clock = clock

    @property
    def settings(self) -> SystemSettings:
        return self.ctx.settings

    def now(self) -> datetime:
        if self._clock is not None:
            return self._clock()
        try:
            tz = ZoneInfo(str(self.settings.timezone or ""))
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ConfigurationError(f"unknown timezone: {self.settings.timezone!r}") from exc
        return datetime.now(tz)

    def _today_date(self) -> date:
        return self._today or self.now().date()

    def _reference_year(self) -> int:
        return int(self.settings.extraction.get("reference_year", REFERENCE_YEAR))

    def _check_int(self, key: str, default: int) -> int:
        return int(self.settings.checks.get(key, default))

    def registry(self) -> SheetRegistry:
        return SheetRegistry.load(self.ctx.registry_path)

    def _spreadsheet_id(self, registry: SheetRegistry) -> str:
        sid = registry.spreadsheet_id or str(self.settings.spreadsheet.get("id") or "").strip()
        if sid == "":
            raise ConfigurationError("spreadsheet id is empty (sheet registry and spreadsheet.id)")
        return sid

    def grid_source(self, spreadsheet_id: str) -> GridSource:
        if self._grid_source is None:
            sa_file = _setting_path(
                self.ctx.root,
                self.settings.spreadsheet,
                "spreadsheet.service_account_file",
                "oauth/service_account.json",
            )
            self._grid_source = GoogleSheetsGridSource(spreadsheet_id, sa_file)
        return self._grid_source

    def alert_sink(self) -> AlertSink:
        if self._alert_sink is None:
            cfg = self.settings.chatwork
            token, room_id = resolve_chatwork_credentials(cfg.get("token"), cfg.get("room_id"))
            self._alert_sink = ChatworkAlertSink(
                token=token,
                room_id=room_id,
                timeout=float(cfg.get("timeout_seconds", 30)),
                api_base=str(cfg.get("api_base") or CHATWORK_API_BASE),
            )
        return self._alert_sink

    def _exporter(self, spreadsheet_id: str) -> DatasetExporter:
        return DatasetExporter(
            source=self.grid_source(spreadsheet_id),
            output_path=self.ctx.dataset_path,
            root=self.ctx.root,
            columns=str(self.settings.spreadsheet.get("range_columns", DEFAULT_COLUMNS)),
            reference_year=self._reference_year(),
        )

    def _deliver(self, message: str) -> None:
        if not self.alert_sink().send(message):
            raise UpstreamFetchError("alert delivery failed")

    def _run_stage(self, stage: str, fn: Callable[[StageResult], None]) -> dict[str, Any]:
        result = StageResult(stage=stage)
        try:
            assert_valid_settings(self.settings)
            fn(result)
        except (BlockwatchError, OSError) as exc:
            result.ok = False
            result.error_type = getattr(exc, "kind", "io")
            result.error = str(exc)
            logger.error("%s failed: %s", stage, exc)
        return result.to_dict()

    def _prepare_check(self, dry_run: bool) -> Dataset:
        if not dry_run:
            self.alert_sink()
        return load_dataset(self.ctx.dataset_path)

    def export_blocks(self) -> dict[str, Any]:
        def body(result: StageResult) -> None:
            registry = self.registry()
            sheets = clean_sheet_names(registry.sheets)
            if not sheets:
                raise ConfigurationError(f"no sheets registered in {self.ctx.registry_path}")
            spreadsheet_id = self._spreadsheet_id(registry)
            dataset = self._exporter(spreadsheet_id).export(spreadsheet_id, sheets, now=self.now())
            result.details = {
                "output": str(self.ctx.dataset_path),
                "blocks": {name: len(blocks) for name, blocks in dataset.sheets.items()},
            }

        return self._run_stage("export_blocks", body)

    def list_dates(self, sheets: list[str] | None = None) -> dict[str, Any]:
        def body(result: StageResult) -> None:
            registry = self.registry()
            targets = clean_sheet_names(sheets or registry.sheets)
            if not targets:
                raise ConfigurationError("no sheets to list")
            exporter = self._exporter(self._spreadsheet_id(registry))
            result.details = {"dates": {name: exporter.list_dates(name) for name in targets}}

        return self._run_stage("list_dates", body)

    def check_missing(self, dry_run: bool = False) -> dict[str, Any]:
        def body(result: StageResult) -> None:
            dataset = self._prepare_check(dry_run)
            scanner = MissingFieldScanner(
                today=self._today_date(),
                grace_days=self._check_int("missing_grace_days", 3),
            )
            report = scanner.detect(dataset)
            result.details = {"cutoff": report.cutoff.isoformat()}
            result.alerts = [a.to_dict() for a in report.alerts]
            if not report.alerts:
                logger.info("missing check: nothing incomplete up to %s", report.cutoff)
                return
            result.message = render_missing_alert(report.alerts, report.cutoff)
            if dry_run:
                return
            self._deliver(result.message)
            result.notified = True

        return self._run_stage("check_missing", body)

    def check_below_average(self, dry_run: bool = False) -> dict[str, Any]:
        def body(result: StageResult) -> None:
            dataset = self._prepare_check(dry_run)
            ledger = JsonLedger(self.ctx.below_avg_ledger_path)
            detector = BelowAverageDetector(ledger=ledger, year=self._today_date().year)
            report = detector.detect(dataset)
            result.details = {"skipped_notified": list(report.skipped_notified)}
            result.alerts = [g.to_dict() for g in report.groups]
            if not report.flagged:
                logger.info("below-average check: no metric below its monthly average")
                return
            result.message = render_below_average_alert(report.groups)
            if dry_run:
                return
            self._deliver(result.message)
            result.notified = True
            result.recorded_keys = detector.record(report, notified_at=self.now().isoformat(timespec="seconds"))
            logger.info("below-average check: sheets=%d keys=%d", len(report.sheets()), len(result.recorded_keys))

        return self._run_stage("check_below_average", body)

    def check_followup(self, dry_run: bool = False) -> dict[str, Any]:
        def body(result: StageResult) -> None:
            dataset = self._prepare_check(dry_run)
            today = self._today_date()
            monitor = FollowupMonitor(
                below_avg_ledger=JsonLedger(self.ctx.below_avg_ledger_path),
                followup_ledger=JsonLedger(self.ctx.followup_ledger_path),
                today=today,
                delay_days=self._check_int("followup_delay_days", 1),
            )
            report = monitor.detect(dataset)
            result.alerts = [a.to_dict() for a in report.alerts]
            if not report.alerts:
                result.details = report.to_dict()
                logger.info("follow-up check: nothing to escalate")
                return
            result.message = render_followup_alert(report.alerts, today.year)
            if not dry_run:
                self._deliver(result.message)
                result.notified = True
                result.recorded_keys = monitor.record(report, notified_at=self.now().isoformat(timespec="seconds"))
            result.details = report.to_dict()

        return self._run_stage("check_followup", body)

    def _batch_orchestrator(self) -> BatchOrchestrator:
        return BatchOrchestrator(
            export_blocks=self.export_blocks,
            check_missing=self.check_missing,
            check_below_average=self.check_below_average,
            check_followup=self.check_followup,
        )

    def run_all(self, dry_run: bool = False, skip_export: bool = False) -> dict[str, Any]:
        return self._batch_orchestrator().run_all(dry_run=dry_run, skip_export=skip_export)

    def validate_config(self) -> dict[str, Any]:
        return validate_settings(self.settings)
