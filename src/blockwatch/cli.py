from __future__ import annotations

import argparse
from datetime import date, datetime
import json
import logging
import os
from typing import Any

from blockwatch.engine import BlockwatchEngine
from blockwatch.errors import BlockwatchError


logger = logging.getLogger(__name__)


def _parse_date(s: str) -> date:
    return datetime.strptime(s, "%Y-%m-%d").date()


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    logging.getLogger("googleapiclient.discovery_cache").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def _sheets_command(eng: BlockwatchEngine, args: argparse.Namespace) -> dict[str, Any]:
    registry = eng.registry()
    changed = False
    out: dict[str, Any] = {"ok": True}
    if args.sheets_cmd == "add":
        out["added"] = registry.add(args.name)
        changed = True
    elif args.sheets_cmd == "remove":
        out["removed"] = registry.remove(int(args.index))
        changed = True
    elif args.sheets_cmd == "move":
        changed = registry.move(int(args.index), args.direction)
        out["moved"] = changed
    elif args.sheets_cmd == "set-id":
        registry.set_spreadsheet_id(args.spreadsheet_id)
        changed = True
    if changed:
        registry.save(now=eng.now())
    out["registry"] = registry.to_dict()
    return out


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="blockwatch", description="Spreadsheet date-block monitor")
    parser.add_argument("--config", default=None, help="Path to config.yaml")
    parser.add_argument("--today", type=_parse_date, default=None, help="Override today's date (YYYY-MM-DD)")
    parser.add_argument(
        "--log-level",
        default=os.getenv("BLOCKWATCH_LOG_LEVEL", "INFO"),
        help="Logging level (DEBUG, INFO, WARNING, ...)",
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    sub.add_parser("export-blocks", help="Fetch registered sheets and write the date-block dataset")

    p_ld = sub.add_parser("list-dates", help="List bare M月D日 cells per sheet")
    p_ld.add_argument("--sheet", action="append", default=None, help="Sheet name (repeatable)")

    for name, help_text in (
        ("check-missing", "Report dates with blank metrics (no dedup)"),
        ("check-below-avg", "Report latest values below the monthly average"),
        ("check-followup", "Escalate flagged dates whose improvement notes are still blank"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--dry-run", action="store_true", help="Render without sending or recording")

    p_all = sub.add_parser("run-all", help="Run export and the three checks in order")
    p_all.add_argument("--dry-run", action="store_true")
    p_all.add_argument("--skip-export", action="store_true", help="Check the existing dataset only")

    sub.add_parser("validate-config", help="Validate config.yaml")

    p_sh = sub.add_parser("sheets", help="Manage the monitored sheet list")
    sh_sub = p_sh.add_subparsers(dest="sheets_cmd", required=True)
    sh_sub.add_parser("list")
    p_add = sh_sub.add_parser("add")
    p_add.add_argument("name")
    p_rm = sh_sub.add_parser("remove")
    p_rm.add_argument("index", type=int)
    p_mv = sh_sub.add_parser("move")
    p_mv.add_argument("index", type=int)
    p_mv.add_argument("direction", choices=["up", "down"])
    p_id = sh_sub.add_parser("set-id")
    p_id.add_argument("spreadsheet_id")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args.log_level)

    try:
        eng = BlockwatchEngine(config_path=args.config, today=args.today)
        if args.cmd == "export-blocks":
            out = eng.export_blocks()
        elif args.cmd == "list-dates":
            out = eng.list_dates(sheets=args.sheet)
        elif args.cmd == "check-missing":
            out = eng.check_missing(dry_run=bool(args.dry_run))
        elif args.cmd == "check-below-avg":
            out = eng.check_below_average(dry_run=bool(args.dry_run))
        elif args.cmd == "check-followup":
            out = eng.check_followup(dry_run=bool(args.dry_run))
        elif args.cmd == "run-all":
            out = eng.run_all(dry_run=bool(args.dry_run), skip_export=bool(args.skip_export))
        elif args.cmd == "validate-config":
            out = eng.validate_config()
        elif args.cmd == "sheets":
            out = _sheets_command(eng, args)
        else:
            raise ValueError(f"Unknown command: {args.cmd}")
    except (BlockwatchError, OSError) as exc:
        logger.error("%s", exc)
        out = {"ok": False, "error_type": getattr(exc, "kind", "io"), "error": str(exc)}

    print(json.dumps(out, ensure_ascii=False, indent=2, default=str))
    return 0 if out.get("ok", False) else 1


if __name__ == "__main__":
    raise SystemExit(main())
