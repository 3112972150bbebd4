from __future__ import annotations

from datetime import date

from blockwatch.data.calendar import label_sort_key, label_to_date
from blockwatch.models import DURATION_KEYS, MISSING_IGNORE_KEYS, BelowAverageGroup, SheetDateAlert


def format_seconds_hms(seconds: float) -> str:
    total = max(0, int(round(seconds)))
    hh, rem = divmod(total, 3600)
    mm, ss = divmod(rem, 60)
    return f"{hh:02d}:{mm:02d}:{ss:02d}"


def format_metric_value(metric: str, value: float) -> str:
    if metric in DURATION_KEYS:
        return format_seconds_hms(value)
    suffix = "%" if "率" in metric else ""
    return f"{value:.2f}{suffix}"


def _group_dates(alerts: list[SheetDateAlert]) -> dict[str, list[str]]:
    out: dict[str, list[str]] = {}
    for a in alerts:
        dates = out.setdefault(a.sheet, [])
        if a.date not in dates:
            dates.append(a.date)
    return out


def render_missing_alert(alerts: list[SheetDateAlert], cutoff: date) -> str:
    lines: list[str] = []
    lines.append(f"[info][title]未入力チェック（対象: {cutoff.isoformat()} 以下）[/title]")
    lines.append("未入力がある日付が見つかりました。")
    excluded = "".join(f"「{k}」" for k in MISSING_IGNORE_KEYS)
    lines.append(f"※{excluded}は未入力判定から除外しています。")
    lines.append("")
    for sheet, dates in _group_dates(alerts).items():
        lines.append(f"■ {sheet}")
        for d in sorted(dates, key=label_sort_key):
            lines.append(f"・{d}")
        lines.append("")
    lines.append("[/info]")
    return "\n".join(lines)


def render_below_average_alert(groups: list[BelowAverageGroup]) -> str:
    lines: list[str] = []
    lines.append("[info][title]直近値が同月平均を下回った項目通知[/title]")
    lines.append("")
    by_sheet: dict[str, list[BelowAverageGroup]] = {}
    for g in groups:
        by_sheet.setdefault(g.sheet, []).append(g)
    for sheet, entries in by_sheet.items():
        lines.append(f"■ {sheet}")
        for g in entries:
            head = f"・{g.date}"
            if len(entries) > 1:
                head += f" [block {g.block_index}]"
            lines.append(head)
            for it in g.items:
                lines.append(
                    f"  - {it.metric}: 実測={format_metric_value(it.metric, it.latest)}"
                    f" / 月平均={format_metric_value(it.metric, it.average)}"
                )
        lines.append("")
    lines.append("[/info]")
    return "\n".join(lines)


def render_followup_alert(alerts: list[SheetDateAlert], year: int) -> str:
    def _key(label: str) -> tuple[bool, tuple[int, int]]:
        return (label_to_date(label, year) is None, label_sort_key(label))

    lines: list[str] = []
    lines.append("[info][title]下回り通知後の改善項目未入力チェック[/title]")
    lines.append("以下のデータで改善入力が未完了です。")
    lines.append("（編集担当 / 今回の改善箇所 / 改善の成否/次回の改善 のいずれかが未入力）")
    lines.append("")
    for sheet, dates in _group_dates(alerts).items():
        lines.append(f"■ {sheet}")
        for d in sorted(dates, key=_key):
            lines.append(f"・{d}")
        lines.append("")
    lines.append("[/info]")
    return "\n".join(lines)
