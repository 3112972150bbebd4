from blockwatch.reporting.alerts import (
    format_metric_value,
    format_seconds_hms,
    render_below_average_alert,
    render_followup_alert,
    render_missing_alert,
)
from blockwatch.reporting.chatwork import ChatworkAlertSink, RecordingAlertSink, resolve_chatwork_credentials

__all__ = [
    "format_metric_value",
    "format_seconds_hms",
    "render_below_average_alert",
    "render_followup_alert",
    "render_missing_alert",
    "ChatworkAlertSink",
    "RecordingAlertSink",
    "resolve_chatwork_credentials",
]
