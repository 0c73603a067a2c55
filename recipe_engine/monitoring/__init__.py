"""
Monitoring, evidence and reporting exports.
"""

from recipe_engine.monitoring.evidence import EvidenceRecorder
from recipe_engine.monitoring.logger import (
    get_logger,
    log_performance_metric,
    log_scenario_event,
    setup_logging,
)
from recipe_engine.monitoring.reporter import (
    ReportConfig,
    RunReporter,
    TimelineEntry,
    calculate_video_duration,
    format_timestamp,
    generate_quick_summary,
    generate_video_timeline,
)

__all__ = [
    "EvidenceRecorder",
    "ReportConfig",
    "RunReporter",
    "TimelineEntry",
    "calculate_video_duration",
    "format_timestamp",
    "generate_quick_summary",
    "generate_video_timeline",
    "get_logger",
    "log_performance_metric",
    "log_scenario_event",
    "setup_logging",
]
