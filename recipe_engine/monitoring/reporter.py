"""
Run reporting for the recipe execution engine.

Builds a Markdown report (summary, results by priority, failure details,
video timeline, pass-rate chart and recommendations) from a RunResult.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from jinja2 import Environment

from recipe_engine.core.types import RunResult, ScenarioPriority, ScenarioResult, ScenarioStatus

logger = logging.getLogger(__name__)

REPORT_PRIORITIES = [
    ScenarioPriority.HAPPY_PATH,
    ScenarioPriority.CRITICAL_PATH,
    ScenarioPriority.EDGE_CASE,
    ScenarioPriority.REGRESSION,
    ScenarioPriority.UNKNOWN,
]

PRIORITY_EMOJI = {
    ScenarioPriority.HAPPY_PATH: "🎯",
    ScenarioPriority.CRITICAL_PATH: "🔍",
    ScenarioPriority.EDGE_CASE: "🧪",
    ScenarioPriority.REGRESSION: "🔄",
}

STATUS_EMOJI = {
    ScenarioStatus.PASS: "✅",
    ScenarioStatus.FAIL: "❌",
    ScenarioStatus.ERROR: "⚠️",
    ScenarioStatus.PENDING: "⏳",
}

BAR_WIDTH = 20


@dataclass
class ReportConfig:
    """Configuration for report generation."""

    max_console_logs: int = 10
    include_timeline: bool = True
    include_recommendations: bool = True


@dataclass
class TimelineEntry:
    """Offset of one scenario inside the session video."""

    scenario_index: int
    scenario: str
    status: ScenarioStatus
    start_seconds: float
    end_seconds: float

    @property
    def formatted_start(self) -> str:
        return format_timestamp(self.start_seconds)

    @property
    def formatted_end(self) -> str:
        return format_timestamp(self.end_seconds)


def format_timestamp(seconds: float) -> str:
    """Format seconds as MM:SS."""
    seconds = max(0.0, seconds)
    return f"{int(seconds // 60):02d}:{int(seconds % 60):02d}"


def generate_video_timeline(run_result: RunResult) -> List[TimelineEntry]:
    """Per-scenario start/end offsets, relative to the start of the recording."""
    origin = run_result.video_start_time or run_result.start_time
    timeline: List[TimelineEntry] = []
    for scenario in run_result.scenarios:
        start = (scenario.start_time - origin).total_seconds()
        timeline.append(
            TimelineEntry(
                scenario_index=scenario.index,
                scenario=scenario.scenario,
                status=scenario.status,
                start_seconds=max(0.0, start),
                end_seconds=max(0.0, start) + scenario.duration / 1000,
            )
        )
    return timeline


def calculate_video_duration(run_result: RunResult) -> str:
    """Sum of scenario durations as ``Xm Ys``."""
    total_seconds = sum(s.duration for s in run_result.scenarios) // 1000
    return f"{total_seconds // 60}m {total_seconds % 60}s"


def _percent(part: int, total: int) -> int:
    return round(part * 100 / total) if total else 0


def _pass_bar(passed: int, total: int) -> str:
    filled = round(_percent(passed, total) / 5)
    return "█" * filled + "░" * (BAR_WIDTH - filled)


def _is_failure(scenario: ScenarioResult) -> bool:
    return scenario.status in (ScenarioStatus.FAIL, ScenarioStatus.ERROR)


MARKDOWN_REPORT_TEMPLATE = """\
## {{ 'All tests passed' if all_passed else 'Tests failed' }} - Test Execution Results

**Test Run:** #{{ run.execution_id[:8] }} | **Base URL:** {{ run.base_url }} | **Duration:** {{ video_duration }} | **Browser:** Chromium
{% if run.error %}

> **Run aborted:** {{ run.error }}
{% endif %}

### Summary

| Status | Count | Percentage |
|--------|-------|------------|
| ✅ **Passed** | {{ run.passed }} | {{ pct(run.passed) }}% |
| ❌ **Failed** | {{ run.failed }} | {{ pct(run.failed) }}% |
| ⏭️ **Skipped** | {{ run.skipped }} | {{ pct(run.skipped) }}% |
| **Total** | **{{ run.total_tests }}** | 100% |
{% if timeline %}

### 🎥 Test Execution Video

[📹 Watch Full Test Run]({{ run.full_video_path }})

**Jump to specific tests:**
{% for item in timeline %}
- {{ '✅' if item.status.value == 'PASS' else '❌' }} {{ item.scenario }} ({{ item.formatted_start }} - {{ item.formatted_end }})
{% endfor %}
{% endif %}

---

## Test Results by Priority
{% for group in groups %}

### {{ group.emoji }} {{ group.priority }} Tests ({{ group.passed }}/{{ group.total }} passed)

| # | Scenario | Status | Duration | Screenshot |
|---|----------|--------|----------|------------|
{% for s in group.scenarios %}
| {{ s.index }} | {{ s.scenario }} | {{ status_emoji(s.status) }} {{ s.status.value }} | {{ '%.1f'|format(s.duration / 1000) }}s | {{ ('[View](' ~ s.screenshot_path ~ ')') if s.screenshot_path else '-' }} |
{% endfor %}
{% endfor %}
{% if failures %}

---

## ❌ Failed Test Details
{% for s in failures %}

### {{ s.index }}. {{ s.scenario }}

**Priority:** {{ s.priority.value }}
**Status:** {{ s.status.value }}
**Duration:** {{ '%.2f'|format(s.duration / 1000) }}s

#### Expected Result
{{ s.expected or '_none given_' }}
{% if s.actual_result %}

#### Actual Result
{{ s.actual_result }}
{% endif %}
{% if s.error %}

#### Error Message
```
{{ s.error }}
```
{% endif %}

#### Steps to Reproduce
{{ s.steps or '_none given_' }}
{% if s.index in timeline_by_index %}

#### Video
Watch this test at {{ timeline_by_index[s.index].formatted_start }} in [the session video]({{ run.full_video_path }})
{% endif %}
{% if s.console_logs %}

<details>
<summary>📋 Console Logs ({{ s.console_logs|length }})</summary>

```
{% for log in s.console_logs[:config.max_console_logs] %}
[{{ log.type }}] {{ log.text }}
{% endfor %}
{% if s.console_logs|length > config.max_console_logs %}
... and {{ s.console_logs|length - config.max_console_logs }} more logs
{% endif %}
```
</details>
{% endif %}
{% if s.network_errors %}

<details>
<summary>🌐 Network Errors ({{ s.network_errors|length }})</summary>

```
{% for err in s.network_errors %}
{{ err.method or 'GET' }} {{ err.url }}
  Error: {{ err.failure }}
{% endfor %}
```
</details>
{% endif %}
{% endfor %}
{% endif %}

---

## 📊 Test Coverage by Priority

```
{% for group in groups %}
{{ group.priority.ljust(15) }} {{ group.bar }} {{ group.percent }}% ({{ group.passed }}/{{ group.total }})
{% endfor %}
```
{% if config.include_recommendations %}

## 💡 Recommendations

{% if not failures and not run.skipped %}
✅ **All tests passed!** No issues detected in the executed scenarios.
{% else %}
{% if failed_happy %}
🚨 **CRITICAL:** {{ failed_happy }} Happy Path test(s) failed. These are core functionality issues.

{% endif %}
{% if failed_critical %}
⚠️ **IMPORTANT:** {{ failed_critical }} Critical Path test(s) failed. Review these scenarios carefully.

{% endif %}
**Recommended Actions:**
{% for action in recommended_actions %}
{{ loop.index }}. {{ action }}
{% endfor %}
{% endif %}
{% endif %}
"""


class RunReporter:
    """Renders and writes reports for a finished run."""

    def __init__(self, config: Optional[ReportConfig] = None) -> None:
        self.config = config or ReportConfig()
        self._env = Environment(trim_blocks=True, lstrip_blocks=True, keep_trailing_newline=True)
        self._template = self._env.from_string(MARKDOWN_REPORT_TEMPLATE)

    def _priority_groups(self, run_result: RunResult) -> List[Dict[str, Any]]:
        groups = []
        for priority in REPORT_PRIORITIES:
            scenarios = [s for s in run_result.scenarios if s.priority == priority]
            if not scenarios:
                continue
            passed = sum(1 for s in scenarios if s.status == ScenarioStatus.PASS)
            groups.append({
                "priority": priority.value,
                "emoji": PRIORITY_EMOJI.get(priority, "📋"),
                "scenarios": scenarios,
                "passed": passed,
                "total": len(scenarios),
                "percent": _percent(passed, len(scenarios)),
                "bar": _pass_bar(passed, len(scenarios)),
            })
        return groups

    def _recommended_actions(self, failed_happy: int, has_video: bool) -> List[str]:
        actions = []
        if failed_happy:
            actions.append("❌ **Do not merge** until Happy Path tests pass")
        actions.append("Review the failed test details above")
        if has_video:
            actions.append("Watch the video recording to understand failures")
        actions.append("Fix the identified issues and run the recipe again")
        return actions

    def render_markdown(self, run_result: RunResult) -> str:
        """Render the full Markdown report."""
        failures = [s for s in run_result.scenarios if _is_failure(s)]
        timeline = (
            generate_video_timeline(run_result)
            if self.config.include_timeline and run_result.full_video_path
            else []
        )
        failed_happy = sum(1 for s in failures if s.priority == ScenarioPriority.HAPPY_PATH)
        failed_critical = sum(
            1 for s in failures if s.priority == ScenarioPriority.CRITICAL_PATH
        )

        return self._template.render(
            run=run_result,
            config=self.config,
            all_passed=not failures and not run_result.skipped,
            video_duration=calculate_video_duration(run_result),
            pct=lambda count: _percent(count, run_result.total_tests),
            status_emoji=lambda status: STATUS_EMOJI.get(status, "❓"),
            timeline=timeline,
            timeline_by_index={item.scenario_index: item for item in timeline},
            groups=self._priority_groups(run_result),
            failures=failures,
            failed_happy=failed_happy,
            failed_critical=failed_critical,
            recommended_actions=self._recommended_actions(
                failed_happy, bool(run_result.full_video_path)
            ),
        )

    def write_report(
        self,
        run_result: RunResult,
        output_path: Optional[Union[str, Path]] = None,
    ) -> Path:
        """
        Write the Markdown report.

        Args:
            run_result: Finished run
            output_path: Target file, defaults to ``<resultsDir>/report.md``

        Returns:
            Path of the written report
        """
        path = Path(output_path) if output_path else Path(run_result.results_dir) / "report.md"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.render_markdown(run_result), encoding="utf-8")
        logger.info("Report written", extra={"path": str(path)})
        return path


def generate_quick_summary(run_result: RunResult) -> str:
    """Short Markdown summary listing failed scenarios."""
    failures = [s for s in run_result.scenarios if _is_failure(s)]
    emoji = "✅" if not failures and not run_result.skipped else "❌"

    lines = [
        f"## {emoji} Test Results",
        "",
        f"**{run_result.passed}/{run_result.total_tests} tests passed**",
    ]
    if failures:
        lines.extend(["", "Failed tests:"])
        lines.extend(f"- {s.scenario} ({s.status.value})" for s in failures)
    if run_result.skipped:
        lines.extend(["", f"Skipped: {run_result.skipped}"])
    return "\n".join(lines) + "\n"
