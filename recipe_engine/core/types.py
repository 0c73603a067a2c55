"""
Core data models and types for the recipe execution engine.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel

from recipe_engine.error_handling.exceptions import RecipeValidationError


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys (results.json format)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ScenarioPriority(str, Enum):
    """Priority labels used by test recipes."""

    HAPPY_PATH = "Happy Path"
    CRITICAL_PATH = "Critical Path"
    EDGE_CASE = "Edge Case"
    REGRESSION = "Regression"
    UNKNOWN = "Unknown"


class ScenarioStatus(str, Enum):
    """Status of a single scenario."""

    PENDING = "PENDING"
    PASS = "PASS"
    FAIL = "FAIL"
    ERROR = "ERROR"


class ActionType(str, Enum):
    """Closed vocabulary of browser actions."""

    NAVIGATE = "navigate"
    CLICK = "click"
    TYPE = "type"
    WAIT = "wait"
    VERIFY = "verify"
    SELECT = "select"
    HOVER = "hover"
    SCROLL = "scroll"


class ActionState(str, Enum):
    """Lifecycle of one action inside the executor."""

    PENDING = "PENDING"
    RUNNING = "RUNNING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class RunState(str, Enum):
    """Lifecycle of a run."""

    INITIALIZING = "INITIALIZING"
    RUNNING = "RUNNING"
    FINALIZING = "FINALIZING"
    COMPLETE = "COMPLETE"


class TestScenario(CamelModel):
    """One row of a test recipe."""

    __test__ = False  # not a pytest class

    scenario: str = Field(..., min_length=1, description="Scenario description")
    steps: str = Field("", description="Free-text steps, possibly numbered")
    expected: str = Field("", description="Free-text expected outcome")
    priority: ScenarioPriority = Field(ScenarioPriority.UNKNOWN)

    @field_validator("steps", "expected", mode="before")
    @classmethod
    def join_lines(cls, value: Any) -> Any:
        """Accept a list of lines as well as a block of text."""
        if value is None:
            return ""
        if isinstance(value, (list, tuple)):
            return "\n".join(str(item) for item in value)
        return value

    @field_validator("priority", mode="before")
    @classmethod
    def normalize_priority(cls, value: Any) -> ScenarioPriority:
        """Map free-form priority labels onto the enum."""
        if isinstance(value, ScenarioPriority):
            return value
        if not value:
            return ScenarioPriority.UNKNOWN
        text = str(value).strip().lower().replace("_", " ").replace("-", " ")
        for priority in ScenarioPriority:
            if priority.value.lower() == text:
                return priority
        return ScenarioPriority.UNKNOWN


class BaseAction(BaseModel):
    """Fields shared by every action variant."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    timeout: Optional[int] = Field(None, gt=0, description="Timeout in milliseconds")

    def describe(self) -> str:
        """Short human-readable target of the action."""
        for name in ("selector", "url", "condition", "assertion"):
            value = getattr(self, name, None)
            if value:
                return str(value)
        return ""


class NavigateAction(BaseAction):
    type: Literal["navigate"] = "navigate"
    url: str = Field(..., min_length=1)


class ClickAction(BaseAction):
    type: Literal["click"] = "click"
    selector: str = Field(..., min_length=1)


class TypeAction(BaseAction):
    type: Literal["type"] = "type"
    selector: str = Field(..., min_length=1)
    value: str

    @field_validator("value", mode="before")
    @classmethod
    def stringify_value(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class SelectAction(BaseAction):
    type: Literal["select"] = "select"
    selector: str = Field(..., min_length=1)
    value: str

    @field_validator("value", mode="before")
    @classmethod
    def stringify_value(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class HoverAction(BaseAction):
    type: Literal["hover"] = "hover"
    selector: str = Field(..., min_length=1)


class WaitAction(BaseAction):
    """Wait on a selector, else a load condition, else a fixed duration."""

    type: Literal["wait"] = "wait"
    selector: Optional[str] = None
    condition: Optional[str] = None


class ScrollAction(BaseAction):
    type: Literal["scroll"] = "scroll"
    selector: Optional[str] = None


class VerifyAction(BaseAction):
    type: Literal["verify"] = "verify"
    assertion: Optional[str] = None


Action = Annotated[
    Union[
        NavigateAction,
        ClickAction,
        TypeAction,
        WaitAction,
        VerifyAction,
        SelectAction,
        HoverAction,
        ScrollAction,
    ],
    Field(discriminator="type"),
]

ACTION_ADAPTER: TypeAdapter = TypeAdapter(Action)


class ActionRecord(CamelModel):
    """Execution record for one action of a scenario."""

    index: int
    action: Action
    state: ActionState = ActionState.PENDING
    duration: int = Field(0, description="Duration in milliseconds")
    error: Optional[str] = None


class ConsoleEntry(CamelModel):
    """A console message emitted by the page."""

    type: str
    text: str


class NetworkFailure(CamelModel):
    """A request that failed at the network level."""

    url: str
    method: Optional[str] = None
    failure: Optional[str] = None


class ScenarioResult(CamelModel):
    """Outcome and evidence for one scenario."""

    index: int
    scenario: str
    priority: ScenarioPriority = ScenarioPriority.UNKNOWN
    status: ScenarioStatus = ScenarioStatus.PENDING
    duration: int = Field(0, description="Duration in milliseconds")
    start_time: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    end_time: Optional[datetime] = None
    steps: str = ""
    expected: str = ""
    actual_result: Optional[str] = None
    error: Optional[str] = None
    screenshot_path: Optional[str] = None
    video_path: Optional[str] = None
    console_logs: List[ConsoleEntry] = Field(default_factory=list)
    network_errors: List[NetworkFailure] = Field(default_factory=list)
    actions: List[ActionRecord] = Field(default_factory=list)


class RunResult(CamelModel):
    """Aggregate result of one run; read-only once COMPLETE."""

    execution_id: str
    base_url: str
    start_time: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    video_start_time: Optional[datetime] = Field(
        None, description="When the browser context, and its recording, started"
    )
    end_time: Optional[datetime] = None
    duration: int = Field(0, description="Duration in milliseconds")
    total_tests: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    scenarios: List[ScenarioResult] = Field(default_factory=list)
    full_video_path: Optional[str] = None
    results_dir: str
    state: RunState = RunState.INITIALIZING
    error: Optional[str] = None

    def _ensure_mutable(self) -> None:
        if self.state == RunState.COMPLETE:
            raise RuntimeError(f"Run {self.execution_id} is complete and read-only")

    def record_scenario(self, result: ScenarioResult) -> None:
        """Append a finished scenario and update the counters."""
        self._ensure_mutable()
        if result.status == ScenarioStatus.PENDING:
            raise ValueError(f"Scenario {result.index} has no terminal status")

        self.scenarios.append(result)
        if result.status == ScenarioStatus.PASS:
            self.passed += 1
        else:
            self.failed += 1

    def record_skipped(self, count: int) -> None:
        """Count scenarios that never started."""
        self._ensure_mutable()
        if count > 0:
            self.skipped += count

    def complete(self, end_time: datetime, duration_ms: int) -> None:
        """Seal the run."""
        self._ensure_mutable()
        self.end_time = end_time
        self.duration = duration_ms
        self.state = RunState.COMPLETE

    @property
    def counters_consistent(self) -> bool:
        return self.total_tests == self.passed + self.failed + self.skipped

    def to_json(self, indent: int = 2) -> str:
        return self.model_dump_json(by_alias=True, indent=indent)


class ExecutionOptions(CamelModel):
    """Options accepted by a run."""

    record_video: bool = True
    take_screenshots: bool = True
    headless: bool = True
    slow_mo: int = Field(100, ge=0)
    timeout: int = Field(30000, ge=1)
    viewport_width: int = Field(1280, ge=320)
    viewport_height: int = Field(720, ge=240)
    action_timeout: int = Field(10000, ge=1)
    default_wait: int = Field(2000, ge=0)
    inter_scenario_delay: int = Field(1000, ge=0)
    visible_text_limit: int = Field(2000, ge=1)
    results_root: Path = Path("test-results")


class PageState(BaseModel):
    """Snapshot of the page handed to the verification oracle."""

    url: str
    title: str
    html: str
    visible_text: str


class VerificationResult(CamelModel):
    """Verdict of the outcome verifier."""

    passed: bool
    reason: str = ""
    actual_result: str = ""


class TranslationRequest(BaseModel):
    """Input of the action oracle."""

    steps: str
    expected: str
    base_url: str


class VerificationRequest(BaseModel):
    """Input of the verification oracle."""

    expected: str
    page_state: PageState


_RECIPE_ADAPTER: TypeAdapter = TypeAdapter(List[TestScenario])


def parse_test_recipe(data: Any) -> List[TestScenario]:
    """
    Validate raw recipe data.

    Accepts a list of scenario objects, or an object wrapping that list
    under ``testRecipe``.

    Raises:
        RecipeValidationError: If the data is not a valid recipe
    """
    if isinstance(data, dict):
        for key in ("testRecipe", "test_recipe", "scenarios"):
            if isinstance(data.get(key), list):
                data = data[key]
                break

    if not isinstance(data, list):
        raise RecipeValidationError(
            f"Test recipe must be a list of scenarios, got {type(data).__name__}"
        )

    try:
        return _RECIPE_ADAPTER.validate_python(data)
    except ValidationError as exc:
        errors = [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        ]
        raise RecipeValidationError(
            f"Invalid test recipe: {len(errors)} error(s)", errors=errors, cause=exc
        ) from exc


def load_test_recipe(path: Path) -> List[TestScenario]:
    """Load and validate a recipe from a JSON file."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data: Union[List[Any], Dict[str, Any]] = json.load(f)
    except json.JSONDecodeError as exc:
        raise RecipeValidationError(f"Invalid JSON in recipe file: {exc}", cause=exc) from exc

    return parse_test_recipe(data)
