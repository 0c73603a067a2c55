"""
Core module exports.
"""

from recipe_engine.core.interfaces import (
    ActionOracle,
    ConfigProvider,
    VerificationOracle,
    consult_oracle,
)
from recipe_engine.core.types import (
    ACTION_ADAPTER,
    Action,
    ActionRecord,
    ActionState,
    ActionType,
    ClickAction,
    ConsoleEntry,
    ExecutionOptions,
    HoverAction,
    NavigateAction,
    NetworkFailure,
    PageState,
    RunResult,
    RunState,
    ScenarioPriority,
    ScenarioResult,
    ScenarioStatus,
    ScrollAction,
    SelectAction,
    TestScenario,
    TranslationRequest,
    TypeAction,
    VerificationRequest,
    VerificationResult,
    VerifyAction,
    WaitAction,
    load_test_recipe,
    parse_test_recipe,
)

__all__ = [
    # Interfaces
    "ActionOracle",
    "VerificationOracle",
    "ConfigProvider",
    "consult_oracle",
    # Types
    "ACTION_ADAPTER",
    "Action",
    "ActionRecord",
    "ActionState",
    "ActionType",
    "ClickAction",
    "ConsoleEntry",
    "ExecutionOptions",
    "HoverAction",
    "NavigateAction",
    "NetworkFailure",
    "PageState",
    "RunResult",
    "RunState",
    "ScenarioPriority",
    "ScenarioResult",
    "ScenarioStatus",
    "ScrollAction",
    "SelectAction",
    "TestScenario",
    "TranslationRequest",
    "TypeAction",
    "VerificationRequest",
    "VerificationResult",
    "VerifyAction",
    "WaitAction",
    "load_test_recipe",
    "parse_test_recipe",
]
