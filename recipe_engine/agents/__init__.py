"""
Agents module exports.
"""

from recipe_engine.agents.base_agent import BaseAgent
from recipe_engine.agents.outcome_verifier import (
    OutcomeVerifier,
    OutcomeVerifierAgent,
    parse_verdict,
)
from recipe_engine.agents.rule_based import (
    KeywordVerificationOracle,
    RuleBasedActionOracle,
)
from recipe_engine.agents.step_translator import (
    StepTranslator,
    StepTranslatorAgent,
    extract_action_list,
    validate_actions,
)

__all__ = [
    "BaseAgent",
    "KeywordVerificationOracle",
    "OutcomeVerifier",
    "OutcomeVerifierAgent",
    "RuleBasedActionOracle",
    "StepTranslator",
    "StepTranslatorAgent",
    "extract_action_list",
    "parse_verdict",
    "validate_actions",
]
