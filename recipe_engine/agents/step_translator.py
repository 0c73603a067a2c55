"""Step Translator implementation.

Turns a scenario's free-text steps into a validated sequence of browser
actions by consulting an action oracle.
"""

import json
from typing import Any, List, Optional

from pydantic import ValidationError

from recipe_engine.agents.base_agent import BaseAgent
from recipe_engine.config.agent_prompts import (
    STEP_TRANSLATOR_SYSTEM_PROMPT,
    STEP_TRANSLATOR_USER_TEMPLATE,
)
from recipe_engine.core.interfaces import ActionOracle, ActionOracleLike, consult_oracle
from recipe_engine.core.types import ACTION_ADAPTER, Action, TranslationRequest
from recipe_engine.error_handling.exceptions import TranslationError
from recipe_engine.monitoring.logger import get_logger

logger = get_logger(__name__)


class StepTranslatorAgent(BaseAgent, ActionOracle):
    """
    Action oracle backed by an OpenAI chat model.

    The model is asked for a JSON object wrapping the action list; the raw
    content is returned untouched and unwrapped by the StepTranslator.
    """

    def __init__(self, name: str = "StepTranslator", **kwargs):
        """Initialize the Step Translator Agent."""
        kwargs.setdefault("agent_key", "step_translator")
        super().__init__(name=name, **kwargs)
        self.system_prompt = STEP_TRANSLATOR_SYSTEM_PROMPT

    async def propose_actions(self, request: TranslationRequest) -> Any:
        prompt = self._build_translation_prompt(request)
        response = await self.call_openai(
            messages=self.build_messages(prompt),
            response_format={"type": "json_object"},
        )
        return response.get("content")

    def _build_translation_prompt(self, request: TranslationRequest) -> str:
        return STEP_TRANSLATOR_USER_TEMPLATE.format(
            base_url=request.base_url,
            steps=request.steps or "(no steps given)",
            expected=request.expected or "(no expected result given)",
        )


def extract_action_list(raw: Any) -> Optional[List[Any]]:
    """
    Find the action array in raw oracle output.

    JSON text is decoded first. A list is used as-is; an object is searched
    for an ``actions`` array, then for the first array among its values.

    Returns:
        The array, or None when no array can be found
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return None

    if isinstance(raw, list):
        return raw

    if isinstance(raw, dict):
        if isinstance(raw.get("actions"), list):
            return raw["actions"]
        for value in raw.values():
            if isinstance(value, list):
                return value

    return None


def validate_actions(items: List[Any]) -> List[Action]:
    """
    Validate raw items against the action vocabulary.

    Null-valued fields are ignored; fields the action type does not use are
    dropped.

    Raises:
        TranslationError: On the first item that is not a valid action
    """
    actions: List[Action] = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise TranslationError(
                f"Action {index} is not an object: {item!r}",
                invalid_index=index,
            )
        cleaned = {key: value for key, value in item.items() if value is not None}
        try:
            actions.append(ACTION_ADAPTER.validate_python(cleaned))
        except ValidationError as exc:
            errors = "; ".join(
                f"{'.'.join(str(part) for part in error['loc']) or 'type'}: {error['msg']}"
                for error in exc.errors()
            )
            raise TranslationError(
                f"Action {index} is invalid: {errors}",
                invalid_index=index,
                cause=exc,
            ) from exc
    return actions


class StepTranslator:
    """Converts scenario steps into validated actions via an action oracle."""

    def __init__(self, oracle: ActionOracleLike) -> None:
        self.oracle = oracle

    async def translate(self, steps: str, expected: str, base_url: str) -> List[Action]:
        """
        Translate free-text steps into actions.

        Returns an empty list when the oracle output holds no action array.

        Raises:
            TranslationError: If the oracle fails or an item is not a valid action
        """
        request = TranslationRequest(steps=steps, expected=expected, base_url=base_url)

        try:
            raw = await consult_oracle(self.oracle, request)
        except Exception as exc:
            logger.error("Action oracle failed", extra={"error": str(exc)})
            raise TranslationError(f"Action oracle failed: {exc}", cause=exc) from exc

        items = extract_action_list(raw)
        if items is None:
            logger.warning(
                "Oracle output contained no action list",
                extra={"raw_preview": str(raw)[:200]},
            )
            return []

        actions = validate_actions(items)
        logger.info(
            "Steps translated",
            extra={
                "action_count": len(actions),
                "action_types": [action.type for action in actions],
            },
        )
        return actions
