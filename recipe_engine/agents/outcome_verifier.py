"""Outcome Verifier implementation.

Captures the state of the page after a scenario's actions and asks a
verification oracle whether the expected result holds. Verification is
fail-closed: any failure along the way yields a failed verdict.
"""

import json
from typing import Any

from recipe_engine.agents.base_agent import BaseAgent
from recipe_engine.config.agent_prompts import (
    OUTCOME_VERIFIER_SYSTEM_PROMPT,
    OUTCOME_VERIFIER_USER_TEMPLATE,
)
from recipe_engine.core.interfaces import (
    VerificationOracle,
    VerificationOracleLike,
    consult_oracle,
)
from recipe_engine.core.types import PageState, VerificationRequest, VerificationResult
from recipe_engine.error_handling.exceptions import VerificationError
from recipe_engine.monitoring.logger import get_logger

logger = get_logger(__name__)

UNABLE_TO_VERIFY = "Unable to verify"
DEFAULT_FAIL_REASON = "Expected result not satisfied"

VISIBLE_TEXT_SCRIPT = "() => document.body ? document.body.innerText : ''"


class OutcomeVerifierAgent(BaseAgent, VerificationOracle):
    """Verification oracle backed by an OpenAI chat model."""

    def __init__(self, name: str = "OutcomeVerifier", visible_text_limit: int = 2000, **kwargs):
        """Initialize the Outcome Verifier Agent."""
        kwargs.setdefault("agent_key", "outcome_verifier")
        super().__init__(name=name, **kwargs)
        self.system_prompt = OUTCOME_VERIFIER_SYSTEM_PROMPT
        self.visible_text_limit = visible_text_limit

    async def judge(self, request: VerificationRequest) -> Any:
        prompt = OUTCOME_VERIFIER_USER_TEMPLATE.format(
            expected=request.expected,
            url=request.page_state.url,
            title=request.page_state.title,
            visible_text_limit=self.visible_text_limit,
            visible_text=request.page_state.visible_text[: self.visible_text_limit],
        )
        response = await self.call_openai(
            messages=self.build_messages(prompt),
            response_format={"type": "json_object"},
        )
        return response.get("content")


def parse_verdict(raw: Any) -> VerificationResult:
    """
    Parse raw oracle output into a verdict.

    Raises:
        VerificationError: If the output is not an object with a boolean ``passed``
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise VerificationError(
                f"Verdict is not valid JSON: {exc}", raw_verdict=raw, cause=exc
            ) from exc

    if not isinstance(raw, dict):
        raise VerificationError(
            f"Verdict must be an object, got {type(raw).__name__}", raw_verdict=raw
        )

    passed = raw.get("passed")
    if not isinstance(passed, bool):
        raise VerificationError(
            f"Verdict field 'passed' must be a boolean, got {passed!r}", raw_verdict=raw
        )

    actual = raw.get("actualResult", raw.get("actual_result"))
    reason = str(raw.get("reason") or "")
    if not passed and not reason.strip():
        reason = DEFAULT_FAIL_REASON
    return VerificationResult(
        passed=passed,
        reason=reason,
        actual_result="" if actual is None else str(actual),
    )


class OutcomeVerifier:
    """Checks free-text expectations against the live page."""

    def __init__(self, oracle: VerificationOracleLike, visible_text_limit: int = 2000) -> None:
        self.oracle = oracle
        self.visible_text_limit = visible_text_limit

    async def capture_page_state(self, page: Any) -> PageState:
        """Snapshot url, title, full HTML and truncated visible text."""
        visible_text = await page.evaluate(VISIBLE_TEXT_SCRIPT)
        return PageState(
            url=page.url,
            title=await page.title(),
            html=await page.content(),
            visible_text=(visible_text or "")[: self.visible_text_limit],
        )

    async def verify(self, page: Any, expected: str) -> VerificationResult:
        """
        Verify the expected result against the current page.

        Never raises; failures produce ``passed=False`` with a
        ``Verification error: ...`` reason.
        """
        try:
            page_state = await self.capture_page_state(page)
            raw = await consult_oracle(
                self.oracle, VerificationRequest(expected=expected, page_state=page_state)
            )
            result = parse_verdict(raw)
        except Exception as exc:
            logger.warning(
                "Verification failed closed",
                extra={"error": str(exc), "error_type": type(exc).__name__},
            )
            return VerificationResult(
                passed=False,
                reason=f"Verification error: {exc}",
                actual_result=UNABLE_TO_VERIFY,
            )

        logger.info(
            "Verification complete",
            extra={"passed": result.passed, "reason": result.reason[:200]},
        )
        return result
