"""
Exception hierarchy for the recipe execution engine.

Scenario-level errors (translation, execution) are caught by the run
aggregator and recorded on the scenario. Only RunFatalError aborts a run.
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from recipe_engine.core.types import ActionRecord


class RecipeEngineError(Exception):
    """Base exception for all recipe engine errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None,
        }


class TranslationError(RecipeEngineError):
    """Step text could not be turned into a valid action sequence."""

    def __init__(
        self,
        message: str,
        invalid_index: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.invalid_index = invalid_index
        self.details.update({"invalid_index": invalid_index})


class ExecutionError(RecipeEngineError):
    """A browser action failed; the rest of the scenario is skipped."""

    def __init__(
        self,
        message: str,
        action_type: Optional[str] = None,
        action_index: Optional[int] = None,
        selector: Optional[str] = None,
        url: Optional[str] = None,
        records: Optional[List["ActionRecord"]] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.action_type = action_type
        self.action_index = action_index
        self.selector = selector
        self.url = url
        self.records = records or []
        self.details.update({
            "action_type": action_type,
            "action_index": action_index,
            "selector": selector,
            "url": url,
        })


class VerificationError(RecipeEngineError):
    """The verification oracle failed or returned a malformed verdict."""

    def __init__(
        self,
        message: str,
        raw_verdict: Any = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.raw_verdict = raw_verdict
        self.details.update({"raw_verdict": str(raw_verdict)[:500] if raw_verdict is not None else None})


class RunFatalError(RecipeEngineError):
    """A run-level resource could not be acquired."""

    def __init__(
        self,
        message: str,
        phase: str,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.phase = phase
        self.details.update({"phase": phase})


class RecipeValidationError(RecipeEngineError):
    """The supplied test recipe does not match the expected shape."""

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.errors = errors or []
        self.details.update({"errors": self.errors})
