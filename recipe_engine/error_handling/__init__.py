"""
Error handling for the recipe execution engine.
"""

from .exceptions import (
    ExecutionError,
    RecipeEngineError,
    RecipeValidationError,
    RunFatalError,
    TranslationError,
    VerificationError,
)

__all__ = [
    "RecipeEngineError",
    "TranslationError",
    "ExecutionError",
    "VerificationError",
    "RunFatalError",
    "RecipeValidationError",
]
