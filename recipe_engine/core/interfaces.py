"""
Core interfaces and abstract base classes for the recipe execution engine.
"""

import inspect
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Union

from recipe_engine.core.types import TranslationRequest, VerificationRequest


class ActionOracle(ABC):
    """Turns free-text steps into raw (unvalidated) action data."""

    @abstractmethod
    async def propose_actions(self, request: TranslationRequest) -> Any:
        """
        Propose browser actions for a scenario.

        Args:
            request: Steps, expected outcome and base URL

        Returns:
            Raw oracle output: JSON text, a list, or an object wrapping a list
        """
        pass


class VerificationOracle(ABC):
    """Judges whether a page state satisfies a free-text expectation."""

    @abstractmethod
    async def judge(self, request: VerificationRequest) -> Any:
        """
        Judge the page state against the expectation.

        Args:
            request: Expected outcome and captured page state

        Returns:
            Raw verdict: JSON text or an object with passed/reason/actualResult
        """
        pass


ActionOracleLike = Union[ActionOracle, Callable[[TranslationRequest], Any]]
VerificationOracleLike = Union[VerificationOracle, Callable[[VerificationRequest], Any]]


async def consult_oracle(
    oracle: Union[ActionOracleLike, VerificationOracleLike],
    request: Union[TranslationRequest, VerificationRequest],
) -> Any:
    """Call an oracle object or plain (sync or async) function."""
    if isinstance(oracle, ActionOracle):
        result: Union[Any, Awaitable[Any]] = oracle.propose_actions(request)
    elif isinstance(oracle, VerificationOracle):
        result = oracle.judge(request)
    else:
        result = oracle(request)

    if inspect.isawaitable(result):
        result = await result
    return result


class ConfigProvider(ABC):
    """Abstract interface for configuration management."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        pass

    @abstractmethod
    def get_required(self, key: str) -> Any:
        """Get required configuration value, raise if missing."""
        pass

    @abstractmethod
    def get_all(self) -> Dict[str, Any]:
        """Get all configuration values."""
        pass
