"""
Orchestration module exports.
"""

from recipe_engine.orchestration.run_aggregator import (
    RunAggregator,
    default_session_factory,
    execute_test_recipe,
)

__all__ = [
    "RunAggregator",
    "default_session_factory",
    "execute_test_recipe",
]
