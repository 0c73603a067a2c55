"""
Model client exports.
"""

from recipe_engine.models.openai_client import OpenAIClient

__all__ = ["OpenAIClient"]
