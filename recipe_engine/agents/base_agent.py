"""
Base implementation for the OpenAI-backed oracles.
"""

import logging
from typing import Any, Dict, List, Optional

from recipe_engine.config.settings import get_settings
from recipe_engine.models.openai_client import OpenAIClient


class BaseAgent:
    """Base implementation of an oracle agent with OpenAI integration."""

    def __init__(
        self,
        name: str,
        model: Optional[str] = None,
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
        reasoning_level: Optional[str] = None,
        agent_key: Optional[str] = None,
    ) -> None:
        """
        Initialize the base agent.

        Args:
            name: Name identifier for the agent
            model: OpenAI model to use (defaults to the configured model for agent_key)
            system_prompt: System prompt for the agent
            temperature: Temperature for model responses
            reasoning_level: Reasoning effort for Responses API models
            agent_key: Settings key holding this agent's model configuration
        """
        self.name = name
        self.logger = logging.getLogger(f"agent.{name}")

        model_config = None
        if model is None or temperature is None or reasoning_level is None:
            model_config = get_settings().get_agent_model_config(agent_key or name)

        self.model = model or model_config.model
        self.temperature = temperature if temperature is not None else model_config.temperature
        self.reasoning_level = reasoning_level or model_config.reasoning_level
        self.system_prompt = system_prompt or self._get_default_system_prompt()
        self._client: Optional[OpenAIClient] = None

    def _get_default_system_prompt(self) -> str:
        """Get default system prompt for the agent."""
        return (
            f"You are {self.name}, part of an automated browser testing system. "
            "Always be precise and factual, and return only valid JSON."
        )

    @property
    def client(self) -> OpenAIClient:
        """Lazy-load OpenAI client."""
        if self._client is None:
            self._client = OpenAIClient(
                model=self.model, reasoning_level=self.reasoning_level
            )
        return self._client

    async def call_openai(
        self,
        messages: List[Dict[str, Any]],
        temperature: Optional[float] = None,
        response_format: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Make a call to OpenAI API.

        Args:
            messages: List of message dictionaries
            temperature: Override default temperature
            response_format: Optional response format specification

        Returns:
            API response
        """
        return await self.client.call(
            messages=messages,
            temperature=temperature if temperature is not None else self.temperature,
            system_prompt=self.system_prompt,
            response_format=response_format,
        )

    def build_messages(
        self,
        user_content: str,
        assistant_content: Optional[str] = None,
    ) -> List[Dict[str, str]]:
        """Build message list for OpenAI API."""
        messages = [{"role": "user", "content": user_content}]

        if assistant_content:
            messages.append({"role": "assistant", "content": assistant_content})

        return messages
