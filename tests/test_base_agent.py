"""
Unit tests for base agent implementation.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from recipe_engine.agents.base_agent import BaseAgent
from recipe_engine.config.settings import AgentModelConfig, Settings


@pytest.fixture
def settings():
    configured = Settings(openai_api_key="")
    configured.agent_models["tester"] = AgentModelConfig(
        model="gpt-4.1", temperature=0.1, reasoning_level="high"
    )
    with patch("recipe_engine.agents.base_agent.get_settings", return_value=configured):
        yield configured


class TestBaseAgent:
    """Tests for BaseAgent class."""

    def test_explicit_initialization(self):
        """Explicit values skip the settings lookup."""
        with patch("recipe_engine.agents.base_agent.get_settings") as get_settings:
            agent = BaseAgent(
                name="TestAgent",
                model="gpt-4o-mini",
                system_prompt="Custom prompt",
                temperature=0.5,
                reasoning_level="low",
            )

        get_settings.assert_not_called()
        assert agent.model == "gpt-4o-mini"
        assert agent.system_prompt == "Custom prompt"
        assert agent.temperature == 0.5
        assert agent.reasoning_level == "low"

    def test_configured_model(self, settings):
        agent = BaseAgent(name="Tester", agent_key="tester")

        assert agent.model == "gpt-4.1"
        assert agent.temperature == 0.1
        assert agent.reasoning_level == "high"
        assert "Tester" in agent.system_prompt

    def test_unknown_key_falls_back_to_default_model(self, settings):
        agent = BaseAgent(name="Unlisted")

        assert agent.model == settings.openai_model
        assert agent.temperature == settings.openai_temperature

    def test_explicit_temperature_overrides_config(self, settings):
        agent = BaseAgent(name="Tester", agent_key="tester", temperature=0.0)

        assert agent.temperature == 0.0
        assert agent.model == "gpt-4.1"

    @patch("recipe_engine.agents.base_agent.OpenAIClient")
    def test_client_lazy_loading(self, mock_client_class, settings):
        agent = BaseAgent(name="Tester", agent_key="tester")

        mock_client_class.assert_not_called()

        client = agent.client
        mock_client_class.assert_called_once_with(model="gpt-4.1", reasoning_level="high")
        assert agent.client is client
        mock_client_class.assert_called_once()

    @pytest.mark.asyncio
    async def test_call_openai(self, settings):
        agent = BaseAgent(name="Tester", agent_key="tester", system_prompt="Be terse")
        agent._client = MagicMock()
        agent._client.call = AsyncMock(return_value={"content": {"ok": True}})

        messages = agent.build_messages("Translate this")
        result = await agent.call_openai(messages, response_format={"type": "json_object"})

        assert result == {"content": {"ok": True}}
        agent._client.call.assert_awaited_once_with(
            messages=[{"role": "user", "content": "Translate this"}],
            temperature=0.1,
            system_prompt="Be terse",
            response_format={"type": "json_object"},
        )

    def test_build_messages_with_assistant(self):
        agent = BaseAgent(name="Tester", model="gpt-4o", temperature=0.3, reasoning_level="low")

        messages = agent.build_messages("question", assistant_content="previous answer")

        assert messages == [
            {"role": "user", "content": "question"},
            {"role": "assistant", "content": "previous answer"},
        ]
