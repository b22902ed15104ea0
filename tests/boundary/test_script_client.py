"""
Unit tests for the script gateway clients.

Tests cover:
- Deterministic mock script generation and refinement
- OpenAI client structured output handling (chat model mocked)
- Error wrapping into ScriptGenerationError
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from trailer_backend.boundary.gateway.script_client import MockScriptClient, OpenAIScriptClient
from trailer_backend.core.exceptions import ScriptGenerationError
from trailer_backend.models.script import GeneratedScript, ScriptGenerationInput, ScriptScene


@pytest.fixture
def script_input():
    return ScriptGenerationInput(
        project_title="DevLens",
        project_description="AI code review in your editor",
        key_features=["inline review", "security hints"],
        tone="energetic",
        duration=30,
    )


@pytest.fixture
def structured():
    """Structured-output runnable returned by the chat model."""
    runnable = MagicMock()
    runnable.ainvoke = AsyncMock()
    return runnable


@pytest.fixture
def openai_client(structured):
    llm = MagicMock()
    llm.with_structured_output.return_value = structured
    return OpenAIScriptClient(api_key="sk-test", llm=llm)


class TestMockScriptClient:
    """Test the offline script writer."""

    @pytest.mark.asyncio
    async def test_generates_three_contiguous_scenes(self, script_input):
        script = await MockScriptClient().generate(script_input)

        assert [scene.id for scene in script.scenes] == ["scene_1", "scene_2", "scene_3"]
        assert script.scenes[0].start_time == 0
        assert script.scenes[-1].end_time == 30
        assert "DevLens" in script.title
        assert script.duration == 30

    @pytest.mark.asyncio
    async def test_generation_is_deterministic(self, script_input):
        first = await MockScriptClient().generate(script_input)
        second = await MockScriptClient().generate(script_input)

        assert first == second

    @pytest.mark.asyncio
    async def test_refine_keeps_scenes_and_records_feedback(self, script_input):
        client = MockScriptClient()
        script = await client.generate(script_input)

        refined = await client.refine(script, "Make it punchier")

        assert refined.scenes == script.scenes
        assert "Make it punchier" in refined.script
        assert "Make it punchier" not in script.script


class TestOpenAIScriptClient:
    """Test the chat model backed writer."""

    @pytest.mark.asyncio
    async def test_generate_returns_structured_script(self, openai_client, structured, script_input):
        # Arrange
        expected = GeneratedScript(
            title="DevLens",
            script="Review faster.",
            scenes=[ScriptScene(description="Editor with review hints")],
        )
        structured.ainvoke.return_value = expected

        # Act
        script = await openai_client.generate(script_input)

        # Assert
        assert script == expected
        messages = structured.ainvoke.await_args.args[0]
        assert "DevLens" in messages[-1].content
        assert "inline review, security hints" in messages[-1].content

    @pytest.mark.asyncio
    async def test_provider_error_is_wrapped(self, openai_client, structured, script_input):
        structured.ainvoke.side_effect = TimeoutError("upstream timeout")

        with pytest.raises(ScriptGenerationError) as exc_info:
            await openai_client.generate(script_input)

        assert exc_info.value.details["provider"] == "openai"

    @pytest.mark.asyncio
    async def test_script_without_scenes_is_rejected(self, openai_client, structured):
        structured.ainvoke.return_value = GeneratedScript(title="DevLens", script="Review faster.")
        script = GeneratedScript(
            title="DevLens", script="Old", scenes=[ScriptScene(description="Editor")]
        )

        with pytest.raises(ScriptGenerationError, match="Invalid script structure"):
            await openai_client.refine(script, "Shorter")
