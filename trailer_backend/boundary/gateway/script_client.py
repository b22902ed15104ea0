"""
Script gateway clients.

ScriptGatewayClient writes and refines promotional video scripts.
OpenAIScriptClient asks a chat model for a GeneratedScript through
structured output; MockScriptClient builds a deterministic script from
the project details for development and tests.

Dependencies: langchain_openai, langchain_core, trailer_backend.models.script
System role: Script generation provider boundary
"""

import logging
from abc import ABC, abstractmethod

from langchain_openai import ChatOpenAI

from trailer_backend.boundary.gateway.script_prompt import (
    SCRIPT_GENERATION_PROMPT,
    SCRIPT_REFINEMENT_PROMPT,
)
from trailer_backend.core.exceptions import ScriptGenerationError
from trailer_backend.models.script import GeneratedScript, ScriptGenerationInput, ScriptScene

logger = logging.getLogger(__name__)


class ScriptGatewayClient(ABC):
    """Writes promotional video scripts."""

    provider_name: str = "script"

    @abstractmethod
    async def generate(self, script_input: ScriptGenerationInput) -> GeneratedScript:
        """
        Write a new script.

        Args:
            script_input: Project details

        Returns:
            GeneratedScript with at least one scene

        Raises:
            ScriptGenerationError: If the provider fails or returns an unusable script
        """

    @abstractmethod
    async def refine(self, script: GeneratedScript, feedback: str) -> GeneratedScript:
        """
        Rewrite a script according to user feedback.

        Args:
            script: Script to refine
            feedback: User feedback

        Returns:
            GeneratedScript

        Raises:
            ScriptGenerationError: If the provider fails or returns an unusable script
        """


class OpenAIScriptClient(ScriptGatewayClient):
    """
    Script writer backed by an OpenAI chat model.

    Usage:
        client = OpenAIScriptClient(api_key=settings.gateway.openai_api_key)
        script = await client.generate(script_input)
    """

    provider_name = "openai"

    def __init__(
        self,
        api_key: str,
        model_name: str = "gpt-4o",
        temperature: float = 0.7,
        llm: ChatOpenAI | None = None,
    ) -> None:
        """
        Initialize the script writer.

        Args:
            api_key: OpenAI API key
            model_name: Chat model id
            temperature: Sampling temperature
            llm: Preconfigured chat model
        """
        self.model = llm or ChatOpenAI(
            model=model_name,
            temperature=temperature,
            api_key=api_key,
            max_tokens=1500,
        )
        self._structured = self.model.with_structured_output(GeneratedScript)
        logger.info(f"Initialized OpenAI script client with {model_name}")

    async def generate(self, script_input: ScriptGenerationInput) -> GeneratedScript:
        logger.info(f"{__name__}:generate - Writing script for '{script_input.project_title}'")
        messages = SCRIPT_GENERATION_PROMPT.format_messages(
            project_title=script_input.project_title,
            project_description=script_input.project_description,
            target_audience=script_input.target_audience,
            key_features=", ".join(script_input.key_features),
            tone=script_input.tone,
            duration=script_input.duration,
            has_personal_photo="Yes" if script_input.personal_photo_url else "No",
            product_image_count=len(script_input.product_images),
        )
        return await self._invoke(messages, "generation")

    async def refine(self, script: GeneratedScript, feedback: str) -> GeneratedScript:
        logger.info(f"{__name__}:refine - Refining script '{script.title}'")
        messages = SCRIPT_REFINEMENT_PROMPT.format_messages(
            script_json=script.model_dump_json(by_alias=True, indent=2),
            feedback=feedback,
        )
        return await self._invoke(messages, "refinement")

    async def _invoke(self, messages: list, operation: str) -> GeneratedScript:
        try:
            script = await self._structured.ainvoke(messages)
        except Exception as e:
            logger.error(f"{__name__}:_invoke - Script {operation} failed: {type(e).__name__}: {e}")
            raise ScriptGenerationError(
                f"Script {operation} failed: {e}",
                provider=self.provider_name,
            ) from e

        if script is None or not script.title or not script.script or not script.scenes:
            raise ScriptGenerationError(
                f"Invalid script structure returned from {self.provider_name}",
                provider=self.provider_name,
            )
        logger.info(f"{__name__}:_invoke - Script {operation} completed: {script.title}")
        return script


class MockScriptClient(ScriptGatewayClient):
    """Deterministic three-scene script writer."""

    provider_name = "mock"

    async def generate(self, script_input: ScriptGenerationInput) -> GeneratedScript:
        title = script_input.project_title
        features = ", ".join(script_input.key_features) or "powerful features"
        scene_length = script_input.duration / 3
        beats = [
            (
                f"A developer at a desk struggling with the problem {title} solves",
                "typing and sighing at a cluttered screen",
                "a dim home office",
                "frustrated",
                f"Tired of fighting your tools? Meet {title}.",
            ),
            (
                f"The {title} interface showcasing {features}",
                "smooth cursor moving through the product",
                "a clean modern workspace",
                "energetic",
                script_input.project_description,
            ),
            (
                f"The {title} logo over a glowing gradient",
                "logo animating into view",
                "a minimal studio backdrop",
                "confident",
                f"Try {title} today.",
            ),
        ]
        scenes = [
            ScriptScene(
                id=f"scene_{index}",
                start_time=round((index - 1) * scene_length, 2),
                end_time=round(index * scene_length, 2),
                description=description,
                action=action,
                setting=setting,
                mood=mood,
                voiceover=voiceover,
                visual_elements=[description],
                transition="fade",
            )
            for index, (description, action, setting, mood, voiceover) in enumerate(beats, start=1)
        ]
        voiceover = " ".join(scene.voiceover for scene in scenes)
        return GeneratedScript(
            title=f"{title}: Built for {script_input.target_audience}",
            script=voiceover,
            scenes=scenes,
            duration=script_input.duration,
            voiceover=voiceover,
            visual_cues=[f"{script_input.tone} tone", "high contrast product shots"],
        )

    async def refine(self, script: GeneratedScript, feedback: str) -> GeneratedScript:
        refined = script.model_copy(deep=True)
        refined.script = f"{script.script}\n\n[Revised: {feedback}]"
        refined.visual_cues = [*script.visual_cues, feedback]
        return refined
