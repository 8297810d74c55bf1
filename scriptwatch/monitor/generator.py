"""
Script Generator

Produces a sales script from chat context with one LLM call. When a
trigger message is given, the prompt is scoped to that single message;
otherwise the most recent messages are used.
"""

import asyncio
import logging
import time
from pathlib import Path
from typing import Optional, Sequence

from .errors import GenerationError
from .models import GenerationMode, GenerationResult, Message
from .providers.base import InferenceProvider
from .prompts.templates import (
    RECENT_MESSAGE_LIMIT,
    SYSTEM_INSTRUCTION,
    build_script_prompt,
    load_reference_section,
)

logger = logging.getLogger(__name__)


def select_context(
    messages: Sequence[Message],
    trigger_message_id: Optional[int] = None,
    limit: int = RECENT_MESSAGE_LIMIT,
) -> list[Message]:
    """
    Messages the prompt is built from.

    Raises:
        GenerationError: If the trigger message is not in the snapshot
    """
    if trigger_message_id is not None:
        for message in messages:
            if message.id == trigger_message_id:
                return [message]
        raise GenerationError(f"Target message ID {trigger_message_id} not found")
    return list(messages[-limit:])


class ScriptGenerator:
    """Builds the prompt and calls the provider."""

    def __init__(
        self,
        provider: InferenceProvider,
        chat_model: str = "gpt-4o-mini",
        reasoning_model: str = "o4-mini",
        model_override: Optional[str] = None,
        reference_dir: Optional[Path] = None,
        reference_files: Sequence[str] = (),
        temperature: float = 0.7,
        reasoning_effort: str = "medium",
    ):
        """
        Initialize generator.

        Args:
            provider: Inference provider for completions
            chat_model: Model for direct mode
            reasoning_model: Model for reasoning mode
            model_override: If set, used for both modes
            reference_dir: Directory holding reference CSVs
            reference_files: Reference file names appended to the prompt
            temperature: Sampling temperature for direct mode
            reasoning_effort: Effort level for reasoning mode
        """
        self.provider = provider
        self.chat_model = chat_model
        self.reasoning_model = reasoning_model
        self.model_override = model_override
        self.reference_dir = reference_dir
        self.reference_files = tuple(reference_files)
        self.temperature = temperature
        self.reasoning_effort = reasoning_effort

    @classmethod
    def from_config(cls, config, provider: Optional[InferenceProvider] = None) -> "ScriptGenerator":
        return cls(
            provider=provider or config.get_provider(),
            chat_model=config.chat_model,
            reasoning_model=config.reasoning_model,
            model_override=config.model_override,
            reference_dir=config.reference_dir,
            reference_files=config.reference_files,
        )

    def model_for(self, use_reasoning: bool) -> str:
        if self.model_override:
            return self.model_override
        return self.reasoning_model if use_reasoning else self.chat_model

    async def _reference_section(self) -> str:
        if not self.reference_dir or not self.reference_files:
            return ""
        return await asyncio.to_thread(
            load_reference_section, self.reference_dir, self.reference_files
        )

    async def generate(
        self,
        messages: Sequence[Message],
        trigger_message_id: Optional[int] = None,
        use_reasoning: bool = False,
    ) -> GenerationResult:
        """
        Generate a sales script.

        Args:
            messages: Full room snapshot
            trigger_message_id: Scope generation to this message only
            use_reasoning: Use the reasoning API instead of chat

        Returns:
            GenerationResult; content may be blank, callers decide what that means
        """
        context = select_context(messages, trigger_message_id)
        prompt = build_script_prompt(context, await self._reference_section())
        model = self.model_for(use_reasoning)
        mode = GenerationMode.REASONING if use_reasoning else GenerationMode.DIRECT

        call_id = int(time.time() * 1000)
        scope = (
            f"message {trigger_message_id}" if trigger_message_id is not None
            else f"latest {len(context)} messages"
        )
        logger.info(f"[gen-{call_id}] model={model} mode={mode.value} context={scope}")
        logger.debug(f"[gen-{call_id}] message ids: {[m.id for m in context]}, prompt chars: {len(prompt)}")

        if use_reasoning:
            result = await self.provider.complete_reasoning(
                prompt,
                instructions=SYSTEM_INSTRUCTION,
                effort=self.reasoning_effort,
                model=model,
            )
        else:
            result = await self.provider.complete(
                prompt,
                system=SYSTEM_INSTRUCTION,
                temperature=self.temperature,
                model=model,
            )

        logger.info(f"[gen-{call_id}] received {len(result.text)} chars in {result.latency_ms:.0f}ms")

        return GenerationResult(
            content=result.text,
            model_id=result.model,
            mode=mode,
            context_messages=context,
            trigger_message_id=trigger_message_id,
        )
