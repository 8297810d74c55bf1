"""
Abstract Inference Provider

Base class for LLM providers used by the script generator. Supports a
plain chat completion and a reasoning completion; providers without a
dedicated reasoning API fall back to chat.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
import logging

logger = logging.getLogger(__name__)


@dataclass
class CompletionResult:
    """Result from an inference call."""
    text: str
    tokens_used: int
    tokens_prompt: int
    model: str
    latency_ms: float

    @property
    def tokens_completion(self) -> int:
        """Tokens used for completion."""
        return self.tokens_used - self.tokens_prompt


class InferenceProvider(ABC):
    """
    Abstract base for all LLM providers.

    Every call may name a model explicitly; otherwise the provider's
    default model is used.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier for logging."""
        ...

    @property
    @abstractmethod
    def model(self) -> str:
        """The default model identifier."""
        ...

    @property
    def supports_reasoning(self) -> bool:
        """Whether complete_reasoning uses a dedicated reasoning API."""
        return False

    @abstractmethod
    async def complete(
        self,
        prompt: str,
        system: Optional[str] = None,
        temperature: float = 0.7,
        model: Optional[str] = None,
    ) -> CompletionResult:
        """
        Generate a single chat completion.

        Args:
            prompt: The user prompt text
            system: Optional system instruction
            temperature: Sampling temperature
            model: Model override for this call

        Returns:
            CompletionResult with generated text and metadata
        """
        ...

    async def complete_reasoning(
        self,
        prompt: str,
        instructions: Optional[str] = None,
        effort: str = "medium",
        model: Optional[str] = None,
    ) -> CompletionResult:
        """
        Generate with a reasoning model.

        Default implementation degrades to a chat completion with the
        instructions as system prompt.
        """
        logger.debug(f"{self.name} has no reasoning API, using chat completion")
        return await self.complete(prompt, system=instructions, model=model)

    async def close(self) -> None:
        """Release any underlying client resources."""
        return None
