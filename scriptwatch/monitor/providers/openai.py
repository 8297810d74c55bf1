"""
OpenAI Provider

Direct OpenAI API access for sales-script generation.

Supports:
- Chat completions (gpt-4o-mini and friends)
- Reasoning models (o4-mini, o3, ...) through the Responses API
"""

import time
import logging
from typing import Optional

from openai import AsyncOpenAI

from .base import InferenceProvider, CompletionResult
from ..utils.retry import rate_limit_retry

logger = logging.getLogger(__name__)


def is_reasoning_model(model: str) -> bool:
    """o-series models reject temperature and accept reasoning effort."""
    return model.startswith(("o1", "o3", "o4"))


class OpenAIProvider(InferenceProvider):
    """
    OpenAI API provider.

    Chat completions for direct mode, Responses API for reasoning mode.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: Optional[str] = None,
    ):
        """
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            model: Default model identifier
            base_url: Optional custom base URL (for Azure, proxies, etc.)
        """
        self._api_key = api_key
        self._model = model
        self._base_url = base_url or "https://api.openai.com/v1"
        self._client: Optional[AsyncOpenAI] = None

    @property
    def name(self) -> str:
        return f"openai/{self._model}"

    @property
    def model(self) -> str:
        return self._model

    @property
    def supports_reasoning(self) -> bool:
        return True

    def _get_client(self) -> AsyncOpenAI:
        """Lazy-load the OpenAI client."""
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self._api_key,
                base_url=self._base_url,
            )
        return self._client

    @rate_limit_retry
    async def complete(
        self,
        prompt: str,
        system: Optional[str] = None,
        temperature: float = 0.7,
        model: Optional[str] = None,
    ) -> CompletionResult:
        """Generate completion using the chat completions API."""
        client = self._get_client()
        model = model or self._model
        start_time = time.time()

        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        kwargs = {"model": model, "messages": messages}
        # o-series models only support the default temperature
        if not is_reasoning_model(model):
            kwargs["temperature"] = temperature

        response = await client.chat.completions.create(**kwargs)

        text = (response.choices[0].message.content if response.choices else None) or ""
        usage = response.usage
        latency = (time.time() - start_time) * 1000

        if usage:
            logger.debug(
                f"Usage: prompt_tokens={usage.prompt_tokens}, "
                f"completion_tokens={usage.completion_tokens}"
            )

        return CompletionResult(
            text=text,
            tokens_used=usage.total_tokens if usage else 0,
            tokens_prompt=usage.prompt_tokens if usage else 0,
            model=model,
            latency_ms=latency,
        )

    @rate_limit_retry
    async def complete_reasoning(
        self,
        prompt: str,
        instructions: Optional[str] = None,
        effort: str = "medium",
        model: Optional[str] = None,
    ) -> CompletionResult:
        """Generate completion using the Responses API with reasoning effort."""
        client = self._get_client()
        model = model or self._model
        start_time = time.time()

        kwargs = {"model": model, "input": prompt}
        if instructions:
            kwargs["instructions"] = instructions
        if is_reasoning_model(model):
            kwargs["reasoning"] = {"effort": effort}

        response = await client.responses.create(**kwargs)

        text = response.output_text or ""
        usage = response.usage
        latency = (time.time() - start_time) * 1000

        return CompletionResult(
            text=text,
            tokens_used=usage.total_tokens if usage else 0,
            tokens_prompt=usage.input_tokens if usage else 0,
            model=model,
            latency_ms=latency,
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
