"""
Mock provider for dry runs and tests.

Returns a canned script shaped like real output (plot headers and a Q&A
block) without any API call.
"""

import asyncio
from typing import Optional

from .base import InferenceProvider, CompletionResult


MOCK_SCRIPT = """プロット①（受付突破）
お世話になります。私、株式会社サンプルの山田でございます。
ご責任者様はお見えでしょうか？

プロット②（営業対象者との通話）
お忙しいところ恐縮です 実は株式会社サンプルの山田と申します

想定Q&A
Q. 費用はどれくらいですか？
A. ご利用規模によって変わりますので一度お話だけでもできればと思いまして
"""


class MockProvider(InferenceProvider):
    """Canned-response provider; counts calls for instrumentation."""

    def __init__(self, model: str = "mock-model", text: str = MOCK_SCRIPT, latency: float = 0.0):
        self._model = model
        self._text = text
        self._latency = latency
        self.call_count = 0
        self.prompts: list[str] = []

    @property
    def name(self) -> str:
        return f"mock/{self._model}"

    @property
    def model(self) -> str:
        return self._model

    async def complete(
        self,
        prompt: str,
        system: Optional[str] = None,
        temperature: float = 0.7,
        model: Optional[str] = None,
    ) -> CompletionResult:
        self.call_count += 1
        self.prompts.append(prompt)
        if self._latency:
            await asyncio.sleep(self._latency)
        return CompletionResult(
            text=self._text,
            tokens_used=100,
            tokens_prompt=50,
            model=model or self._model,
            latency_ms=self._latency * 1000,
        )
