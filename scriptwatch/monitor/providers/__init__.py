"""
Inference Providers for script generation

Abstract base class and implementations for LLM providers.
"""

from .base import InferenceProvider, CompletionResult
from .openai import OpenAIProvider, is_reasoning_model
from .mock import MockProvider

__all__ = [
    # Base
    "InferenceProvider",
    "CompletionResult",
    # Providers
    "OpenAIProvider",
    "MockProvider",
    # Helpers
    "is_reasoning_model",
]
