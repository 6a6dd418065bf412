"""LLM provider adapters."""

from allknower.providers.llm.openrouter_provider import OpenRouterLLMProvider

__all__ = ["OpenRouterLLMProvider"]
