"""Factory for creating LLM adapters."""
from typing import Optional
from rupeeflow.adapters.base import LLMAdapter
from rupeeflow.adapters.mock import MockLLMAdapter
from rupeeflow.adapters.openai_adapter import OpenAIAdapter
from rupeeflow.adapters.anthropic_adapter import AnthropicAdapter
from rupeeflow.adapters.gemini_adapter import GeminiAdapter
from rupeeflow.config import Settings


def get_llm_adapter(model_id: str, settings: Optional[Settings] = None, **kwargs) -> LLMAdapter:
    """
    Factory function to create appropriate LLM adapter based on model_id.

    Args:
        model_id: Model identifier (e.g., "mock:advisor", "gemini-1.5-flash", "gpt-4o-mini", "claude-3-5-haiku-latest")
        settings: Source of provider API keys when not passed explicitly
        **kwargs: Additional configuration for the adapter

    Returns:
        LLMAdapter instance
    """
    if model_id.startswith("mock:"):
        return MockLLMAdapter(model_id, **kwargs)
    elif model_id.startswith("gpt-") or model_id.startswith("o1-") or "openai" in model_id.lower():
        if settings and "api_key" not in kwargs:
            kwargs["api_key"] = settings.openai_api_key
        return OpenAIAdapter(model_id, **kwargs)
    elif "claude" in model_id.lower() or "anthropic" in model_id.lower():
        if settings and "api_key" not in kwargs:
            kwargs["api_key"] = settings.anthropic_api_key
        return AnthropicAdapter(model_id, **kwargs)
    elif "gemini" in model_id.lower() or "google" in model_id.lower():
        if settings and "api_key" not in kwargs:
            kwargs["api_key"] = settings.google_api_key
        return GeminiAdapter(model_id, **kwargs)
    else:
        # Default to mock for unknown models
        return MockLLMAdapter(f"mock:{model_id}", **kwargs)
