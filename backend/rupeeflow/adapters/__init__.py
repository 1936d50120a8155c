from .base import LLMAdapter
from .mock import MockLLMAdapter
from .openai_adapter import OpenAIAdapter
from .anthropic_adapter import AnthropicAdapter
from .gemini_adapter import GeminiAdapter
from .factory import get_llm_adapter

__all__ = [
    "LLMAdapter",
    "MockLLMAdapter",
    "OpenAIAdapter",
    "AnthropicAdapter",
    "GeminiAdapter",
    "get_llm_adapter",
]
