"""Base LLM adapter interface."""
from abc import ABC, abstractmethod


class LLMAdapter(ABC):
    """Abstract base class for text-completion adapters."""

    def __init__(self, model_id: str, **kwargs):
        """
        Initialize the adapter.

        Args:
            model_id: Identifier for the model (e.g., "gemini-1.5-flash", "gpt-4o-mini")
            **kwargs: Additional provider-specific configuration (api_key, ...)
        """
        self.model_id = model_id
        self.config = kwargs

    @abstractmethod
    async def generate_text(
        self,
        prompt: str,
        temperature: float = 0.7,
    ) -> str:
        """
        Send a prompt and return the completion text.

        Args:
            prompt: The prompt text
            temperature: Sampling temperature

        Returns:
            Completion text, possibly empty. Formatting (bold, bullets) is
            passed through untouched.

        Raises:
            RuntimeError: on any provider failure
        """
        pass
