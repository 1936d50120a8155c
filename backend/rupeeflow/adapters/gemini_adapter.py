"""Google Gemini LLM adapter."""
import google.generativeai as genai
from rupeeflow.adapters.base import LLMAdapter
from rupeeflow.config import settings


class GeminiAdapter(LLMAdapter):
    """Google Gemini API adapter."""

    def __init__(self, model_id: str = "gemini-1.5-flash", **kwargs):
        super().__init__(model_id, **kwargs)
        api_key = kwargs.get("api_key") or settings.google_api_key
        if not api_key:
            raise ValueError("Google API key required")
        genai.configure(api_key=api_key)
        self.model = genai.GenerativeModel(model_id)

    async def generate_text(
        self,
        prompt: str,
        temperature: float = 0.7,
    ) -> str:
        """Generate text using Gemini API."""
        try:
            generation_config = genai.types.GenerationConfig(
                temperature=temperature,
            )
            response = await self.model.generate_content_async(
                prompt,
                generation_config=generation_config,
            )
            # .text raises when the candidate was blocked or has no parts
            return response.text or ""
        except Exception as e:
            raise RuntimeError(f"Gemini API error: {str(e)}")
