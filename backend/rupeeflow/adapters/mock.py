"""Mock LLM adapter for running without API calls."""
import asyncio
from typing import List
from rupeeflow.adapters.base import LLMAdapter


class MockLLMAdapter(LLMAdapter):
    """
    Mock adapter returning canned markdown.

    Special model ids change behaviour:
    - ``mock:error`` raises like a failing provider
    - ``mock:empty`` returns an empty completion
    - ``mock:slow`` sleeps for ``delay`` seconds (default 60) before answering
    """

    MODEL_RESPONSES = {
        "advice": (
            "- Your **Rent & Bills** spend is the largest outflow this month.\n"
            "- **Food & Drinks** shows frequent small purchases; a weekly cap would help.\n"
            "- Move part of your **Salary** surplus into an SIP on payday."
        ),
        "chat": (
            "Looking at your recent activity, **expenses are within budget**.\n\n"
            "- Consider a recurring **SIP** for long-term goals."
        ),
    }

    def __init__(self, model_id: str = "mock:advisor", **kwargs):
        super().__init__(model_id, **kwargs)
        self.prompts: List[str] = []

    async def generate_text(
        self,
        prompt: str,
        temperature: float = 0.7,
    ) -> str:
        """Return a canned completion."""
        self.prompts.append(prompt)
        if self.model_id == "mock:error":
            raise RuntimeError("Mock API error: quota exceeded")
        if self.model_id == "mock:empty":
            return ""
        if self.model_id == "mock:slow":
            await asyncio.sleep(self.config.get("delay", 60))
        if "User's Message:" in prompt:
            return self.MODEL_RESPONSES["chat"]
        return self.MODEL_RESPONSES["advice"]
