"""Advisory client: transaction summary in, formatted financial tips out."""
import asyncio
import logging
from typing import Callable, List, Optional, Sequence
from rupeeflow.adapters.base import LLMAdapter
from rupeeflow.models.advisory import ChatTurn
from rupeeflow.models.budget import Budget
from rupeeflow.models.transaction import Transaction
from rupeeflow.services.prompts import PromptBuilder
from rupeeflow.utils.privacy import obfuscate_transactions

logger = logging.getLogger(__name__)

EMPTY_ADVICE_MESSAGE = "Add some transactions for this month to get AI feedback! ✨"
DEFAULT_ADVICE_MESSAGE = "Your current tracking is solid. Maintain this discipline."
ADVICE_FALLBACK_MESSAGE = "Unable to connect to AI advisor. Please try later."
DEFAULT_CHAT_MESSAGE = "I'm processing that. Could you please rephrase your question?"
CHAT_FALLBACK_MESSAGE = "I'm having trouble connecting to my central brain. Please ask again in a moment!"


class AdvisorService:
    """
    Wraps one text-generation call per request.

    No retries and no streaming. Every provider failure, including a timeout,
    is turned into a canned string; nothing is raised to the caller.
    """

    def __init__(
        self,
        adapter_factory: Callable[[], LLMAdapter],
        prompt_builder: Optional[PromptBuilder] = None,
        temperature: float = 0.7,
        timeout_seconds: Optional[float] = 30.0,
        transaction_limit: int = 50,
        history_turns: int = 5,
    ):
        self._adapter_factory = adapter_factory
        self._adapter: Optional[LLMAdapter] = None
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.temperature = temperature
        self.timeout_seconds = timeout_seconds
        self.transaction_limit = transaction_limit
        self.history_turns = history_turns

    @property
    def adapter(self) -> LLMAdapter:
        # Built lazily so a missing API key only affects advisory calls
        if self._adapter is None:
            self._adapter = self._adapter_factory()
        return self._adapter

    async def _complete(self, prompt: str) -> str:
        call = self.adapter.generate_text(prompt, temperature=self.temperature)
        if self.timeout_seconds:
            return await asyncio.wait_for(call, timeout=self.timeout_seconds)
        return await call

    async def get_advice(
        self,
        transactions: Sequence[Transaction],
        budgets: Sequence[Budget] = (),
    ) -> str:
        """
        Generate concise financial tips for a set of transactions.

        Returns the canned "add some transactions" message without calling the
        endpoint when there is nothing to analyse.
        """
        if not transactions:
            return EMPTY_ADVICE_MESSAGE

        logger.debug(
            "Advice context",
            extra={"transactions": obfuscate_transactions(list(transactions)[: self.transaction_limit])},
        )

        try:
            prompt = self.prompt_builder.build_advice_prompt(transactions, budgets, self.transaction_limit)
            text = await self._complete(prompt)
        except asyncio.TimeoutError:
            logger.error("AI feedback timed out", extra={"timeout_seconds": self.timeout_seconds})
            return ADVICE_FALLBACK_MESSAGE
        except Exception as e:
            logger.error("AI feedback error", extra={"error": str(e)})
            return ADVICE_FALLBACK_MESSAGE

        return text.strip() if text and text.strip() else DEFAULT_ADVICE_MESSAGE

    async def chat(
        self,
        query: str,
        transactions: Sequence[Transaction],
        history: List[ChatTurn],
    ) -> str:
        """Answer a chat message using the transactions and recent history as context."""
        try:
            prompt = self.prompt_builder.build_chat_prompt(
                query,
                transactions,
                history,
                history_turns=self.history_turns,
                limit=self.transaction_limit,
            )
            text = await self._complete(prompt)
        except asyncio.TimeoutError:
            logger.error("AI chat timed out", extra={"timeout_seconds": self.timeout_seconds})
            return CHAT_FALLBACK_MESSAGE
        except Exception as e:
            logger.error("AI chat error", extra={"error": str(e)})
            return CHAT_FALLBACK_MESSAGE

        return text.strip() if text and text.strip() else DEFAULT_CHAT_MESSAGE
