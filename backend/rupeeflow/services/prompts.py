"""Prompt templates for the financial advisor."""
import json
from typing import Iterable, List, Optional, Sequence
from rupeeflow.models.advisory import ChatTurn
from rupeeflow.models.budget import Budget
from rupeeflow.models.transaction import Transaction


class PromptBuilder:
    """Builds advice and chat prompts from transaction snapshots."""

    ADVICE_PROMPT_TEMPLATE = """User Stats Summary: {summary}
{budget_line}
Context: You are a professional financial strategist for an Indian user managing their income and expenses in INR.
Task: Provide 3 high-impact, punchy financial observations.

Formatting Rules:
- Use **bold** for key numbers or terms.
- Use bullet points (-).
- Use a maximum of 2-3 sentences per point.
- Be direct and objective."""

    CHAT_SYSTEM_INSTRUCTION = """You are 'RupeeFlow AI', a professional and friendly Indian financial strategist.
The user manages their finances in INR.
Current Context: {summary}.

Style Rules:
1. Always use **Markdown** (bold, bullet points) to make your response readable.
2. Keep it conversational but data-driven.
3. If identifying a spending problem, suggest a specific **actionable solution**.
4. Focus on Indian context (investments like FD, SIP, Gold, etc. if relevant).
5. Limit responses to 2-3 short paragraphs."""

    CHAT_PROMPT_TEMPLATE = """System Instruction: {system_instruction}
Recent History: {history}
User's Message: {query}

Please respond to the user using clear Markdown formatting."""

    def __init__(self, currency_symbol: str = "₹"):
        self.currency_symbol = currency_symbol

    def format_amount(self, amount: float) -> str:
        if float(amount).is_integer():
            return f"{self.currency_symbol}{int(amount)}"
        return f"{self.currency_symbol}{amount:.2f}"

    def summarize_transactions(self, transactions: Iterable[Transaction], limit: Optional[int] = None) -> str:
        """One compact line: ``expense: ₹850 (Food & Drinks - Zomato Dinner), ...``."""
        items = list(transactions)
        if limit is not None:
            items = items[:limit]
        return ", ".join(
            f"{tx.type.value}: {self.format_amount(tx.amount)} ({tx.category.value} - {tx.title})"
            for tx in items
        )

    def summarize_budgets(self, budgets: Sequence[Budget]) -> str:
        if not budgets:
            return ""
        limits = ", ".join(
            f"{getattr(b.category, 'value', b.category)}: {self.format_amount(b.limit)}"
            for b in budgets
        )
        return f"Budget Limits: {limits}"

    def build_advice_prompt(
        self,
        transactions: Sequence[Transaction],
        budgets: Sequence[Budget] = (),
        limit: int = 50,
    ) -> str:
        """Build the tips prompt over the first ``limit`` transactions."""
        return self.ADVICE_PROMPT_TEMPLATE.format(
            summary=self.summarize_transactions(transactions, limit),
            budget_line=self.summarize_budgets(budgets),
        )

    def build_chat_prompt(
        self,
        query: str,
        transactions: Sequence[Transaction],
        history: List[ChatTurn],
        history_turns: int = 5,
        limit: Optional[int] = None,
    ) -> str:
        """Build the chat prompt with the last ``history_turns`` turns for continuity."""
        system_instruction = self.CHAT_SYSTEM_INSTRUCTION.format(
            summary=self.summarize_transactions(transactions, limit),
        )
        recent = history[-history_turns:] if history_turns > 0 else []
        return self.CHAT_PROMPT_TEMPLATE.format(
            system_instruction=system_instruction,
            history=json.dumps([turn.model_dump() for turn in recent], ensure_ascii=False),
            query=query,
        )
