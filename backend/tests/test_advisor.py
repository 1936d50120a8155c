"""Tests for the advisory client."""
import json

import pytest
from unittest.mock import AsyncMock

from conftest import make_tx
from rupeeflow.adapters.factory import get_llm_adapter
from rupeeflow.adapters.mock import MockLLMAdapter
from rupeeflow.models.advisory import ChatTurn
from rupeeflow.models.budget import Budget
from rupeeflow.models.category import Category
from rupeeflow.models.transaction import TransactionType
from rupeeflow.services.advisor import (
    ADVICE_FALLBACK_MESSAGE,
    CHAT_FALLBACK_MESSAGE,
    DEFAULT_ADVICE_MESSAGE,
    DEFAULT_CHAT_MESSAGE,
    EMPTY_ADVICE_MESSAGE,
    AdvisorService,
)
from rupeeflow.services.prompts import PromptBuilder


def _service(adapter, **kwargs):
    return AdvisorService(lambda: adapter, **kwargs)


@pytest.fixture
def transactions():
    return [
        make_tx(850, Category.FOOD, title="Zomato Dinner"),
        make_tx(85000, Category.SALARY, TransactionType.INCOME, title="Salary"),
        make_tx(120.5, Category.TRANSPORT, title="Metro card"),
    ]


@pytest.mark.asyncio
async def test_empty_transactions_skip_the_endpoint():
    """No transactions: canned message and no call."""
    adapter = MockLLMAdapter("mock:advisor")
    factory_calls = []

    def factory():
        factory_calls.append(1)
        return adapter

    service = AdvisorService(factory)
    result = await service.get_advice([])

    assert result == EMPTY_ADVICE_MESSAGE
    assert adapter.prompts == []
    assert factory_calls == []


@pytest.mark.asyncio
async def test_advice_returns_completion_text(transactions):
    adapter = MockLLMAdapter("mock:advisor")
    service = _service(adapter)

    result = await service.get_advice(transactions, [Budget(user_id="u", category="Total", limit=50000)])

    assert result == MockLLMAdapter.MODEL_RESPONSES["advice"]
    prompt = adapter.prompts[0]
    assert "expense: ₹850 (Food & Drinks - Zomato Dinner)" in prompt
    assert "income: ₹85000 (Salary - Salary)" in prompt
    assert "₹120.50" in prompt
    assert "Budget Limits: Total: ₹50000" in prompt
    assert "3 high-impact" in prompt


@pytest.mark.asyncio
async def test_advice_prompt_is_bounded():
    adapter = MockLLMAdapter("mock:advisor")
    service = _service(adapter, transaction_limit=2)
    transactions = [make_tx(10 + i, title=f"Item {i}") for i in range(5)]

    await service.get_advice(transactions)

    prompt = adapter.prompts[0]
    assert "Item 0" in prompt and "Item 1" in prompt
    assert "Item 2" not in prompt


@pytest.mark.asyncio
async def test_advice_fallback_on_provider_error(transactions):
    service = _service(MockLLMAdapter("mock:error"))
    assert await service.get_advice(transactions) == ADVICE_FALLBACK_MESSAGE


@pytest.mark.asyncio
async def test_advice_fallback_on_unexpected_exception(transactions):
    adapter = MockLLMAdapter("mock:advisor")
    adapter.generate_text = AsyncMock(side_effect=KeyError("candidates"))
    service = _service(adapter)
    assert await service.get_advice(transactions) == ADVICE_FALLBACK_MESSAGE


@pytest.mark.asyncio
async def test_advice_fallback_on_timeout(transactions):
    service = _service(MockLLMAdapter("mock:slow", delay=5), timeout_seconds=0.05)
    assert await service.get_advice(transactions) == ADVICE_FALLBACK_MESSAGE


@pytest.mark.asyncio
async def test_empty_completion_uses_default(transactions):
    service = _service(MockLLMAdapter("mock:empty"))
    assert await service.get_advice(transactions) == DEFAULT_ADVICE_MESSAGE
    assert await service.chat("hi", transactions, []) == DEFAULT_CHAT_MESSAGE


@pytest.mark.asyncio
async def test_adapter_construction_failure_falls_back(transactions):
    def factory():
        raise ValueError("Google API key required")

    service = AdvisorService(factory)
    assert await service.get_advice(transactions) == ADVICE_FALLBACK_MESSAGE
    assert await service.chat("hi", transactions, []) == CHAT_FALLBACK_MESSAGE


@pytest.mark.asyncio
async def test_chat_includes_last_turns_only(transactions):
    adapter = MockLLMAdapter("mock:advisor")
    service = _service(adapter, history_turns=5)
    history = [ChatTurn(role="user" if i % 2 == 0 else "model", text=f"turn {i}") for i in range(8)]

    result = await service.chat("Can I afford a trip?", transactions, history)

    assert result == MockLLMAdapter.MODEL_RESPONSES["chat"]
    prompt = adapter.prompts[0]
    assert "User's Message: Can I afford a trip?" in prompt
    history_line = next(line for line in prompt.splitlines() if line.startswith("Recent History: "))
    turns = json.loads(history_line[len("Recent History: "):])
    assert [t["text"] for t in turns] == [f"turn {i}" for i in range(3, 8)]


@pytest.mark.asyncio
async def test_chat_fallback_on_provider_error(transactions):
    service = _service(MockLLMAdapter("mock:error"))
    assert await service.chat("hello", transactions, []) == CHAT_FALLBACK_MESSAGE


@pytest.mark.asyncio
async def test_adapter_is_built_once(transactions):
    built = []

    def factory():
        built.append(1)
        return MockLLMAdapter("mock:advisor")

    service = AdvisorService(factory)
    await service.get_advice(transactions)
    await service.chat("hi", transactions, [])
    assert built == [1]


def test_format_amount():
    builder = PromptBuilder()
    assert builder.format_amount(850) == "₹850"
    assert builder.format_amount(850.5) == "₹850.50"
    assert PromptBuilder("Rs ").format_amount(10) == "Rs 10"


def test_factory_routes_models(settings):
    assert isinstance(get_llm_adapter("mock:advisor"), MockLLMAdapter)
    assert isinstance(get_llm_adapter("unknown-model"), MockLLMAdapter)
    assert get_llm_adapter("unknown-model").model_id == "mock:unknown-model"
