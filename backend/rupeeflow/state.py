"""Application state container built once per app instance."""
from dataclasses import dataclass
from functools import partial
from typing import Optional

from rupeeflow.adapters.factory import get_llm_adapter
from rupeeflow.config import Settings
from rupeeflow.services.advisor import AdvisorService
from rupeeflow.services.email import EmailSender
from rupeeflow.services.identity import AuthEventStream, IdentityService
from rupeeflow.services.prompts import PromptBuilder
from rupeeflow.session import SessionRegistry
from rupeeflow.storage.database import BudgetStore, TransactionStore, UserStore
from rupeeflow.storage.subscriptions import SnapshotHub


@dataclass
class AppState:
    settings: Settings
    transaction_hub: SnapshotHub
    budget_hub: SnapshotHub
    transactions: TransactionStore
    budgets: BudgetStore
    users: UserStore
    auth_events: AuthEventStream
    identity: IdentityService
    advisor: AdvisorService
    sessions: SessionRegistry

    @classmethod
    def create(cls, settings: Settings, advisor: Optional[AdvisorService] = None) -> "AppState":
        transaction_hub = SnapshotHub("transactions")
        budget_hub = SnapshotHub("budgets")
        transactions = TransactionStore(settings.database_path, hub=transaction_hub)
        budgets = BudgetStore(
            settings.database_path,
            hub=budget_hub,
            default_total_limit=settings.default_total_budget,
        )
        users = UserStore(settings.database_path)
        auth_events = AuthEventStream()
        identity = IdentityService(users, settings, events=auth_events, email_sender=EmailSender())
        if advisor is None:
            advisor = AdvisorService(
                partial(get_llm_adapter, settings.advisor_model, settings),
                prompt_builder=PromptBuilder(settings.currency_symbol),
                temperature=settings.advisor_temperature,
                timeout_seconds=settings.advisor_timeout_seconds,
                transaction_limit=settings.advice_transaction_limit,
                history_turns=settings.chat_history_turns,
            )
        sessions = SessionRegistry(transactions, budgets, transaction_hub, budget_hub, events=auth_events)
        return cls(
            settings=settings,
            transaction_hub=transaction_hub,
            budget_hub=budget_hub,
            transactions=transactions,
            budgets=budgets,
            users=users,
            auth_events=auth_events,
            identity=identity,
            advisor=advisor,
            sessions=sessions,
        )

    def close(self) -> None:
        self.sessions.close_all()
