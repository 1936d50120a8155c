from .advisor import AdvisorService
from .email import EmailSender
from .filters import TransactionFilter, apply_filter
from .identity import AuthEventStream, IdentityService
from .prompts import PromptBuilder

__all__ = [
    "AdvisorService",
    "EmailSender",
    "TransactionFilter",
    "apply_filter",
    "AuthEventStream",
    "IdentityService",
    "PromptBuilder",
]
