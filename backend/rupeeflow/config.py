"""Configuration settings for the application."""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings."""

    app_name: str = "RupeeFlow API"
    debug: bool = False
    database_path: str = "rupeeflow.db"
    cors_origins: List[str] = ["http://localhost:5173", "http://localhost:3000"]

    # LLM Provider API Keys (optional, for real providers)
    google_api_key: str = ""
    openai_api_key: str = ""
    anthropic_api_key: str = ""

    # Advisory endpoint
    advisor_model: str = "gemini-1.5-flash"
    advisor_temperature: float = 0.7
    advisor_timeout_seconds: float = 30.0
    advice_transaction_limit: int = 50
    chat_history_turns: int = 5
    currency_symbol: str = "₹"

    # Budgets
    default_total_budget: float = 50000.0

    # Identity
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24
    verification_token_expire_minutes: int = 60 * 24
    reset_token_expire_minutes: int = 30
    public_base_url: str = "http://localhost:5173"
    google_client_id: str = ""
    google_tokeninfo_url: str = "https://oauth2.googleapis.com/tokeninfo"

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
