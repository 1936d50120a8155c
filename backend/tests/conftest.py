"""Shared fixtures."""
from datetime import datetime, timezone
from urllib.parse import parse_qs, urlparse

import pytest
from fastapi.testclient import TestClient

from rupeeflow.config import Settings
from rupeeflow.main import create_app
from rupeeflow.models.category import Category
from rupeeflow.models.transaction import Transaction, TransactionType


def make_tx(
    amount,
    category=Category.FOOD,
    type=TransactionType.EXPENSE,
    date="2024-03-10T12:00:00Z",
    title="Test",
    tx_id=None,
    user_id="user_1",
) -> Transaction:
    """Build a stored-shape transaction for pure-function tests."""
    make_tx.counter += 1
    return Transaction(
        id=tx_id or f"tx_{make_tx.counter}",
        user_id=user_id,
        title=title,
        amount=amount,
        category=category,
        type=type,
        date=date,
    )


make_tx.counter = 0


def token_from_link(link: str) -> str:
    return parse_qs(urlparse(link).query)["token"][0]


@pytest.fixture
def settings(tmp_path):
    """Settings bound to a throwaway database and the mock advisor."""
    return Settings(
        database_path=str(tmp_path / "rupeeflow_test.db"),
        advisor_model="mock:advisor",
        advisor_timeout_seconds=5.0,
        jwt_secret="test-secret",
        google_client_id="",
        default_total_budget=50000.0,
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def state(app):
    return app.state.rupeeflow


@pytest.fixture
def client(app):
    return TestClient(app)


def register_verified(client, state, name="Asha", email="asha@example.com", password="secret123"):
    """Register through the API, follow the emailed link, and sign in."""
    response = client.post("/auth/register", json={"name": name, "email": email, "password": password})
    assert response.status_code == 201
    link = state.identity.email_sender.outbox[-1].link
    response = client.post("/auth/verify-email", json={"token": token_from_link(link)})
    assert response.status_code == 200
    response = client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200
    return response.json()


@pytest.fixture
def signed_in(client, state):
    """(auth headers, user payload) for a verified account."""
    data = register_verified(client, state)
    # Drop the cookie so every request authenticates through the header
    client.cookies.clear()
    return {"Authorization": f"Bearer {data['access_token']}"}, data["user"]


@pytest.fixture
def auth_headers(signed_in):
    return signed_in[0]


@pytest.fixture
def now():
    return datetime.now(timezone.utc)
