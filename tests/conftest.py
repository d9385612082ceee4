import os

from tests.stripe_helpers import WEBHOOK_SECRET

# Settings() is built at import time, so the environment has to be in place before anything from app is imported.
os.environ["STRIPE_SECRET_KEY"] = "sk_test_123"
os.environ["STRIPE_PUBLISHABLE_KEY"] = "pk_test_123"
os.environ["STRIPE_WEBHOOK_SECRET"] = WEBHOOK_SECRET
os.environ["APP_URL"] = "http://localhost:3000"
os.environ["ALLOWED_ORIGINS"] = "http://localhost:3000,https://landing.example.com"

import pytest
from fastapi.testclient import TestClient
from pytest_mock import MockerFixture

from app.configs.stripe_config import get_stripe_client
from app.main import app

STRIPE_METHODS = {
    "payment_intents": ["create_async", "confirm_async", "retrieve_async"],
    "customers": ["create_async", "update_async", "retrieve_async"],
    "subscriptions": ["create_async", "update_async", "cancel_async", "retrieve_async"],
    "prices": ["retrieve_async", "list_async"],
}


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def fake_stripe_client(mocker: MockerFixture):
    """Stand-in for stripe.StripeClient with every async call the services make"""
    client = mocker.MagicMock(name="StripeClient")
    for service_name, methods in STRIPE_METHODS.items():
        service = getattr(client, service_name)
        for method in methods:
            setattr(service, method, mocker.AsyncMock(name=f"{service_name}.{method}"))
    client.checkout.sessions.create_async = mocker.AsyncMock(name="checkout.sessions.create_async")
    client.checkout.sessions.retrieve_async = mocker.AsyncMock(name="checkout.sessions.retrieve_async")
    return client


@pytest.fixture
def client(fake_stripe_client):
    app.dependency_overrides[get_stripe_client] = lambda: fake_stripe_client
    yield TestClient(app)
    app.dependency_overrides.clear()
