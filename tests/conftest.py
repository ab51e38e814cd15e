"""
Pytest configuration and fixtures.

Settings come from environment variables, so they are set here before any
``sitebuilder`` module is imported. Stores write into a throwaway
directory that is wiped between tests.
"""
import hashlib
import hmac
import json
import os
import shutil
import tempfile
import time
from typing import Any, AsyncGenerator, Callable, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

_TEST_ROOT = tempfile.mkdtemp(prefix="sitebuilder-tests-")

os.environ.update(
    {
        "STRIPE_SECRET_KEY": "sk_test_fake_key_for_testing",
        "STRIPE_WEBHOOK_SECRET": "whsec_test_fake_secret",
        "JWT_SECRET": "test_jwt_secret",
        "ADMIN_KEY": "test_admin_key",
        "DATA_DIR": os.path.join(_TEST_ROOT, "data"),
        "SITES_DIR": os.path.join(_TEST_ROOT, "sites"),
        "APP_ENV": "test",
        "LOG_LEVEL": "WARNING",
    }
)

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from sitebuilder.api.dependencies import (  # noqa: E402
    get_dynadot_client,
    get_namecom_client,
    get_stripe_client,
)
from sitebuilder.api.main import app  # noqa: E402
from sitebuilder.config import Settings, get_settings  # noqa: E402
from sitebuilder.integrations import DynadotClient, NamecomClient, StripeClient  # noqa: E402
from sitebuilder.storage import OrderStore, UserStore  # noqa: E402

WEBHOOK_SECRET = "whsec_test_fake_secret"
ADMIN_KEY = "test_admin_key"


def sign_payload(payload: str, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None) -> str:
    """Build a Stripe-Signature header the way Stripe does (HMAC-SHA256, v1 scheme)."""
    timestamp = timestamp or int(time.time())
    signed = f"{timestamp}.{payload}".encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def make_event(event_type: str, data_object: Dict[str, Any], event_id: str = "evt_test_1") -> str:
    return json.dumps(
        {
            "id": event_id,
            "object": "event",
            "type": event_type,
            "data": {"object": data_object},
        }
    )


def payment_intent_payload(
    payment_intent_id: str = "pi_test_123", domain: Optional[str] = "example.com"
) -> Dict[str, Any]:
    metadata = {"type": "domain_purchase", "domain": domain} if domain else {}
    return {
        "id": payment_intent_id,
        "object": "payment_intent",
        "amount": 1299,
        "currency": "usd",
        "metadata": metadata,
    }


class FakeRegistrarAPI:
    """httpx MockTransport handler with canned responses per URL path."""

    def __init__(self) -> None:
        self.routes: Dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: List[httpx.Request] = []

    def on(self, path: str, status_code: int = 200, json_body: Any = None) -> None:
        self.routes[path] = lambda request: httpx.Response(status_code, json=json_body)

    def fail(self, path: str, exc: Exception) -> None:
        def raise_error(request: httpx.Request) -> httpx.Response:
            raise exc

        self.routes[path] = raise_error

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get(request.url.path)
        if handler is None:
            return httpx.Response(404, json={"message": "Not Found"})
        return handler(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Settings built from the test environment."""
    return get_settings()


@pytest.fixture(autouse=True)
def clean_storage(test_settings: Settings) -> None:
    """Give every test empty data and sites directories."""
    for path in (test_settings.data_dir, test_settings.sites_dir):
        shutil.rmtree(path, ignore_errors=True)
        path.mkdir(parents=True)


@pytest.fixture
def order_store(test_settings: Settings) -> OrderStore:
    return OrderStore(test_settings.orders_file)


@pytest.fixture
def user_store(test_settings: Settings) -> UserStore:
    return UserStore(test_settings.users_file)


@pytest.fixture
def stripe_mock(test_settings: Settings) -> AsyncMock:
    """Stripe client mock; webhook signatures are still verified for real."""
    mock = AsyncMock(spec=StripeClient)

    payment_intent = MagicMock()
    payment_intent.id = "pi_test_123"
    payment_intent.client_secret = "pi_test_123_secret_abc"
    payment_intent.status = "requires_payment_method"
    mock.create_payment_intent.return_value = payment_intent

    mock.construct_webhook_event = MagicMock(
        side_effect=StripeClient(test_settings).construct_webhook_event
    )
    return mock


@pytest.fixture
def namecom_api() -> FakeRegistrarAPI:
    return FakeRegistrarAPI()


@pytest.fixture
def dynadot_api() -> FakeRegistrarAPI:
    return FakeRegistrarAPI()


@pytest.fixture
def namecom_client(namecom_api: FakeRegistrarAPI) -> NamecomClient:
    return NamecomClient(
        username="reseller",
        token="namecom-token",
        api_url="https://api.dev.name.com",
        transport=namecom_api.transport,
    )


@pytest.fixture
def dynadot_client(dynadot_api: FakeRegistrarAPI) -> DynadotClient:
    return DynadotClient(
        api_key="dynadot-key",
        api_url="https://api.dynadot.com/api3.json",
        transport=dynadot_api.transport,
    )


@pytest_asyncio.fixture
async def client(
    stripe_mock: AsyncMock,
    namecom_client: NamecomClient,
    dynadot_client: DynadotClient,
) -> AsyncGenerator[AsyncClient, Any]:
    """HTTP client against the app with Stripe and registrars faked."""
    app.dependency_overrides[get_stripe_client] = lambda: stripe_mock
    app.dependency_overrides[get_namecom_client] = lambda: namecom_client
    app.dependency_overrides[get_dynadot_client] = lambda: dynadot_client

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def auth_headers(client: AsyncClient) -> Dict[str, str]:
    """Bearer header for a freshly registered user."""
    response = await client.post(
        "/api/register", json={"email": "owner@example.com", "password": "s3cret-pass"}
    )
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def webhook_delivery() -> Callable[..., Dict[str, Any]]:
    """Factory for signed webhook request kwargs (content + headers)."""

    def build(
        event_type: str,
        data_object: Dict[str, Any],
        event_id: str = "evt_test_1",
        secret: str = WEBHOOK_SECRET,
    ) -> Dict[str, Any]:
        payload = make_event(event_type, data_object, event_id)
        return {
            "content": payload,
            "headers": {
                "Stripe-Signature": sign_payload(payload, secret),
                "Content-Type": "application/json",
            },
        }

    return build


@pytest.fixture
def succeeded_intent() -> Callable[..., Dict[str, Any]]:
    """Factory for payment_intent.succeeded data objects."""
    return payment_intent_payload
