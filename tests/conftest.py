import itertools
import os
from typing import AsyncGenerator, Awaitable, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# No MongoDB or UroPay needed for the suite
os.environ.setdefault("ORDER_STORE_BACKEND", "memory")
os.environ.setdefault("ENV", "test")

from app.core.config import Settings  # noqa: E402
from app.core.context import PaymentContext  # noqa: E402
from app.core.exceptions import GatewayError  # noqa: E402
from app.gateways.base import GatewayOrderRequest, GatewayOrderResult, PaymentGateway  # noqa: E402
from app.storage.memory import InMemoryOrderStore  # noqa: E402

GATEWAY_UPI_STRING = (
    "upi://pay?pa=merchant@upi&pn=Simple%20Pay&am=15000&cu=INR"
    "&tn=Payment%20for%20order&mc=5411&tr=TR123&sign=abc123"
)


class StubGateway(PaymentGateway):
    name = "stub"

    def __init__(self, store: InMemoryOrderStore) -> None:
        self.store = store
        self.requests: list[GatewayOrderRequest] = []
        self.order_known_at_call: list[bool] = []
        self.error: str | None = None
        self.upi_string = GATEWAY_UPI_STRING
        self.gateway_order_id: str | None = "uro_1"
        # Runs after the order is looked up, before the result is returned.
        self.on_submit: Callable[[GatewayOrderRequest], Awaitable[None]] | None = None

    async def submit_order(self, request: GatewayOrderRequest) -> GatewayOrderResult:
        self.requests.append(request)
        known = await self.store.find_by_merchant_order_id(request.merchant_order_id)
        self.order_known_at_call.append(known is not None)
        if self.on_submit:
            await self.on_submit(request)
        if self.error:
            raise GatewayError(self.error)
        return GatewayOrderResult(
            upi_string=self.upi_string,
            qr_code="data:image/png;base64,iVBORw0KGgo=",
            gateway_order_id=self.gateway_order_id,
        )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        env="test",
        order_store_backend="memory",
        uropay_api_key="test-api-key",
        uropay_secret_key="test-secret",
        owner_upi="merchant@upi",
        uropay_base_url="https://uropay.test",
    )


@pytest.fixture
def store() -> InMemoryOrderStore:
    return InMemoryOrderStore()


@pytest.fixture
def order_ids(monkeypatch) -> list[str]:
    """Deterministic merchant order IDs; the list holds every ID handed out."""
    from app.services import payments as payments_service

    issued: list[str] = []
    counter = itertools.count(1)

    def next_id() -> str:
        issued.append(f"ORD-TEST-{next(counter)}")
        return issued[-1]

    monkeypatch.setattr(payments_service, "generate_merchant_order_id", next_id)
    return issued


@pytest_asyncio.fixture
async def mongo_store():
    from beanie import init_beanie
    from mongomock_motor import AsyncMongoMockClient

    from app.db.init import DOCUMENT_MODELS
    from app.storage.mongo import MongoOrderStore

    client = AsyncMongoMockClient()
    await init_beanie(database=client["payments_test"], document_models=DOCUMENT_MODELS)
    return MongoOrderStore()


@pytest.fixture
def gateway(store: InMemoryOrderStore) -> StubGateway:
    return StubGateway(store)


@pytest.fixture
def ctx(settings: Settings, store: InMemoryOrderStore, gateway: StubGateway) -> PaymentContext:
    return PaymentContext(settings=settings, store=store, gateway=gateway)


@pytest_asyncio.fixture
async def client(ctx: PaymentContext) -> AsyncGenerator[AsyncClient, None]:
    from app.deps import get_payment_context
    from app.main import app
    app.dependency_overrides[get_payment_context] = lambda: ctx
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()
