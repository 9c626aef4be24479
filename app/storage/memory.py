import asyncio

from app.core.exceptions import DuplicateKeyError, RecordNotFoundError
from app.models.payment import Order, PaymentStatus, utcnow
from app.storage.base import OrderStore


class InMemoryOrderStore(OrderStore):
    """Process-local store for tests and local runs without MongoDB."""

    def __init__(self) -> None:
        self._orders: dict[str, Order] = {}
        self._lock = asyncio.Lock()

    async def create(self, order: Order) -> Order:
        async with self._lock:
            if order.merchant_order_id in self._orders:
                raise DuplicateKeyError(order.merchant_order_id)
            self._orders[order.merchant_order_id] = order.model_copy(deep=True)
        return order

    async def find_by_merchant_order_id(self, merchant_order_id: str) -> Order | None:
        stored = self._orders.get(merchant_order_id)
        return stored.model_copy(deep=True) if stored else None

    async def update(self, order: Order, *, if_status: PaymentStatus | None = None) -> bool:
        async with self._lock:
            stored = self._orders.get(order.merchant_order_id)
            if stored is None:
                raise RecordNotFoundError(order.merchant_order_id)
            if if_status is not None and stored.status != if_status:
                return False
            order.updated_at = utcnow()
            # amount and created_at are immutable
            self._orders[order.merchant_order_id] = order.model_copy(
                deep=True,
                update={"amount": stored.amount, "created_at": stored.created_at},
            )
        return True

    async def set_gateway_order_id(self, merchant_order_id: str, gateway_order_id: str) -> bool:
        async with self._lock:
            stored = self._orders.get(merchant_order_id)
            if stored is None or stored.gateway_order_id:
                return False
            stored.gateway_order_id = gateway_order_id
            stored.updated_at = utcnow()
        return True
