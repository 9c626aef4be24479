from abc import ABC, abstractmethod

from app.core.config import Settings, get_settings
from app.models.payment import Order, PaymentStatus


class OrderStore(ABC):
    """Payment orders keyed by merchant order ID."""

    @abstractmethod
    async def create(self, order: Order) -> Order:
        """Insert a new order; raise DuplicateKeyError if the key exists."""
        ...

    @abstractmethod
    async def find_by_merchant_order_id(self, merchant_order_id: str) -> Order | None:
        """Return the order or None. Unknown IDs are not an error."""
        ...

    @abstractmethod
    async def update(self, order: Order, *, if_status: PaymentStatus | None = None) -> bool:
        """
        Persist mutable fields and refresh updated_at.
        Raise RecordNotFoundError if the key does not exist. With if_status, only
        write while the stored status still equals it; return False otherwise.
        """
        ...

    @abstractmethod
    async def set_gateway_order_id(self, merchant_order_id: str, gateway_order_id: str) -> bool:
        """Set gateway_order_id only while it is still empty; return whether it was written."""
        ...


def get_order_store(settings: Settings | None = None) -> OrderStore:
    settings = settings or get_settings()
    if settings.order_store_backend == "memory":
        from app.storage.memory import InMemoryOrderStore
        return InMemoryOrderStore()
    from app.storage.mongo import MongoOrderStore
    return MongoOrderStore()
