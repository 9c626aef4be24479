from dataclasses import dataclass

from app.core.config import Settings, get_settings
from app.gateways.base import PaymentGateway, get_gateway
from app.storage.base import OrderStore, get_order_store


@dataclass
class PaymentContext:
    """Collaborators every payment flow needs, built once and passed explicitly."""

    settings: Settings
    store: OrderStore
    gateway: PaymentGateway


def build_context(settings: Settings | None = None) -> PaymentContext:
    settings = settings or get_settings()
    return PaymentContext(
        settings=settings,
        store=get_order_store(settings),
        gateway=get_gateway(settings),
    )
