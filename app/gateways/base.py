from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal

from app.core.config import Settings, get_settings


@dataclass(frozen=True)
class GatewayOrderRequest:
    merchant_order_id: str
    amount: Decimal  # major units; the client converts to the gateway's convention
    payee_vpa: str
    payee_name: str
    transaction_note: str
    customer_name: str
    customer_email: str
    correlation_token: str


@dataclass(frozen=True)
class GatewayOrderResult:
    upi_string: str
    qr_code: str | None = None
    gateway_order_id: str | None = None


class PaymentGateway(ABC):
    name: str = "base"

    @abstractmethod
    async def submit_order(self, request: GatewayOrderRequest) -> GatewayOrderResult:
        """Create the order at the gateway; raise GatewayError on any failure."""
        ...


def get_gateway(settings: Settings | None = None) -> PaymentGateway:
    from app.gateways.uropay import UroPayGateway
    return UroPayGateway(settings or get_settings())
