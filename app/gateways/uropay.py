"""UroPay order generation (POST /order/generate)."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

import httpx

from app.core.config import Settings
from app.core.exceptions import GatewayError
from app.core.logging import get_logger
from app.core.security import hash_gateway_secret
from app.gateways.base import GatewayOrderRequest, GatewayOrderResult, PaymentGateway

log = get_logger(__name__)

ORDER_GENERATE_PATH = "/order/generate"


def to_paise(amount: Decimal) -> int:
    """UroPay takes amounts in the currency's minor unit."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class UroPayGateway(PaymentGateway):
    name = "uropay"

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.settings = settings
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "X-API-KEY": self.settings.uropay_api_key,
            "Authorization": f"Bearer {hash_gateway_secret(self.settings.uropay_secret_key)}",
        }

    @staticmethod
    def build_payload(request: GatewayOrderRequest) -> dict[str, Any]:
        return {
            "vpa": request.payee_vpa,
            "vpaName": request.payee_name,
            "amount": to_paise(request.amount),
            "merchantOrderId": request.merchant_order_id,
            "transactionNote": request.transaction_note,
            "customerName": request.customer_name,
            "customerEmail": request.customer_email,
            "notes": {"custom_id": request.correlation_token},
        }

    async def submit_order(self, request: GatewayOrderRequest) -> GatewayOrderResult:
        url = self.settings.uropay_base_url.rstrip("/") + ORDER_GENERATE_PATH
        try:
            payload = self.build_payload(request)
        except InvalidOperation as e:
            raise GatewayError(f"amount not representable in paise: {request.amount}") from e
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.uropay_timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(url, json=payload, headers=self._headers())
        except httpx.HTTPError as e:
            log.warning("gateway_transport_error", gateway=self.name, error=repr(e))
            raise GatewayError(f"transport error: {e!r}") from e

        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            raise GatewayError(f"HTTP {response.status_code}: non-JSON response")
        if response.is_error or body.get("status") != "success":
            message = body.get("message") or body.get("error") or "unknown error"
            raise GatewayError(f"HTTP {response.status_code}: {message}")

        data = body.get("data")
        if not isinstance(data, dict) or not data.get("upiString"):
            raise GatewayError("success response without upiString")
        gateway_order_id = data.get("gatewayOrderId") or data.get("uroPayOrderId")
        return GatewayOrderResult(
            upi_string=str(data["upiString"]),
            qr_code=data.get("qrCode"),
            gateway_order_id=str(gateway_order_id) if gateway_order_id else None,
        )
