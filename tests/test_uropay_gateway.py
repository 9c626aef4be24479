import hashlib
import json
from decimal import Decimal

import httpx
import pytest

from app.core.exceptions import GatewayError
from app.gateways.base import GatewayOrderRequest
from app.gateways.uropay import UroPayGateway, to_paise


def make_request(amount: str = "150.00") -> GatewayOrderRequest:
    return GatewayOrderRequest(
        merchant_order_id="ORD-1-1",
        amount=Decimal(amount),
        payee_vpa="merchant@upi",
        payee_name="SimplePay Merchant",
        transaction_note="Payment for ORD-1-1",
        customer_name="Asha",
        customer_email="customer@example.com",
        correlation_token="corr-1",
    )


def gateway_with(settings, handler) -> UroPayGateway:
    return UroPayGateway(settings, transport=httpx.MockTransport(handler))


def test_to_paise():
    assert to_paise(Decimal("150")) == 15000
    assert to_paise(Decimal("0.015")) == 2
    assert to_paise(Decimal("19.99")) == 1999


@pytest.mark.asyncio
async def test_submit_order_success(settings):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["request"] = request
        return httpx.Response(
            200,
            json={
                "status": "success",
                "data": {"upiString": "upi://pay?pa=merchant@upi", "qrCode": "data:image/png;base64,AA", "uroPayOrderId": "uro_7"},
            },
        )

    result = await gateway_with(settings, handler).submit_order(make_request())

    request = seen["request"]
    assert str(request.url) == "https://uropay.test/order/generate"
    assert request.headers["X-API-KEY"] == "test-api-key"
    assert request.headers["Authorization"] == "Bearer " + hashlib.sha512(b"test-secret").hexdigest()
    body = json.loads(request.content)
    assert body == {
        "vpa": "merchant@upi",
        "vpaName": "SimplePay Merchant",
        "amount": 15000,
        "merchantOrderId": "ORD-1-1",
        "transactionNote": "Payment for ORD-1-1",
        "customerName": "Asha",
        "customerEmail": "customer@example.com",
        "notes": {"custom_id": "corr-1"},
    }
    assert result.upi_string == "upi://pay?pa=merchant@upi"
    assert result.qr_code == "data:image/png;base64,AA"
    assert result.gateway_order_id == "uro_7"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json={"status": "error", "message": "Invalid VPA"}),
        httpx.Response(401, json={"status": "error", "message": "Unauthorized"}),
        httpx.Response(500, text="<html>oops</html>"),
        httpx.Response(200, json={"status": "success", "data": {"qrCode": "x"}}),
        httpx.Response(200, json=["unexpected"]),
    ],
)
async def test_submit_order_non_success(settings, response):
    with pytest.raises(GatewayError):
        await gateway_with(settings, lambda request: response).submit_order(make_request())


@pytest.mark.asyncio
async def test_submit_order_error_message_is_kept(settings):
    def handler(request):
        return httpx.Response(400, json={"status": "error", "message": "Invalid VPA"})

    with pytest.raises(GatewayError) as exc:
        await gateway_with(settings, handler).submit_order(make_request())
    assert exc.value.detail == "HTTP 400: Invalid VPA"
    assert exc.value.message == "Failed to create payment"


@pytest.mark.asyncio
async def test_submit_order_transport_error(settings):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(GatewayError) as exc:
        await gateway_with(settings, handler).submit_order(make_request())
    assert "transport error" in exc.value.detail


@pytest.mark.asyncio
async def test_submit_order_unrepresentable_amount(settings):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={"status": "success", "data": {"upiString": "upi://pay?pa=m@upi"}})

    with pytest.raises(GatewayError) as exc:
        await gateway_with(settings, handler).submit_order(make_request("1e30"))
    assert "not representable" in exc.value.detail
    assert calls == []
