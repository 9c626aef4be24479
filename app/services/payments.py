"""UroPay checkout: order creation, webhook reconciliation, status polling."""

import random
import time
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from app.core.context import PaymentContext
from app.core.exceptions import BadRequestError, ConfigurationError, GatewayError
from app.core.logging import bind_order_id, get_logger
from app.core.security import generate_correlation_token
from app.gateways.base import GatewayOrderRequest
from app.models.payment import Order, PaymentStatus
from app.services.state_machine import StatusUpdate, TransitionOutcome, apply_transition
from app.services.upi import build_payment_link, format_amount

log = get_logger(__name__)

INVALID_REQUEST_MESSAGE = "Name and Amount are required"
DEFAULT_MAX_AMOUNT = Decimal("500000")
CENT = Decimal("0.01")


@dataclass(frozen=True)
class Checkout:
    """What the payment page needs; rendering happens in the router."""

    merchant_order_id: str
    amount_display: str
    upi_link: str
    qr_code: str | None
    canonical_link: bool


def generate_merchant_order_id() -> str:
    """ORD-<epoch ms>-<0..999>. Unique with high probability, not guaranteed."""
    return f"ORD-{int(time.time() * 1000)}-{random.randint(0, 999)}"


def parse_amount(value: Any, max_amount: Decimal = DEFAULT_MAX_AMOUNT) -> Decimal | None:
    """Positive, at most max_amount, no fractions below one paisa."""
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not amount.is_finite() or amount <= 0 or amount > max_amount:
        return None
    if amount.quantize(CENT) != amount:
        return None
    return amount


def _first(payload: dict[str, Any], *keys: str) -> str | None:
    for key in keys:
        value = payload.get(key)
        if value not in (None, ""):
            return str(value)
    return None


async def create_order(
    ctx: PaymentContext,
    name: str | None,
    amount: Any,
    email: str | None = None,
) -> Checkout:
    """Validate, record PENDING, then ask the gateway for a payable link and QR."""
    name = (name or "").strip()
    settings = ctx.settings
    parsed_amount = parse_amount(amount, settings.max_amount)
    if not name or parsed_amount is None:
        raise BadRequestError(INVALID_REQUEST_MESSAGE)

    if not settings.uropay_configured:
        log.error("uropay_not_configured")
        raise ConfigurationError()

    email = (email or "").strip() or None
    order = Order(
        merchant_order_id=generate_merchant_order_id(),
        amount=parsed_amount,
        status=PaymentStatus.PENDING,
        customer_name=name,
        customer_email=email,
    )
    bind_order_id(order.merchant_order_id)
    # The order must exist before any charge is requested for it.
    await ctx.store.create(order)
    log.info("order_created", amount=str(parsed_amount))

    request = GatewayOrderRequest(
        merchant_order_id=order.merchant_order_id,
        amount=parsed_amount,
        payee_vpa=settings.owner_upi,
        payee_name=settings.merchant_display_name,
        transaction_note=f"Payment for {order.merchant_order_id}",
        customer_name=name,
        customer_email=email or settings.default_customer_email,
        correlation_token=generate_correlation_token(),
    )
    try:
        result = await ctx.gateway.submit_order(request)
    except GatewayError as e:
        log.error("gateway_error", gateway=ctx.gateway.name, error=e.detail)
        raise

    if result.gateway_order_id:
        await _record_gateway_order_id(ctx, order.merchant_order_id, result.gateway_order_id)

    link = build_payment_link(result.upi_string, parsed_amount, settings.currency)
    if not link.canonical:
        log.warning("upi_link_fallback", upi_string=result.upi_string)

    return Checkout(
        merchant_order_id=order.merchant_order_id,
        amount_display=format_amount(parsed_amount),
        upi_link=link.url,
        qr_code=result.qr_code,
        canonical_link=link.canonical,
    )


async def _record_gateway_order_id(ctx: PaymentContext, merchant_order_id: str, gateway_order_id: str) -> None:
    # The payer already has a payable gateway order; a failed write must not hide it.
    try:
        await ctx.store.set_gateway_order_id(merchant_order_id, gateway_order_id)
    except Exception as e:
        log.warning("gateway_order_id_not_recorded", gateway_order_id=gateway_order_id, error=str(e))


async def handle_webhook(ctx: PaymentContext, payload: Any) -> None:
    """Apply a gateway delivery. Never raises: the caller always acknowledges."""
    try:
        await _reconcile(ctx, payload)
    except Exception as e:
        log.exception("webhook_error", error=str(e))


async def _reconcile(ctx: PaymentContext, payload: Any) -> None:
    if not isinstance(payload, dict):
        log.warning("webhook_ignored", reason="malformed_body")
        return
    merchant_order_id = _first(payload, "merchantOrderId")
    if not merchant_order_id:
        log.warning("webhook_ignored", reason="missing_order_id")
        return
    bind_order_id(merchant_order_id)

    order = await ctx.store.find_by_merchant_order_id(merchant_order_id)
    if order is None:
        log.info("webhook_ignored", reason="unknown_order")
        return

    update = StatusUpdate(
        status=payload.get("status"),
        transaction_id=_first(payload, "txnId", "transactionId"),
        gateway_order_id=_first(payload, "uroPayOrderId", "gatewayOrderId"),
        payload=payload,
    )
    outcome, updated = apply_transition(order, update)
    if outcome is not TransitionOutcome.APPLIED:
        log.info("webhook_ignored", reason=outcome.value, status=str(update.status))
        return

    # Compare-and-set on the status we read; a concurrent SUCCESS wins.
    written = await ctx.store.update(updated, if_status=order.status)
    if not written:
        log.info("webhook_ignored", reason="concurrent_update")
        return
    log.info("webhook_applied", previous=order.status.value, status=updated.status.value)


async def get_status(ctx: PaymentContext, merchant_order_id: str | None) -> str:
    """Unknown or missing IDs report PENDING, never an error."""
    if not merchant_order_id:
        return PaymentStatus.PENDING.value
    try:
        order = await ctx.store.find_by_merchant_order_id(merchant_order_id)
    except Exception as e:
        log.warning("status_lookup_failed", merchant_order_id=merchant_order_id, error=str(e))
        return PaymentStatus.PENDING.value
    return order.status.value if order else PaymentStatus.PENDING.value
