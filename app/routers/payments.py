from typing import Any

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse

from app.core.context import PaymentContext
from app.core.exceptions import BadRequestError
from app.core.logging import get_logger
from app.core.templating import render_template
from app.deps import get_payment_context
from app.services import payments as payments_service

router = APIRouter()
log = get_logger(__name__)


async def _read_body(request: Request) -> dict[str, Any]:
    """JSON or form fields, whichever the client sent."""
    content_type = request.headers.get("content-type", "")
    if "application/json" in content_type:
        data = await request.json()
        return data if isinstance(data, dict) else {}
    form = await request.form()
    return dict(form)


@router.get("/", response_class=HTMLResponse)
async def payment_form():
    """Name / amount / email form that posts to /payment."""
    return render_template("index.html")


@router.post("/payment", response_class=HTMLResponse)
async def create_payment(request: Request, ctx: PaymentContext = Depends(get_payment_context)):
    """Create a UroPay order and render the QR / UPI link page that polls for the result."""
    try:
        body = await _read_body(request)
    except ValueError as e:
        raise BadRequestError(payments_service.INVALID_REQUEST_MESSAGE) from e
    checkout = await payments_service.create_order(
        ctx,
        name=body.get("name"),
        amount=body.get("amount"),
        email=body.get("email"),
    )
    return render_template(
        "checkout.html",
        checkout=checkout,
        poll_interval_ms=ctx.settings.poll_interval_ms,
    )


@router.get("/payment/status")
async def payment_status(
    order_id: str | None = Query(None, alias="orderId"),
    ctx: PaymentContext = Depends(get_payment_context),
):
    """Polled by the checkout page; unknown orders report PENDING."""
    return {"status": await payments_service.get_status(ctx, order_id)}


@router.get("/payment/success", response_class=HTMLResponse)
async def payment_success(order_id: str | None = Query(None, alias="orderId")):
    return render_template("success.html", order_id=order_id)


@router.get("/payment/cancel", response_class=HTMLResponse)
async def payment_cancel(order_id: str | None = Query(None, alias="orderId")):
    return render_template("cancel.html", order_id=order_id)


@router.post("/payment/webhook/{gateway}")
async def payment_webhook(gateway: str, request: Request, ctx: PaymentContext = Depends(get_payment_context)):
    """Gateway callback. Always acknowledged so the gateway does not retry."""
    try:
        payload: Any = await _read_body(request)
    except Exception as e:
        log.warning("webhook_unreadable_body", gateway=gateway, error=str(e))
        payload = None
    await payments_service.handle_webhook(ctx, payload)
    return {"success": True}
