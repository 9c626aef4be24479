"""Shared FastAPI dependencies."""

from fastapi import Request

from app.core.context import PaymentContext, build_context


def get_payment_context(request: Request) -> PaymentContext:
    """Dependency: the context built at startup (built lazily if startup did not run)."""
    ctx = getattr(request.app.state, "payment_context", None)
    if ctx is None:
        ctx = build_context()
        request.app.state.payment_context = ctx
    return ctx
