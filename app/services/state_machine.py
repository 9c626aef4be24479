"""Payment status transitions applied on webhook delivery.

SUCCESS is the only protected state: once an order is SUCCESS no later
delivery changes it, whatever it claims. FAILED may still become SUCCESS if
the gateway confirms the payment afterwards. Deliveries carrying a status
outside PENDING/SUCCESS/FAILED are ignored.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from app.models.payment import Order, PaymentStatus


class TransitionOutcome(str, Enum):
    APPLIED = "applied"
    IGNORED_TERMINAL = "ignored_terminal"
    IGNORED_UNKNOWN_STATUS = "ignored_unknown_status"


@dataclass(frozen=True)
class StatusUpdate:
    status: Any
    transaction_id: str | None = None
    gateway_order_id: str | None = None
    payload: dict[str, Any] | None = None


def parse_status(value: Any) -> PaymentStatus | None:
    """Exact, case-sensitive match against the known statuses."""
    if isinstance(value, PaymentStatus):
        return value
    if not isinstance(value, str):
        return None
    try:
        return PaymentStatus(value)
    except ValueError:
        return None


def apply_transition(order: Order, update: StatusUpdate) -> tuple[TransitionOutcome, Order]:
    """Return the outcome and the order to persist. The input order is not mutated."""
    if order.status == PaymentStatus.SUCCESS:
        return TransitionOutcome.IGNORED_TERMINAL, order
    next_status = parse_status(update.status)
    if next_status is None:
        return TransitionOutcome.IGNORED_UNKNOWN_STATUS, order
    changes: dict[str, Any] = {
        "status": next_status,
        "transaction_id": update.transaction_id,
        "webhook_payload": update.payload,
    }
    # gateway_order_id is set at most once and never cleared
    if update.gateway_order_id and not order.gateway_order_id:
        changes["gateway_order_id"] = update.gateway_order_id
    return TransitionOutcome.APPLIED, order.model_copy(update=changes)
