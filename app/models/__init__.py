from app.models.payment import Order, PaymentRecord, PaymentStatus

__all__ = [
    "Order",
    "PaymentRecord",
    "PaymentStatus",
]
