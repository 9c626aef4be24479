from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any

from beanie import DecimalAnnotation, Document, Indexed
from pydantic import BaseModel, Field, field_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class Order(BaseModel):
    """A payment order as the flows see it, independent of the store backend."""

    merchant_order_id: str
    amount: Decimal
    status: PaymentStatus = PaymentStatus.PENDING
    gateway_order_id: str | None = None
    transaction_id: str | None = None
    webhook_payload: dict[str, Any] | None = None
    customer_name: str = ""
    customer_email: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("created_at", "updated_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # Motor hands back naive datetimes unless the client is tz_aware
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class PaymentRecord(Document):
    merchant_order_id: Indexed(str, unique=True)
    amount: DecimalAnnotation
    status: PaymentStatus = PaymentStatus.PENDING
    gateway_order_id: str | None = None
    transaction_id: str | None = None
    webhook_payload: dict[str, Any] | None = None
    customer_name: str = ""
    customer_email: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "payments"
        indexes = [[("status", 1)]]

    @classmethod
    def from_order(cls, order: Order) -> "PaymentRecord":
        return cls(**order.model_dump())

    def to_order(self) -> Order:
        return Order(**self.model_dump(exclude={"id", "revision_id"}))
