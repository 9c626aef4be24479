from beanie.operators import Set
from pymongo.errors import DuplicateKeyError as MongoDuplicateKeyError

from app.core.exceptions import DuplicateKeyError, RecordNotFoundError
from app.models.payment import Order, PaymentRecord, PaymentStatus, utcnow
from app.storage.base import OrderStore

# Fields the webhook path may change; amount and created_at never move.
MUTABLE_FIELDS = ("status", "gateway_order_id", "transaction_id", "webhook_payload")


class MongoOrderStore(OrderStore):
    """Beanie-backed store; requires init_db() to have run."""

    async def create(self, order: Order) -> Order:
        try:
            await PaymentRecord.from_order(order).insert()
        except MongoDuplicateKeyError as e:
            raise DuplicateKeyError(order.merchant_order_id) from e
        return order

    async def find_by_merchant_order_id(self, merchant_order_id: str) -> Order | None:
        record = await PaymentRecord.find_one(PaymentRecord.merchant_order_id == merchant_order_id)
        return record.to_order() if record else None

    async def update(self, order: Order, *, if_status: PaymentStatus | None = None) -> bool:
        order.updated_at = utcnow()
        changes = {field: getattr(order, field) for field in MUTABLE_FIELDS}
        changes["updated_at"] = order.updated_at
        criteria = [PaymentRecord.merchant_order_id == order.merchant_order_id]
        if if_status is not None:
            criteria.append(PaymentRecord.status == if_status)
        # Single-document update, atomic in MongoDB.
        result = await PaymentRecord.find_one(*criteria).update(Set(changes))
        if result.matched_count:
            return True
        exists = await PaymentRecord.find_one(PaymentRecord.merchant_order_id == order.merchant_order_id)
        if not exists:
            raise RecordNotFoundError(order.merchant_order_id)
        return False

    async def set_gateway_order_id(self, merchant_order_id: str, gateway_order_id: str) -> bool:
        result = await PaymentRecord.find_one(
            PaymentRecord.merchant_order_id == merchant_order_id,
            PaymentRecord.gateway_order_id == None,  # noqa: E711
        ).update(Set({"gateway_order_id": gateway_order_id, "updated_at": utcnow()}))
        return bool(result.matched_count)
