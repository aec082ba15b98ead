import json
import logging
from decimal import Decimal
from typing import Awaitable, Callable, List, Optional

from order_desk.domain.models import AuditEntry, Order, OrderItem, OrderMeta, OrderStatus, Product
from order_desk.domain.exceptions import PersistenceError
from order_desk.application.interfaces import OrderRepository, ProductRepository, TableStorage

logger = logging.getLogger(__name__)

ORDERS_TABLE = "orders"
PRODUCTS_TABLE = "products"

StageWrite = Callable[[Callable[[], Awaitable[int]]], None]


def _iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


class TableOrderRepository(OrderRepository):
    """Заказы в таблице orders: плоская строка с JSON колонками"""

    def __init__(self, storage: TableStorage, stage: StageWrite):
        self._storage = storage
        self._stage = stage

    async def get_by_id(self, order_id: str) -> Optional[Order]:
        for row in await self._storage.read_table(ORDERS_TABLE):
            if row.get("order_id") == order_id:
                try:
                    return self._to_domain(row)
                except (KeyError, ValueError, TypeError) as e:
                    logger.error(f"Поврежденная строка заказа {order_id}: {e}")
                    raise PersistenceError(f"Заказ {order_id} не удается прочитать")
        return None

    async def list(self, client_id: Optional[str] = None, status: Optional[OrderStatus] = None) -> List[Order]:
        orders = []
        for row in await self._storage.read_table(ORDERS_TABLE):
            try:
                order = self._to_domain(row)
            except (KeyError, ValueError, TypeError) as e:
                logger.error(f"Пропущена поврежденная строка заказа {row.get('order_id')}: {e}")
                continue
            if client_id is not None and order.client_id != client_id:
                continue
            if status is not None and order.status != status:
                continue
            orders.append(order)
        return orders

    async def create(self, order: Order) -> None:
        row = self._to_row(order)
        self._stage(lambda: self._storage.insert_row(ORDERS_TABLE, row))

    async def save(self, order: Order) -> None:
        row = self._to_row(order)
        self._stage(lambda: self._storage.update_rows(ORDERS_TABLE, {"order_id": order.id}, row))

    async def delete(self, order_id: str) -> None:
        self._stage(lambda: self._storage.delete_rows(ORDERS_TABLE, {"order_id": order_id}))

    @staticmethod
    def _to_row(order: Order) -> dict:
        """Трансформация Domain → строка таблицы"""
        meta = OrderMeta(
            client_id=order.client_id,
            payment_type=order.payment_type,
            payment_due_date=order.payment_due_date,
            payment_reminder_date=order.payment_reminder_date,
            rating=order.rating,
            feedback=order.feedback,
            updated_at=order.updated_at,
        )
        items = [item.model_dump(mode="json", by_alias=True, exclude_none=True) for item in order.items]
        audit_log = [entry.model_dump(mode="json", exclude_none=True) for entry in order.audit_log]
        return {
            "order_id": order.id,
            "client_name": order.client_name,
            "mobile": order.client_mobile,
            "status": order.status.value,
            "items_json": json.dumps(items, ensure_ascii=False),
            "total_amount": float(order.total_amount) if order.total_amount is not None else None,
            "is_locked": order.is_locked,
            "audit_log": json.dumps(audit_log, ensure_ascii=False),
            "created_at": order.created_at.isoformat(),
            "payment_status": order.payment_status.value,
            "goods_received_date": _iso(order.goods_received_date),
            "dispatch_date": _iso(order.dispatch_date),
            "meta_json": meta.model_dump_json(by_alias=True, exclude_none=True),
        }

    @staticmethod
    def _to_domain(row: dict) -> Order:
        """Трансформация строка таблицы → Domain"""
        items = [OrderItem.model_validate(item) for item in json.loads(row.get("items_json") or "[]")]
        audit_log = [AuditEntry.model_validate(entry) for entry in json.loads(row.get("audit_log") or "[]")]
        meta = OrderMeta.model_validate_json(row.get("meta_json") or "{}")

        # Неоцененный заказ хранится с total_amount = 0
        total = row.get("total_amount")
        if total is not None and any(item.subtotal is not None for item in items):
            total_amount = Decimal(str(total))
        else:
            total_amount = None

        return Order(
            id=row["order_id"],
            client_id=meta.client_id,
            client_name=row.get("client_name") or "",
            client_mobile=row.get("mobile") or "Na",
            items=items,
            status=OrderStatus(row["status"]),
            total_amount=total_amount,
            payment_type=meta.payment_type,
            payment_status=row.get("payment_status") or "pending",
            payment_due_date=meta.payment_due_date,
            payment_reminder_date=meta.payment_reminder_date,
            dispatch_date=row.get("dispatch_date"),
            goods_received_date=row.get("goods_received_date"),
            rating=meta.rating,
            feedback=meta.feedback,
            audit_log=audit_log,
            is_locked=bool(row.get("is_locked")),
            created_at=row["created_at"],
            updated_at=meta.updated_at or row["created_at"],
        )


class TableProductRepository(ProductRepository):
    def __init__(self, storage: TableStorage):
        self._storage = storage

    async def list(self) -> List[Product]:
        products = []
        for row in await self._storage.read_table(PRODUCTS_TABLE):
            try:
                products.append(Product.model_validate(row))
            except ValueError as e:
                logger.error(f"Пропущен поврежденный товар {row.get('id')}: {e}")
        return products

    async def get_by_id(self, product_id: str) -> Optional[Product]:
        for product in await self.list():
            if product.id == product_id:
                return product
        return None
