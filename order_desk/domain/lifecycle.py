"""Жизненный цикл заказа.

Все операции чистые: принимают снимок заказа и текущее время, возвращают
новый снимок и записи аудита, добавленные операцией. Статус меняется только
здесь, закрытие заказа проверяется одним шагом после каждой операции.
"""
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Iterable, Optional
from pydantic import BaseModel

from order_desk.domain.models import (
    AuditEntry, Order, OrderItem, OrderStatus, PaymentStatus, PaymentType, Product
)
from order_desk.domain.exceptions import (
    DuplicateItemError,
    EmptyOrderError,
    InvalidStatusTransitionError,
    MissingDueDateError,
    MissingPriceError,
    MissingRatingError,
    OrderLockedError,
    ValidationError,
)

ADMIN_USER = "Admin"
SYSTEM_USER = "System"
STALE_ORDER_DAYS = 30

ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.NEW_INQUIRY: frozenset({OrderStatus.PENDING_PRICING, OrderStatus.WAITING_APPROVAL}),
    OrderStatus.PENDING_PRICING: frozenset({OrderStatus.WAITING_APPROVAL}),
    OrderStatus.WAITING_APPROVAL: frozenset({OrderStatus.CONFIRMED, OrderStatus.PENDING_PRICING}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.DISPATCHED, OrderStatus.CLOSED}),
    OrderStatus.DISPATCHED: frozenset({OrderStatus.CLOSED}),
    OrderStatus.CLOSED: frozenset(),
}

UNPRICED_STATUSES = (OrderStatus.NEW_INQUIRY, OrderStatus.PENDING_PRICING)


class LifecycleResult(BaseModel):
    """Результат операции: новый снимок и добавленные записи аудита"""
    order: Order
    audit_entries: list[AuditEntry]


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return current == target or target in ALLOWED_TRANSITIONS[current]


def _ensure_transition(order: Order, target: OrderStatus, operation: str) -> None:
    if not can_transition(order.status, target):
        raise InvalidStatusTransitionError(order.id, order.status, operation)


def _normalize_items(items: Iterable[OrderItem]) -> list[OrderItem]:
    seen = set()
    valid = []
    for item in items:
        if item.product_id in seen:
            raise DuplicateItemError(item.product_id)
        seen.add(item.product_id)
        if item.quantity > 0:
            valid.append(item)
    if not valid:
        raise EmptyOrderError()
    return valid


def _total(items: list[OrderItem]) -> Decimal:
    return sum((item.subtotal or Decimal("0") for item in items if item.quantity > 0), Decimal("0"))


def _money(amount: Optional[Decimal]) -> str:
    return f"₹{(amount or Decimal('0')):.2f}"


def reevaluate_closure(order: Order, now: datetime) -> tuple[Order, Optional[AuditEntry]]:
    """Автоматическое закрытие после оплаты и получения товара"""
    if not order.is_ready_to_close():
        return order, None
    _ensure_transition(order, OrderStatus.CLOSED, "auto-close")
    entry = AuditEntry(
        timestamp=now,
        action="Order Closed",
        user=SYSTEM_USER,
        details="Auto-closed after payment and delivery",
    )
    closed = order.model_copy(update={
        "status": OrderStatus.CLOSED,
        "audit_log": [*order.audit_log, entry],
    })
    return closed, entry


def _apply(order: Order, now: datetime, changes: dict, entry: AuditEntry) -> LifecycleResult:
    """Применяет изменения и запись аудита одним снимком"""
    if "status" in changes:
        _ensure_transition(order, changes["status"], entry.action)
    updated = order.model_copy(update={
        **changes,
        "audit_log": [*order.audit_log, entry],
        "updated_at": now,
    })
    updated, closing = reevaluate_closure(updated, now)
    entries = [entry] if closing is None else [entry, closing]
    return LifecycleResult(order=updated, audit_entries=entries)


def submit_inquiry(
    order_id: str,
    client_id: str,
    client_name: str,
    items: Iterable[OrderItem],
    now: datetime,
    client_mobile: Optional[str] = None,
) -> LifecycleResult:
    valid = [item.unpriced() for item in _normalize_items(items)]
    entry = AuditEntry(
        timestamp=now,
        action="Order Created",
        user=client_name,
        details="Initial inquiry submitted",
    )
    order = Order(
        id=order_id,
        client_id=client_id,
        client_name=client_name,
        client_mobile=client_mobile or "Na",
        items=valid,
        status=OrderStatus.NEW_INQUIRY,
        payment_status=PaymentStatus.PENDING,
        is_locked=False,
        audit_log=[entry],
        created_at=now,
        updated_at=now,
    )
    return LifecycleResult(order=order, audit_entries=[entry])


def catalog_price(products: Iterable[Product], item: OrderItem) -> Optional[Decimal]:
    """Цена из каталога: сначала по id товара, затем по названию"""
    products = list(products)
    for product in products:
        if product.id == item.product_id:
            return product.unit_price
    for product in products:
        if product.name == item.product_name:
            return product.unit_price
    return None


def set_pricing(
    order: Order,
    prices: dict[str, Decimal],
    now: datetime,
    catalog: Optional[Iterable[Product]] = None,
) -> LifecycleResult:
    if not order.can_be_priced():
        raise InvalidStatusTransitionError(order.id, order.status, "set pricing")
    catalog = list(catalog or [])

    priced = []
    for item in order.items:
        unit_price = prices.get(item.product_id)
        if unit_price is None and catalog:
            unit_price = catalog_price(catalog, item)
        unit_price = Decimal(str(unit_price)) if unit_price is not None else Decimal("0")
        if unit_price < 0:
            raise ValidationError(f"Отрицательная цена для {item.product_id}")
        priced.append(item.priced(unit_price))

    total = _total(priced)
    entry = AuditEntry(timestamp=now, action="Pricing Set", user=ADMIN_USER, details=f"Total: {_money(total)}")
    return _apply(order, now, {
        "items": priced,
        "total_amount": total,
        "status": OrderStatus.WAITING_APPROVAL,
    }, entry)


def modify_items_by_client(order: Order, items: Iterable[OrderItem], user: str, now: datetime) -> LifecycleResult:
    """Клиент меняет позиции: цены сбрасываются, заказ снова ждет оценки"""
    if order.is_locked:
        raise OrderLockedError(order.id)
    if not order.can_be_modified_by_client():
        raise InvalidStatusTransitionError(order.id, order.status, "modify items")
    valid = [item.unpriced() for item in _normalize_items(items)]
    entry = AuditEntry(
        timestamp=now,
        action="Order Modified",
        user=user,
        details=f"Updated to {len(valid)} item(s)",
    )
    return _apply(order, now, {
        "items": valid,
        "total_amount": None,
        "status": OrderStatus.PENDING_PRICING,
    }, entry)


def modify_items_by_admin(order: Order, items: Iterable[OrderItem], now: datetime) -> LifecycleResult:
    """Администратор меняет позиции с ценами и снова отправляет котировку"""
    if not order.can_be_modified_by_admin():
        raise InvalidStatusTransitionError(order.id, order.status, "modify items")
    valid = _normalize_items(items)

    # Цены сохраняются только у позиций, которые остались в заказе
    previous = {item.product_id: item.unit_price for item in order.items}
    repriced = []
    for item in valid:
        unit_price = item.unit_price
        if unit_price is None and item.product_id in previous:
            unit_price = previous[item.product_id]
        repriced.append(item.priced(unit_price) if unit_price is not None else item.unpriced())

    missing = [item.product_id for item in repriced if not item.is_priced or item.unit_price <= 0]
    if missing:
        raise MissingPriceError(missing)

    total = _total(repriced)
    entry = AuditEntry(
        timestamp=now,
        action="Order Items Modified by Admin",
        user=ADMIN_USER,
        details=f"Updated to {len(repriced)} item(s), Total: {_money(total)}",
    )
    return _apply(order, now, {
        "items": repriced,
        "total_amount": total,
        "status": OrderStatus.WAITING_APPROVAL,
    }, entry)


def accept_quote(order: Order, user: str, now: datetime) -> LifecycleResult:
    if not order.can_be_accepted():
        raise InvalidStatusTransitionError(order.id, order.status, "accept quote")
    entry = AuditEntry(timestamp=now, action="Quote Accepted", user=user, details="Client confirmed the order")
    return _apply(order, now, {"status": OrderStatus.CONFIRMED, "is_locked": True}, entry)


def set_payment_terms(
    order: Order,
    payment_type: PaymentType,
    now: datetime,
    due_date: Optional[date] = None,
) -> LifecycleResult:
    if not order.can_set_payment_terms():
        raise InvalidStatusTransitionError(order.id, order.status, "set payment terms")
    if payment_type == PaymentType.CREDIT and due_date is None:
        raise MissingDueDateError()
    if payment_type == PaymentType.CASH:
        due_date = None
        details = "CASH"
    else:
        details = f"CREDIT - Due: {due_date.isoformat()}"
    entry = AuditEntry(timestamp=now, action="Payment Terms Set", user=ADMIN_USER, details=details)
    return _apply(order, now, {"payment_type": payment_type, "payment_due_date": due_date}, entry)


def dispatch(order: Order, now: datetime) -> LifecycleResult:
    if not order.can_be_dispatched():
        raise InvalidStatusTransitionError(order.id, order.status, "dispatch")
    entry = AuditEntry(timestamp=now, action="Order Dispatched", user=ADMIN_USER, details="Materials in transit")
    return _apply(order, now, {"status": OrderStatus.DISPATCHED, "dispatch_date": now}, entry)


def mark_paid(order: Order, now: datetime) -> LifecycleResult:
    if not order.can_be_paid():
        raise InvalidStatusTransitionError(order.id, order.status, "mark paid")
    if order.goods_received_date is not None:
        outcome = "Order CLOSED (payment + goods both confirmed)"
    else:
        outcome = "Awaiting goods receipt confirmation to close order"
    entry = AuditEntry(
        timestamp=now,
        action="Payment Received",
        user=ADMIN_USER,
        details=f"Payment marked as PAID. Amount: {_money(order.total_amount)}. {outcome}",
    )
    return _apply(order, now, {"payment_status": PaymentStatus.PAID}, entry)


def confirm_receipt(
    order: Order,
    rating: Optional[int],
    user: str,
    now: datetime,
    feedback: Optional[str] = None,
) -> LifecycleResult:
    if rating is None or not 1 <= rating <= 5:
        raise MissingRatingError()
    if not order.can_confirm_receipt():
        raise InvalidStatusTransitionError(order.id, order.status, "confirm receipt")
    if order.payment_status == PaymentStatus.PAID:
        outcome = "Order CLOSED (payment received + goods confirmed)"
    else:
        outcome = "Awaiting payment clearance to close order"
    entry = AuditEntry(
        timestamp=now,
        action="Goods Received",
        user=user,
        details=f"Confirmed receipt with {rating} stars. {outcome}",
    )
    return _apply(order, now, {
        "goods_received_date": now,
        "rating": rating,
        "feedback": feedback or None,
    }, entry)


def _reminder_base(order: Order) -> date:
    base = order.payment_reminder_date or order.payment_due_date
    if base is None:
        raise MissingDueDateError()
    return base


def snooze_reminder(order: Order, days: int, now: datetime) -> LifecycleResult:
    if days < 1:
        raise ValidationError("Отложить напоминание можно минимум на 1 день")
    new_date = _reminder_base(order) + timedelta(days=days)
    entry = AuditEntry(
        timestamp=now,
        action="Payment Reminder Snoozed",
        user=ADMIN_USER,
        details=f"Reminder extended to {new_date.strftime('%b %d, %Y')}",
    )
    return _apply(order, now, {"payment_reminder_date": new_date}, entry)


def extend_reminder(order: Order, new_date: Optional[date], now: datetime) -> LifecycleResult:
    if new_date is None:
        raise ValidationError("Выберите новую дату напоминания")
    entry = AuditEntry(
        timestamp=now,
        action="Payment Due Date Extended",
        user=ADMIN_USER,
        details=f"New reminder date: {new_date.strftime('%b %d, %Y')}",
    )
    return _apply(order, now, {"payment_reminder_date": new_date}, entry)


def is_stale(order: Order, now: datetime, threshold_days: int = STALE_ORDER_DAYS) -> bool:
    return order.status in UNPRICED_STATUSES and now - order.created_at > timedelta(days=threshold_days)


def select_stale(orders: Iterable[Order], now: datetime, threshold_days: int = STALE_ORDER_DAYS) -> list[Order]:
    return [order for order in orders if is_stale(order, now, threshold_days)]
