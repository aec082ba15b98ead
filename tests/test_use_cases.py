"""
Use cases against the in-memory table storage.
"""

import json
from datetime import date, timedelta
from decimal import Decimal

import pytest

from order_desk.application.accept_quote import AcceptQuoteUseCase
from order_desk.application.cleanup_stale import CleanupStaleOrdersUseCase
from order_desk.application.fulfillment import ConfirmReceiptDTO, ConfirmReceiptUseCase, DispatchOrderUseCase
from order_desk.application.get_order import GetOrderUseCase, ListOrdersUseCase, ListProductsUseCase
from order_desk.application.modify_items import Actor, ModifiedItemDTO, ModifyItemsDTO, ModifyItemsUseCase
from order_desk.application.payments import (
    ExtendReminderUseCase,
    GetReminderBoardUseCase,
    MarkPaidUseCase,
    PaymentTermsDTO,
    SetPaymentTermsUseCase,
    SnoozeReminderUseCase,
)
from order_desk.application.set_pricing import SetPricingDTO, SetPricingUseCase
from order_desk.application.submit_inquiry import InquiryItemDTO, SubmitInquiryDTO, SubmitInquiryUseCase
from order_desk.domain.exceptions import (
    EmptyOrderError,
    InvalidStatusTransitionError,
    MissingRatingError,
    OrderNotFoundError,
    PersistenceError,
    ProductNotFoundError,
)
from order_desk.domain.models import OrderStatus, PaymentStatus, PaymentType
from order_desk.domain.reminders import ReminderBucket


async def submit(uow, clock, *items, client_id="CLI-1"):
    dto = SubmitInquiryDTO(
        client_id=client_id,
        client_name="Asha",
        client_mobile="9876500000",
        items=[InquiryItemDTO(product_id=p, quantity=q) for p, q in (items or [("p-cement", 2)])],
    )
    return (await SubmitInquiryUseCase(uow, clock)(dto)).order


@pytest.mark.asyncio
async def test_submit_inquiry_persists_flat_row(uow, storage, clock):
    order = await submit(uow, clock, ("p-cement", 2), ("p-sand", 1))

    rows = await storage.read_table("orders")
    assert len(rows) == 1
    row = rows[0]
    assert row["order_id"] == order.id
    assert row["client_name"] == "Asha"
    assert row["mobile"] == "9876500000"
    assert row["status"] == "new_inquiry"
    assert row["is_locked"] is False
    assert row["payment_status"] == "pending"
    assert row["total_amount"] is None
    assert json.loads(row["items_json"]) == [
        {"productId": "p-cement", "productName": "Cement", "quantity": 2},
        {"productId": "p-sand", "productName": "Sand", "quantity": 1},
    ]
    assert json.loads(row["audit_log"])[0]["action"] == "Order Created"
    assert json.loads(row["meta_json"])["clientId"] == "CLI-1"


@pytest.mark.asyncio
async def test_submit_inquiry_with_no_items_leaves_store_unchanged(uow, storage, clock):
    await submit(uow, clock)

    with pytest.raises(EmptyOrderError):
        await SubmitInquiryUseCase(uow, clock)(SubmitInquiryDTO(client_id="CLI-1", client_name="Asha", items=[]))
    with pytest.raises(EmptyOrderError):
        await submit(uow, clock, ("p-cement", 0))

    assert len(await storage.read_table("orders")) == 1


@pytest.mark.asyncio
async def test_submit_inquiry_unknown_product(uow, storage, clock):
    with pytest.raises(ProductNotFoundError):
        await submit(uow, clock, ("p-missing", 1))

    assert await storage.read_table("orders") == []


@pytest.mark.asyncio
async def test_full_order_flow(uow, clock):
    order = await submit(uow, clock, ("p-cement", 2))

    priced = await SetPricingUseCase(uow, clock)(SetPricingDTO(order_id=order.id, prices={"p-cement": Decimal("10.00")}))
    assert priced.order.status == OrderStatus.WAITING_APPROVAL
    assert priced.order.total_amount == Decimal("20.00")

    accepted = await AcceptQuoteUseCase(uow, clock)(order.id, user="Asha")
    assert accepted.order.is_locked is True

    await SetPaymentTermsUseCase(uow, clock)(PaymentTermsDTO(order_id=order.id, payment_type=PaymentType.CASH))
    dispatched = await DispatchOrderUseCase(uow, clock)(order.id)
    assert dispatched.order.status == OrderStatus.DISPATCHED

    paid = await MarkPaidUseCase(uow, clock)(order.id)
    assert paid.order.status == OrderStatus.DISPATCHED

    clock.advance(days=2)
    received = await ConfirmReceiptUseCase(uow, clock)(ConfirmReceiptDTO(order_id=order.id, rating=5, user="Asha"))
    assert received.order.status == OrderStatus.CLOSED
    assert [e.action for e in received.audit_entries] == ["Goods Received", "Order Closed"]

    stored = await GetOrderUseCase(uow)(order.id)
    assert stored.status == OrderStatus.CLOSED
    assert stored.payment_status == PaymentStatus.PAID
    assert stored.goods_received_date == clock.now
    assert stored.total_amount == Decimal("20")
    assert stored.rating == 5
    assert stored.payment_type == PaymentType.CASH
    assert [e.action for e in stored.audit_log] == [
        "Order Created",
        "Pricing Set",
        "Quote Accepted",
        "Payment Terms Set",
        "Order Dispatched",
        "Payment Received",
        "Goods Received",
        "Order Closed",
    ]


@pytest.mark.asyncio
async def test_rejected_operation_does_not_write(uow, storage, clock):
    order = await submit(uow, clock)
    before = await storage.read_table("orders")

    with pytest.raises(InvalidStatusTransitionError):
        await AcceptQuoteUseCase(uow, clock)(order.id)
    with pytest.raises(MissingRatingError):
        await ConfirmReceiptUseCase(uow, clock)(ConfirmReceiptDTO(order_id=order.id, rating=0))

    assert await storage.read_table("orders") == before


@pytest.mark.asyncio
async def test_unknown_order_is_not_found(uow, clock):
    with pytest.raises(OrderNotFoundError):
        await DispatchOrderUseCase(uow, clock)("ORD-missing")
    with pytest.raises(OrderNotFoundError):
        await GetOrderUseCase(uow)("ORD-missing")


@pytest.mark.asyncio
async def test_pricing_from_catalog(uow, clock):
    order = await submit(uow, clock, ("p-cement", 2), ("p-sand", 2), ("p-brick", 100))

    result = await SetPricingUseCase(uow, clock)(SetPricingDTO(
        order_id=order.id,
        prices={"p-brick": Decimal("0.25")},
        use_catalog_prices=True,
    ))

    assert [i.unit_price for i in result.order.items] == [Decimal("10.0"), Decimal("45.5"), Decimal("0.25")]
    assert result.order.total_amount == Decimal("136.0")


@pytest.mark.asyncio
async def test_client_and_admin_modifications(uow, clock):
    order = await submit(uow, clock, ("p-cement", 2))
    await SetPricingUseCase(uow, clock)(SetPricingDTO(order_id=order.id, prices={"p-cement": Decimal("10")}))

    client_edit = await ModifyItemsUseCase(uow, clock)(ModifyItemsDTO(
        order_id=order.id,
        actor=Actor.CLIENT,
        user="Asha",
        items=[
            ModifiedItemDTO(product_id="p-cement", product_name="Cement", quantity=4),
            ModifiedItemDTO(product_id="p-sand", product_name="Sand", quantity=1),
        ],
    ))
    assert client_edit.order.status == OrderStatus.PENDING_PRICING
    assert client_edit.order.total_amount is None

    admin_edit = await ModifyItemsUseCase(uow, clock)(ModifyItemsDTO(
        order_id=order.id,
        actor=Actor.ADMIN,
        items=[
            ModifiedItemDTO(product_id="p-cement", product_name="Cement", quantity=4, unit_price=Decimal("9")),
            ModifiedItemDTO(product_id="p-sand", product_name="Sand", quantity=0),
        ],
    ))
    assert admin_edit.order.status == OrderStatus.WAITING_APPROVAL
    assert admin_edit.order.total_amount == Decimal("36")

    stored = await GetOrderUseCase(uow)(order.id)
    assert [i.product_id for i in stored.items] == ["p-cement"]
    assert stored.total_amount == Decimal("36")


@pytest.mark.asyncio
async def test_mark_paid_on_confirmed_then_receipt_closes(uow, clock):
    order = await submit(uow, clock)
    await SetPricingUseCase(uow, clock)(SetPricingDTO(order_id=order.id, prices={"p-cement": Decimal("10")}))
    await AcceptQuoteUseCase(uow, clock)(order.id)

    paid = await MarkPaidUseCase(uow, clock)(order.id)
    assert paid.order.status == OrderStatus.CONFIRMED

    received = await ConfirmReceiptUseCase(uow, clock)(ConfirmReceiptDTO(order_id=order.id, rating=3))
    assert received.order.status == OrderStatus.CLOSED


@pytest.mark.asyncio
async def test_reminder_board_and_snooze(uow, clock):
    order = await submit(uow, clock)
    await SetPricingUseCase(uow, clock)(SetPricingDTO(order_id=order.id, prices={"p-cement": Decimal("10")}))
    await AcceptQuoteUseCase(uow, clock)(order.id)
    await SetPaymentTermsUseCase(uow, clock)(PaymentTermsDTO(
        order_id=order.id,
        payment_type=PaymentType.CREDIT,
        due_date=clock.now.date() - timedelta(days=1),
    ))

    board = await GetReminderBoardUseCase(uow, clock)()
    assert [o.id for o in board[ReminderBucket.OVERDUE]] == [order.id]

    await SnoozeReminderUseCase(uow, clock)(order.id, 1)
    board = await GetReminderBoardUseCase(uow, clock)()
    assert [o.id for o in board[ReminderBucket.TODAY]] == [order.id]

    await ExtendReminderUseCase(uow, clock)(order.id, date(2026, 2, 1))
    board = await GetReminderBoardUseCase(uow, clock)()
    assert [o.id for o in board[ReminderBucket.UPCOMING]] == [order.id]

    stored = await GetOrderUseCase(uow)(order.id)
    assert stored.payment_reminder_date == date(2026, 2, 1)
    assert stored.payment_due_date == clock.now.date() - timedelta(days=1)


@pytest.mark.asyncio
async def test_cleanup_stale_orders(uow, storage, clock):
    old_inquiry = await submit(uow, clock)
    old_pending = await submit(uow, clock)
    await ModifyItemsUseCase(uow, clock)(ModifyItemsDTO(
        order_id=old_pending.id,
        actor=Actor.CLIENT,
        items=[ModifiedItemDTO(product_id="p-sand", product_name="Sand", quantity=1)],
    ))
    old_quoted = await submit(uow, clock)
    await SetPricingUseCase(uow, clock)(SetPricingDTO(order_id=old_quoted.id, prices={"p-cement": Decimal("10")}))

    clock.advance(days=20)
    young = await submit(uow, clock)
    clock.advance(days=11)

    use_case = CleanupStaleOrdersUseCase(uow, threshold_days=30, clock=clock)
    preview = await use_case()
    assert {o.id for o in preview} == {old_inquiry.id, old_pending.id}
    assert len(await storage.read_table("orders")) == 4

    deleted = await use_case(confirm=True)
    assert {o.id for o in deleted} == {old_inquiry.id, old_pending.id}

    remaining = await ListOrdersUseCase(uow)()
    assert {o.id for o in remaining} == {old_quoted.id, young.id}
    assert await use_case(confirm=True) == []


@pytest.mark.asyncio
async def test_list_orders_filters(uow, clock):
    first = await submit(uow, clock, client_id="CLI-1")
    clock.advance(minutes=1)
    second = await submit(uow, clock, client_id="CLI-2")
    await SetPricingUseCase(uow, clock)(SetPricingDTO(order_id=second.id, prices={"p-cement": Decimal("1")}))

    assert [o.id for o in await ListOrdersUseCase(uow)()] == [second.id, first.id]
    assert [o.id for o in await ListOrdersUseCase(uow)(client_id="CLI-1")] == [first.id]
    assert [o.id for o in await ListOrdersUseCase(uow)(status=OrderStatus.WAITING_APPROVAL)] == [second.id]


@pytest.mark.asyncio
async def test_list_products(uow):
    products = await ListProductsUseCase(uow)()

    assert [p.id for p in products] == ["p-cement", "p-sand", "p-brick"]
    assert products[2].unit_price is None


@pytest.mark.asyncio
async def test_timestamps_without_offset_read_as_utc(uow, storage, clock):
    order = await submit(uow, clock)
    await storage.update_rows("orders", {"order_id": order.id}, {
        "created_at": "2025-12-01T09:00:00",
        "meta_json": '{"clientId": "CLI-1", "updatedAt": "2025-12-01T09:00:00"}',
    })

    stored = await GetOrderUseCase(uow)(order.id)
    assert stored.created_at.utcoffset() == timedelta(0)
    assert stored.updated_at.utcoffset() == timedelta(0)

    stale = await CleanupStaleOrdersUseCase(uow, threshold_days=30, clock=clock)()
    assert [o.id for o in stale] == [order.id]


@pytest.mark.asyncio
async def test_unreadable_order_row_raises_persistence_error(uow, storage, clock):
    order = await submit(uow, clock)
    await storage.update_rows("orders", {"order_id": order.id}, {"status": "archived"})

    with pytest.raises(PersistenceError):
        await GetOrderUseCase(uow)(order.id)
    with pytest.raises(PersistenceError):
        await DispatchOrderUseCase(uow, clock)(order.id)
    assert await ListOrdersUseCase(uow)() == []
