"""
Payment reminder classification and grouping.
"""

import logging
from datetime import date, datetime, timezone

import pytest

from order_desk.domain.models import Order, OrderItem, OrderStatus, PaymentStatus, PaymentType
from order_desk.domain.reminders import ReminderBucket, classify_reminder, group_reminders
from order_desk.presentation.reminder_worker import check_reminders

TODAY = date(2026, 1, 10)
CREATED = datetime(2026, 1, 1, tzinfo=timezone.utc)


def credit_order(order_id="ORD-1", due=None, reminder=None, **overrides):
    fields = dict(
        id=order_id,
        client_id="CLI-1",
        client_name="Asha",
        items=[OrderItem(product_id="A", product_name="Cement", quantity=1)],
        status=OrderStatus.DISPATCHED,
        payment_type=PaymentType.CREDIT,
        payment_due_date=due,
        payment_reminder_date=reminder,
        created_at=CREATED,
        updated_at=CREATED,
    )
    fields.update(overrides)
    return Order(**fields)


@pytest.mark.parametrize("due, reminder, expected", [
    (date(2026, 1, 9), None, ReminderBucket.OVERDUE),
    (date(2026, 1, 10), None, ReminderBucket.TODAY),
    (date(2026, 1, 11), None, ReminderBucket.UPCOMING),
    (date(2026, 1, 5), date(2026, 1, 12), ReminderBucket.UPCOMING),
    (date(2026, 1, 20), date(2026, 1, 10), ReminderBucket.TODAY),
    (None, date(2026, 1, 8), ReminderBucket.OVERDUE),
    (None, None, ReminderBucket.NO_DATE),
])
def test_classify_reminder(due, reminder, expected):
    assert classify_reminder(TODAY, credit_order(due=due, reminder=reminder)) == expected


def test_group_reminders_only_outstanding_credit_orders():
    orders = [
        credit_order("ORD-late", due=date(2026, 1, 2)),
        credit_order("ORD-later", due=date(2026, 1, 1)),
        credit_order("ORD-today", due=TODAY),
        credit_order("ORD-soon", due=date(2026, 2, 1)),
        credit_order("ORD-none"),
        credit_order("ORD-paid", due=date(2026, 1, 2), payment_status=PaymentStatus.PAID),
        credit_order("ORD-cash", due=date(2026, 1, 2), payment_type=PaymentType.CASH),
        credit_order("ORD-closed", due=date(2026, 1, 2), status=OrderStatus.CLOSED),
    ]

    groups = group_reminders(TODAY, orders)

    assert [o.id for o in groups[ReminderBucket.OVERDUE]] == ["ORD-later", "ORD-late"]
    assert [o.id for o in groups[ReminderBucket.TODAY]] == ["ORD-today"]
    assert [o.id for o in groups[ReminderBucket.UPCOMING]] == ["ORD-soon"]
    assert [o.id for o in groups[ReminderBucket.NO_DATE]] == ["ORD-none"]


@pytest.mark.asyncio
async def test_check_reminders_logs_due_orders(caplog):
    orders = [
        credit_order("ORD-late", due=date(2026, 1, 2)),
        credit_order("ORD-today", due=TODAY),
        credit_order("ORD-soon", due=date(2026, 2, 1)),
    ]

    async def board():
        return group_reminders(TODAY, orders)

    with caplog.at_level(logging.INFO):
        due = await check_reminders(board)

    assert due == 2
    warnings = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert "ORD-late" in warnings[0]
    assert "ORD-today" in caplog.text
    assert "ORD-soon" not in caplog.text
