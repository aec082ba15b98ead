from datetime import date
from enum import Enum
from typing import Iterable

from order_desk.domain.models import Order


class ReminderBucket(str, Enum):
    OVERDUE = "overdue"
    TODAY = "today"
    UPCOMING = "upcoming"
    NO_DATE = "no-date"


def classify_reminder(today: date, order: Order) -> ReminderBucket:
    """Группа напоминания: дата напоминания, иначе срок оплаты"""
    reminder = order.payment_reminder_date or order.payment_due_date
    if reminder is None:
        return ReminderBucket.NO_DATE
    if reminder < today:
        return ReminderBucket.OVERDUE
    if reminder == today:
        return ReminderBucket.TODAY
    return ReminderBucket.UPCOMING


def group_reminders(today: date, orders: Iterable[Order]) -> dict[ReminderBucket, list[Order]]:
    """Раскладывает неоплаченные кредитные заказы по группам"""
    groups = {bucket: [] for bucket in ReminderBucket}
    for order in orders:
        if order.is_outstanding_credit():
            groups[classify_reminder(today, order)].append(order)
    for bucket in groups:
        groups[bucket].sort(key=lambda o: o.payment_reminder_date or o.payment_due_date or date.max)
    return groups
