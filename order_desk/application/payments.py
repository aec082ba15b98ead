import logging
from datetime import date
from pydantic import BaseModel
from typing import Optional

from order_desk.domain.models import Order, PaymentType
from order_desk.domain.lifecycle import (
    LifecycleResult, extend_reminder, mark_paid, set_payment_terms, snooze_reminder
)
from order_desk.domain.reminders import ReminderBucket, group_reminders
from order_desk.application.order_use_case import OrderUseCase

logger = logging.getLogger(__name__)


class PaymentTermsDTO(BaseModel):
    order_id: str
    payment_type: PaymentType
    due_date: Optional[date] = None


class SetPaymentTermsUseCase(OrderUseCase):
    async def __call__(self, dto: PaymentTermsDTO) -> LifecycleResult:
        return await self._apply(
            dto.order_id,
            lambda order, now: set_payment_terms(order, dto.payment_type, now, due_date=dto.due_date),
        )


class MarkPaidUseCase(OrderUseCase):
    """Оплата получена; заказ закрывается, если товар уже получен"""

    async def __call__(self, order_id: str) -> LifecycleResult:
        return await self._apply(order_id, mark_paid)


class SnoozeReminderUseCase(OrderUseCase):
    async def __call__(self, order_id: str, days: int) -> LifecycleResult:
        return await self._apply(order_id, lambda order, now: snooze_reminder(order, days, now))


class ExtendReminderUseCase(OrderUseCase):
    async def __call__(self, order_id: str, new_date: Optional[date]) -> LifecycleResult:
        return await self._apply(order_id, lambda order, now: extend_reminder(order, new_date, now))


class GetReminderBoardUseCase(OrderUseCase):
    """Неоплаченные кредитные заказы по группам напоминаний"""

    async def __call__(self, today: Optional[date] = None) -> dict[ReminderBucket, list[Order]]:
        today = today or self._clock().date()
        async with self._uow() as uow:
            orders = await uow.orders.list()
        return group_reminders(today, orders)
