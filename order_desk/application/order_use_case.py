import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from order_desk.domain.models import Order
from order_desk.domain.lifecycle import LifecycleResult
from order_desk.domain.exceptions import DomainException, OrderNotFoundError

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class OrderUseCase:
    """Загрузка заказа, операция жизненного цикла и сохранение одной строкой"""

    def __init__(self, unit_of_work, clock: Optional[Clock] = None):
        self._uow = unit_of_work
        self._clock = clock or utc_now

    async def _apply(self, order_id: str, operation: Callable[[Order, datetime], LifecycleResult]) -> LifecycleResult:
        async with self._uow() as uow:
            order = await uow.orders.get_by_id(order_id)
            if not order:
                raise OrderNotFoundError(f"Заказ {order_id} не найден")
            try:
                result = operation(order, self._clock())
            except DomainException as e:
                logger.warning(f"Операция над заказом {order_id} отклонена: {e}")
                raise

            await uow.orders.save(result.order)
            await uow.commit()

        actions = ", ".join(entry.action for entry in result.audit_entries)
        logger.info(f"Заказ {order_id}: {actions} (статус {result.order.status.value})")
        return result
