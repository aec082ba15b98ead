import logging

from order_desk.domain.models import Order
from order_desk.domain.lifecycle import STALE_ORDER_DAYS, select_stale
from order_desk.application.order_use_case import OrderUseCase

logger = logging.getLogger(__name__)


class CleanupStaleOrdersUseCase(OrderUseCase):
    """Удаление неоцененных запросов старше порога.

    Без подтверждения только возвращает найденные заказы. Удаление
    необратимо: строка заказа вместе с журналом аудита исчезает.
    """

    def __init__(self, unit_of_work, threshold_days: int = STALE_ORDER_DAYS, clock=None):
        super().__init__(unit_of_work, clock)
        self._threshold_days = threshold_days

    async def __call__(self, confirm: bool = False) -> list[Order]:
        now = self._clock()
        async with self._uow() as uow:
            stale = select_stale(await uow.orders.list(), now, self._threshold_days)
            if not stale:
                logger.info(f"Нет заказов старше {self._threshold_days} дней")
                return []
            if not confirm:
                logger.info(f"Найдено {len(stale)} устаревших заказов, удаление не подтверждено")
                return stale

            for order in stale:
                await uow.orders.delete(order.id)
            await uow.commit()

        logger.info(f"Удалено устаревших заказов: {len(stale)}")
        return stale
