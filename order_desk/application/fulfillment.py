import logging
from pydantic import BaseModel
from typing import Optional

from order_desk.domain.lifecycle import LifecycleResult, confirm_receipt, dispatch
from order_desk.application.order_use_case import OrderUseCase

logger = logging.getLogger(__name__)


class ConfirmReceiptDTO(BaseModel):
    order_id: str
    rating: Optional[int] = None
    feedback: Optional[str] = None
    user: str = "Client"


class DispatchOrderUseCase(OrderUseCase):
    async def __call__(self, order_id: str) -> LifecycleResult:
        logger.info(f"Отправка заказа {order_id}")
        return await self._apply(order_id, dispatch)


class ConfirmReceiptUseCase(OrderUseCase):
    """Клиент подтверждает получение; заказ закрывается, если оплата уже получена"""

    async def __call__(self, dto: ConfirmReceiptDTO) -> LifecycleResult:
        return await self._apply(
            dto.order_id,
            lambda order, now: confirm_receipt(order, dto.rating, dto.user, now, feedback=dto.feedback),
        )
