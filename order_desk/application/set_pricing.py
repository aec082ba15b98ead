import logging
from decimal import Decimal
from pydantic import BaseModel

from order_desk.domain.lifecycle import LifecycleResult, set_pricing
from order_desk.application.order_use_case import OrderUseCase

logger = logging.getLogger(__name__)


class SetPricingDTO(BaseModel):
    order_id: str
    prices: dict[str, Decimal] = {}
    use_catalog_prices: bool = False


class SetPricingUseCase(OrderUseCase):
    async def __call__(self, dto: SetPricingDTO) -> LifecycleResult:
        logger.info(f"Оценка заказа {dto.order_id}: {len(dto.prices)} цен")

        catalog = []
        if dto.use_catalog_prices:
            async with self._uow() as uow:
                catalog = await uow.products.list()

        return await self._apply(
            dto.order_id,
            lambda order, now: set_pricing(order, dto.prices, now, catalog=catalog),
        )
