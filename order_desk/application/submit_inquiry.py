import logging
import uuid
from pydantic import BaseModel
from typing import Optional

from order_desk.domain.models import OrderItem
from order_desk.domain.lifecycle import LifecycleResult, submit_inquiry
from order_desk.domain.exceptions import DomainException, ProductNotFoundError
from order_desk.application.order_use_case import OrderUseCase


logger = logging.getLogger(__name__)


class InquiryItemDTO(BaseModel):
    product_id: str
    quantity: int


class SubmitInquiryDTO(BaseModel):
    client_id: str
    client_name: str
    client_mobile: Optional[str] = None
    items: list[InquiryItemDTO]


class SubmitInquiryUseCase(OrderUseCase):
    async def __call__(self, dto: SubmitInquiryDTO) -> LifecycleResult:
        logger.info(f"Запрос от клиента {dto.client_id}: {len(dto.items)} позиций")
        now = self._clock()

        async with self._uow() as uow:
            # Название позиции берется из каталога
            items = []
            for requested in dto.items:
                product = await uow.products.get_by_id(requested.product_id)
                if not product:
                    raise ProductNotFoundError(f"Товар {requested.product_id} не найден")
                items.append(OrderItem(
                    product_id=product.id,
                    product_name=product.name,
                    quantity=requested.quantity,
                ))

            order_id = f"ORD-{int(now.timestamp() * 1000)}-{uuid.uuid4().hex[:6]}"
            try:
                result = submit_inquiry(
                    order_id=order_id,
                    client_id=dto.client_id,
                    client_name=dto.client_name,
                    client_mobile=dto.client_mobile,
                    items=items,
                    now=now,
                )
            except DomainException as e:
                logger.warning(f"Запрос клиента {dto.client_id} отклонен: {e}")
                raise

            await uow.orders.create(result.order)
            await uow.commit()

        logger.info(f"Заказ создан: {result.order.id}")
        return result
