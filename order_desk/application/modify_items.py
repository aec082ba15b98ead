import logging
from decimal import Decimal
from enum import Enum
from pydantic import BaseModel
from typing import Optional

from order_desk.domain.models import OrderItem
from order_desk.domain.lifecycle import LifecycleResult, modify_items_by_admin, modify_items_by_client
from order_desk.application.order_use_case import OrderUseCase

logger = logging.getLogger(__name__)


class Actor(str, Enum):
    CLIENT = "client"
    ADMIN = "admin"


class ModifiedItemDTO(BaseModel):
    product_id: str
    product_name: str
    quantity: int
    unit_price: Optional[Decimal] = None


class ModifyItemsDTO(BaseModel):
    order_id: str
    actor: Actor
    user: str = "Client"
    items: list[ModifiedItemDTO]


class ModifyItemsUseCase(OrderUseCase):
    """Изменение позиций клиентом (сброс цен) или администратором (с ценами)"""

    async def __call__(self, dto: ModifyItemsDTO) -> LifecycleResult:
        logger.info(f"Изменение позиций заказа {dto.order_id} ({dto.actor.value})")
        items = [
            OrderItem(
                product_id=item.product_id,
                product_name=item.product_name,
                quantity=item.quantity,
                unit_price=item.unit_price,
            )
            for item in dto.items
        ]

        if dto.actor == Actor.ADMIN:
            return await self._apply(dto.order_id, lambda order, now: modify_items_by_admin(order, items, now))
        return await self._apply(dto.order_id, lambda order, now: modify_items_by_client(order, items, dto.user, now))
