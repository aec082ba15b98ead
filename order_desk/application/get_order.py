from typing import Optional

from order_desk.domain.models import Order, OrderStatus, Product
from order_desk.domain.exceptions import OrderNotFoundError


class GetOrderUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, order_id: str) -> Order:
        async with self._uow() as uow:
            order = await uow.orders.get_by_id(order_id)
            if not order:
                raise OrderNotFoundError(f"Заказ {order_id} не найден")
            return order


class ListOrdersUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, client_id: Optional[str] = None, status: Optional[OrderStatus] = None) -> list[Order]:
        async with self._uow() as uow:
            orders = await uow.orders.list(client_id=client_id, status=status)
        return sorted(orders, key=lambda o: o.created_at, reverse=True)


class ListProductsUseCase:
    """Каталог товаров, только чтение"""

    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self) -> list[Product]:
        async with self._uow() as uow:
            return await uow.products.list()
