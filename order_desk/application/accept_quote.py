from order_desk.domain.lifecycle import LifecycleResult, accept_quote
from order_desk.application.order_use_case import OrderUseCase


class AcceptQuoteUseCase(OrderUseCase):
    async def __call__(self, order_id: str, user: str = "Client") -> LifecycleResult:
        return await self._apply(order_id, lambda order, now: accept_quote(order, user, now))
