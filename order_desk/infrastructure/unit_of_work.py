import asyncio
from contextlib import asynccontextmanager
from typing import Awaitable, Callable, List

from order_desk.application.interfaces import TableStorage
from order_desk.infrastructure.repositories import TableOrderRepository, TableProductRepository


class UnitOfWork:
    def __init__(self, storage: TableStorage):
        self._storage = storage
        # Один писатель на процесс: операции над документом не чередуются
        self._lock = asyncio.Lock()

    @property
    def storage(self) -> TableStorage:
        return self._storage

    @property
    def lock(self) -> asyncio.Lock:
        """Блокировка писателя, ее берут и прямые записи в хранилище"""
        return self._lock

    @asynccontextmanager
    async def __call__(self):
        async with self._lock:
            uow_impl = _UnitOfWorkImpl(self._storage)
            try:
                yield uow_impl
            finally:
                # Если commit не вызван — изменения отбрасываются
                await uow_impl.rollback()


class _UnitOfWorkImpl:
    def __init__(self, storage: TableStorage):
        self._pending: List[Callable[[], Awaitable[int]]] = []
        self.orders = TableOrderRepository(storage, self._pending.append)
        self.products = TableProductRepository(storage)

    async def commit(self):
        pending = list(self._pending)
        self._pending.clear()
        for write in pending:
            await write()

    async def rollback(self):
        self._pending.clear()
