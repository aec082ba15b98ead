from abc import ABC, abstractmethod
from typing import Optional, List
from order_desk.domain.models import Order, OrderStatus, Product


class TableStorage(ABC):
    """Хранилище таблиц: строки как словари, фильтр по равенству ключей"""

    @abstractmethod
    async def create_table(self, name: str) -> None:
        pass

    @abstractmethod
    async def read_table(self, name: str) -> List[dict]:
        pass

    @abstractmethod
    async def insert_row(self, table: str, row: dict) -> int:
        """Возвращает id строки фасада: число строк в таблице после вставки.

        После удаления строк id может повториться, ключом строки остается ее
        собственное поле (order_id, id).
        """
        pass

    @abstractmethod
    async def update_rows(self, table: str, where: dict, patch: dict) -> int:
        pass

    @abstractmethod
    async def delete_rows(self, table: str, where: dict) -> int:
        pass


class OrderRepository(ABC):
    @abstractmethod
    async def get_by_id(self, order_id: str) -> Optional[Order]:
        pass

    @abstractmethod
    async def list(self, client_id: Optional[str] = None, status: Optional[OrderStatus] = None) -> List[Order]:
        pass

    @abstractmethod
    async def create(self, order: Order) -> None:
        pass

    @abstractmethod
    async def save(self, order: Order) -> None:
        pass

    @abstractmethod
    async def delete(self, order_id: str) -> None:
        pass


class ProductRepository(ABC):
    @abstractmethod
    async def list(self) -> List[Product]:
        pass

    @abstractmethod
    async def get_by_id(self, product_id: str) -> Optional[Product]:
        pass


class UnitOfWork(ABC):
    @property
    @abstractmethod
    def orders(self) -> OrderRepository:
        pass

    @property
    @abstractmethod
    def products(self) -> ProductRepository:
        pass

    @abstractmethod
    async def __call__(self):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass
