import logging
from typing import List

from sqlalchemy import Table, and_, delete, func, insert, select, true, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from order_desk.application.interfaces import TableStorage
from order_desk.domain.exceptions import PersistenceError
from order_desk.infrastructure.db_schema import TABLES, metadata

logger = logging.getLogger(__name__)


class SQLTableStorage(TableStorage):
    """Таблицы orders и products в SQL базе через SQLAlchemy Core"""

    def __init__(self, engine: AsyncEngine):
        self._engine = engine

    @classmethod
    def from_url(cls, database_url: str) -> "SQLTableStorage":
        return cls(create_async_engine(database_url))

    async def init(self) -> None:
        """Создает таблицы, если их еще нет"""
        async with self._engine.begin() as conn:
            await conn.run_sync(metadata.create_all)
        logger.info("Таблицы созданы")

    async def dispose(self) -> None:
        await self._engine.dispose()

    def _table(self, name: str) -> Table:
        tbl = TABLES.get(name)
        if tbl is None:
            raise PersistenceError(f"Таблица {name} не поддерживается")
        return tbl

    @staticmethod
    def _where(tbl: Table, where: dict):
        unknown = set(where) - set(tbl.c.keys())
        if unknown:
            raise PersistenceError(f"Неизвестные колонки {tbl.name}: {', '.join(sorted(unknown))}")
        if not where:
            return true()
        return and_(*(tbl.c[key] == value for key, value in where.items()))

    async def create_table(self, name: str) -> None:
        tbl = self._table(name)
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(tbl.create, checkfirst=True)
        except SQLAlchemyError as e:
            logger.error(f"Ошибка создания таблицы {name}: {e}")
            raise PersistenceError(str(e))

    async def read_table(self, name: str) -> List[dict]:
        tbl = TABLES.get(name)
        if tbl is None:
            return []
        try:
            async with self._engine.connect() as conn:
                result = await conn.execute(select(tbl))
                return [dict(row._mapping) for row in result.fetchall()]
        except SQLAlchemyError as e:
            logger.error(f"Ошибка чтения таблицы {name}: {e}")
            return []

    async def insert_row(self, table: str, row: dict) -> int:
        """Как у фасада: возвращает число строк после вставки, а не первичный ключ"""
        tbl = self._table(table)
        values = {key: value for key, value in row.items() if key in tbl.c}
        try:
            async with self._engine.begin() as conn:
                await conn.execute(insert(tbl).values(**values))
                result = await conn.execute(select(func.count()).select_from(tbl))
                return result.scalar_one()
        except SQLAlchemyError as e:
            logger.error(f"Ошибка вставки в {table}: {e}")
            raise PersistenceError(str(e))

    async def update_rows(self, table: str, where: dict, patch: dict) -> int:
        tbl = self._table(table)
        values = {key: value for key, value in patch.items() if key in tbl.c}
        if not values:
            return 0
        stmt = update(tbl).where(self._where(tbl, where)).values(**values)
        try:
            async with self._engine.begin() as conn:
                result = await conn.execute(stmt)
                return result.rowcount
        except SQLAlchemyError as e:
            logger.error(f"Ошибка обновления {table}: {e}")
            raise PersistenceError(str(e))

    async def delete_rows(self, table: str, where: dict) -> int:
        tbl = self._table(table)
        stmt = delete(tbl).where(self._where(tbl, where))
        try:
            async with self._engine.begin() as conn:
                result = await conn.execute(stmt)
                return result.rowcount
        except SQLAlchemyError as e:
            logger.error(f"Ошибка удаления из {table}: {e}")
            raise PersistenceError(str(e))
