import copy
import json
import logging
import os
from typing import List, Optional

from order_desk.application.interfaces import TableStorage

logger = logging.getLogger(__name__)

DEFAULT_TABLES = ("orders", "products")


def default_document() -> dict:
    return {name: [] for name in DEFAULT_TABLES}


def _matches(row: dict, where: dict) -> bool:
    return all(row.get(key) == value for key, value in where.items())


class InMemoryTableStorage(TableStorage):
    """Документ с таблицами в памяти процесса"""

    def __init__(self, document: Optional[dict] = None):
        self._document = document if document is not None else default_document()

    def _persist(self) -> None:
        pass

    async def create_table(self, name: str) -> None:
        self._document.setdefault(name, [])
        self._persist()

    async def read_table(self, name: str) -> List[dict]:
        return copy.deepcopy(self._document.get(name, []))

    async def insert_row(self, table: str, row: dict) -> int:
        rows = self._document.setdefault(table, [])
        rows.append(copy.deepcopy(row))
        self._persist()
        return len(rows)

    async def update_rows(self, table: str, where: dict, patch: dict) -> int:
        updated = 0
        for row in self._document.get(table, []):
            if _matches(row, where):
                row.update(copy.deepcopy(patch))
                updated += 1
        self._persist()
        return updated

    async def delete_rows(self, table: str, where: dict) -> int:
        rows = self._document.get(table, [])
        kept = [row for row in rows if not _matches(row, where)]
        deleted = len(rows) - len(kept)
        self._document[table] = kept
        self._persist()
        return deleted


class JsonFileStorage(InMemoryTableStorage):
    """Документ в памяти, который загружается из JSON файла и сохраняется в него"""

    def __init__(self, path: str):
        self._path = path
        super().__init__(self._load())

    def _load(self) -> dict:
        try:
            if os.path.exists(self._path):
                with open(self._path, encoding="utf-8") as f:
                    data = json.load(f)
                if isinstance(data, dict):
                    logger.info(f"Загружен документ {self._path}: {', '.join(data)}")
                    return data
                logger.error(f"Документ {self._path} не является объектом, используется пустой")
        except (OSError, ValueError) as e:
            logger.error(f"Ошибка чтения {self._path}: {e}")
        return default_document()

    def _persist(self) -> None:
        # Ошибка записи не прерывает операцию: документ в памяти остается актуальным
        try:
            directory = os.path.dirname(self._path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self._path, "w", encoding="utf-8") as f:
                json.dump(self._document, f, indent=2, ensure_ascii=False)
        except OSError as e:
            logger.error(f"Ошибка сохранения {self._path}: {e}")
