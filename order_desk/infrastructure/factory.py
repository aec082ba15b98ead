import logging

from order_desk.application.interfaces import TableStorage
from order_desk.infrastructure.storage import InMemoryTableStorage, JsonFileStorage
from order_desk.infrastructure.http_storage import HTTPTableStorage
from order_desk.infrastructure.sql_storage import SQLTableStorage

logger = logging.getLogger(__name__)


def build_storage(settings) -> TableStorage:
    """Хранилище по STORAGE_BACKEND"""
    backend = settings.STORAGE_BACKEND.lower()
    logger.info(f"Хранилище: {backend}")
    if backend == "memory":
        return InMemoryTableStorage()
    if backend == "json":
        return JsonFileStorage(settings.DB_FILE_PATH)
    if backend == "http":
        return HTTPTableStorage(settings.DATA_API_URL, settings.API_TOKEN)
    if backend == "sql":
        return SQLTableStorage.from_url(settings.ASYNC_DATABASE_URL)
    raise ValueError(f"Неизвестный STORAGE_BACKEND: {settings.STORAGE_BACKEND}")
