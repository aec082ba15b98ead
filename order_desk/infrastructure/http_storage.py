import httpx
import logging
from typing import List, Optional

from order_desk.application.interfaces import TableStorage
from order_desk.domain.exceptions import PersistenceError

logger = logging.getLogger(__name__)


class HTTPTableStorage(TableStorage):
    """Клиент REST фасада /data/* другого экземпляра сервиса"""

    def __init__(
        self,
        base_url: str,
        api_token: str = "",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._api_token = api_token
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            headers={"X-API-Key": self._api_token},
            timeout=self._timeout,
            transport=self._transport,
        )

    async def _write(self, method: str, path: str, payload: dict) -> dict:
        try:
            async with self._client() as client:
                response = await client.request(method, path, json=payload)
        except httpx.RequestError as e:
            logger.error(f"Data API ошибка подключения: {e}")
            raise PersistenceError(f"Data API не доступен: {str(e)}")

        body = response.json() if response.content else {}
        if response.status_code != 200 or not body.get("success"):
            message = body.get("message") or response.status_code
            logger.error(f"Data API {method} {path} ошибка: {message}")
            raise PersistenceError(f"Data API ошибка: {message}")
        return body

    async def create_table(self, name: str) -> None:
        await self._write("POST", "/data/create-table", {"table": name})

    async def read_table(self, name: str) -> List[dict]:
        # Ошибка чтения не прерывает работу: возвращаем пустую таблицу
        try:
            async with self._client() as client:
                response = await client.get("/data/read", params={"table": name})
            if response.status_code == 200:
                body = response.json()
                if body.get("success"):
                    return body.get("data") or []
            logger.error(f"Data API чтение {name} вернуло статус {response.status_code}")
        except (httpx.RequestError, ValueError) as e:
            logger.error(f"Data API ошибка чтения {name}: {e}")
        return []

    async def insert_row(self, table: str, row: dict) -> int:
        body = await self._write("POST", "/data/insert", {"table": table, "data": row})
        return int(body.get("id", 0))

    async def update_rows(self, table: str, where: dict, patch: dict) -> int:
        body = await self._write("PUT", "/data/update", {"table": table, "where": where, "data": patch})
        return int(body.get("count", 0))

    async def delete_rows(self, table: str, where: dict) -> int:
        body = await self._write("DELETE", "/data/delete", {"table": table, "where": where})
        return int(body.get("count", 0))
