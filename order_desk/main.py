import logging
import sys
import time
import uuid
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request

from order_desk.config import settings
from order_desk.application.interfaces import TableStorage
from order_desk.application.order_use_case import utc_now
from order_desk.infrastructure.factory import build_storage
from order_desk.infrastructure.sql_storage import SQLTableStorage
from order_desk.infrastructure.unit_of_work import UnitOfWork
from order_desk.presentation import api, data_api

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)
logger = logging.getLogger(__name__)


def create_app(storage: TableStorage = None, clock=None, stale_order_days: int = None) -> FastAPI:
    storage = storage or build_storage(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Управление жизненным циклом приложения"""
        if isinstance(storage, SQLTableStorage):
            await storage.init()
        logger.info("Order Desk запущен")

        yield

        logger.info("Приложение останавливается...")
        if isinstance(storage, SQLTableStorage):
            await storage.dispose()

    app = FastAPI(
        title="Order Desk",
        description="Запросы, котировки, оплата и доставка заказов",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.storage = storage
    app.state.uow = UnitOfWork(storage)
    app.state.clock = clock or utc_now
    app.state.stale_order_days = stale_order_days or settings.STALE_ORDER_DAYS

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = str(uuid.uuid4())
        started = time.perf_counter()
        logger.info(f"[{request_id}] {request.method} {request.url.path}")
        response = await call_next(request)
        duration = (time.perf_counter() - started) * 1000
        logger.info(f"[{request_id}] {request.method} {request.url.path} -> {response.status_code} ({duration:.0f}ms)")
        return response

    app.include_router(data_api.router)
    app.include_router(api.router, prefix="/api")
    return app


app = create_app()
