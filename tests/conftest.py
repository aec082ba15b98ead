from datetime import datetime, timedelta, timezone

import pytest

from order_desk.infrastructure.storage import InMemoryTableStorage
from order_desk.infrastructure.unit_of_work import UnitOfWork


PRODUCTS = [
    {"id": "p-cement", "name": "Cement", "description": "OPC 53 grade", "unitOfMeasure": "bag", "unitPrice": 10.0},
    {"id": "p-sand", "name": "Sand", "description": "River sand", "unitOfMeasure": "ton", "unitPrice": 45.5},
    {"id": "p-brick", "name": "Brick", "description": "Red clay", "unitOfMeasure": "piece"},
]


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 1, 10, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def storage():
    return InMemoryTableStorage({"orders": [], "products": [dict(p) for p in PRODUCTS]})


@pytest.fixture
def uow(storage):
    return UnitOfWork(storage)


@pytest.fixture
def products():
    return [dict(p) for p in PRODUCTS]
