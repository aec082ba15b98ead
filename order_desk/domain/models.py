from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class OrderStatus(str, Enum):
    NEW_INQUIRY = "new_inquiry"
    PENDING_PRICING = "pending_pricing"
    WAITING_APPROVAL = "waiting_approval"
    CONFIRMED = "confirmed"
    DISPATCHED = "dispatched"
    CLOSED = "closed"


class PaymentType(str, Enum):
    CASH = "cash"
    CREDIT = "credit"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class CamelModel(BaseModel):
    """Модели, которые хранятся с camelCase ключами"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OrderItem(CamelModel):
    """Value Object — позиция заказа"""
    product_id: str
    product_name: str
    quantity: int
    unit_price: Optional[Decimal] = None
    subtotal: Optional[Decimal] = None

    @property
    def is_priced(self) -> bool:
        return self.unit_price is not None

    def priced(self, unit_price: Decimal) -> "OrderItem":
        return self.model_copy(update={
            "unit_price": unit_price,
            "subtotal": unit_price * self.quantity,
        })

    def unpriced(self) -> "OrderItem":
        return self.model_copy(update={"unit_price": None, "subtotal": None})


class AuditEntry(BaseModel):
    """Запись журнала аудита"""
    timestamp: datetime
    action: str
    user: str
    details: Optional[str] = None


class Order(CamelModel):
    """Domain Entity — заказ"""
    id: str
    client_id: str
    client_name: str
    client_mobile: str = "Na"
    items: list[OrderItem]
    status: OrderStatus = OrderStatus.NEW_INQUIRY
    total_amount: Optional[Decimal] = None
    payment_type: Optional[PaymentType] = None
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_due_date: Optional[date] = None
    payment_reminder_date: Optional[date] = None
    dispatch_date: Optional[datetime] = None
    goods_received_date: Optional[datetime] = None
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    feedback: Optional[str] = None
    audit_log: list[AuditEntry] = Field(default_factory=list)
    is_locked: bool = False
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at", "dispatch_date", "goods_received_date")
    @classmethod
    def _as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Строки без смещения считаются UTC
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def can_be_priced(self) -> bool:
        """Бизнес-правило: цены ставятся только на неоцененный запрос"""
        return self.status in (OrderStatus.NEW_INQUIRY, OrderStatus.PENDING_PRICING)

    def can_be_modified_by_client(self) -> bool:
        """Бизнес-правило: клиент меняет позиции до принятия котировки"""
        return not self.is_locked and self.status in (
            OrderStatus.NEW_INQUIRY,
            OrderStatus.PENDING_PRICING,
            OrderStatus.WAITING_APPROVAL,
        )

    def can_be_modified_by_admin(self) -> bool:
        """Бизнес-правило: администратор меняет позиции до подтверждения"""
        return self.status in (
            OrderStatus.NEW_INQUIRY,
            OrderStatus.PENDING_PRICING,
            OrderStatus.WAITING_APPROVAL,
        )

    def can_be_accepted(self) -> bool:
        return self.status == OrderStatus.WAITING_APPROVAL

    def can_set_payment_terms(self) -> bool:
        return self.status == OrderStatus.CONFIRMED

    def can_be_dispatched(self) -> bool:
        return self.status == OrderStatus.CONFIRMED

    def can_be_paid(self) -> bool:
        """Бизнес-правило: оплата отмечается после подтверждения и только один раз"""
        return (
            self.status in (OrderStatus.CONFIRMED, OrderStatus.DISPATCHED)
            and self.payment_status == PaymentStatus.PENDING
        )

    def can_confirm_receipt(self) -> bool:
        return (
            self.status in (OrderStatus.CONFIRMED, OrderStatus.DISPATCHED)
            and self.goods_received_date is None
        )

    def is_ready_to_close(self) -> bool:
        """Бизнес-правило: закрытие только после оплаты и получения товара"""
        return (
            self.status != OrderStatus.CLOSED
            and self.payment_status == PaymentStatus.PAID
            and self.goods_received_date is not None
        )

    def is_outstanding_credit(self) -> bool:
        return (
            self.payment_type == PaymentType.CREDIT
            and self.payment_status == PaymentStatus.PENDING
            and self.status != OrderStatus.CLOSED
        )


class OrderMeta(CamelModel):
    """Необязательные поля заказа, которые хранятся в meta_json"""
    client_id: str = "unknown"
    payment_type: Optional[PaymentType] = None
    payment_due_date: Optional[date] = None
    payment_reminder_date: Optional[date] = None
    rating: Optional[int] = None
    feedback: Optional[str] = None
    updated_at: Optional[datetime] = None

    @field_validator("payment_due_date", "payment_reminder_date", mode="before")
    @classmethod
    def _date_part(cls, value):
        # Старые записи хранят даты как ISO timestamp
        if isinstance(value, str) and len(value) > 10:
            return value[:10]
        return value


class Product(CamelModel):
    """Value Object — товар из каталога"""
    id: str
    name: str
    description: str = ""
    unit_of_measure: str
    category: Optional[str] = None
    image_url: Optional[str] = None
    unit_price: Optional[Decimal] = None
