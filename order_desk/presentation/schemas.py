from datetime import date
from decimal import Decimal
from pydantic import BaseModel, Field
from typing import Any, Optional

from order_desk.domain.models import AuditEntry, CamelModel, Order, PaymentType
from order_desk.domain.lifecycle import LifecycleResult
from order_desk.domain.reminders import ReminderBucket
from order_desk.application.modify_items import Actor


class InquiryItemRequest(CamelModel):
    product_id: str
    quantity: int


class SubmitInquiryRequest(CamelModel):
    client_id: str
    client_name: str
    client_mobile: Optional[str] = None
    items: list[InquiryItemRequest]


class SetPricingRequest(CamelModel):
    prices: dict[str, Decimal] = {}
    use_catalog_prices: bool = False


class ModifiedItemRequest(CamelModel):
    product_id: str
    product_name: str
    quantity: int
    unit_price: Optional[Decimal] = None


class ModifyItemsRequest(CamelModel):
    actor: Actor = Actor.CLIENT
    user: str = "Client"
    items: list[ModifiedItemRequest]


class ActorRequest(CamelModel):
    user: str = "Client"


class PaymentTermsRequest(CamelModel):
    payment_type: PaymentType
    due_date: Optional[date] = None


class ConfirmReceiptRequest(CamelModel):
    rating: Optional[int] = None
    feedback: Optional[str] = None
    user: str = "Client"


class SnoozeReminderRequest(CamelModel):
    days: int


class ExtendReminderRequest(CamelModel):
    new_date: Optional[date] = Field(default=None, alias="date")


class LifecycleResponse(CamelModel):
    order: Order
    audit_entries: list[AuditEntry]

    @classmethod
    def from_result(cls, result: LifecycleResult):
        return cls(order=result.order, audit_entries=result.audit_entries)


class ReminderBoardResponse(CamelModel):
    overdue: list[Order] = []
    today: list[Order] = []
    upcoming: list[Order] = []
    no_date: list[Order] = Field(default=[], alias="no-date")

    @classmethod
    def from_groups(cls, groups: dict[ReminderBucket, list[Order]]):
        return cls(
            overdue=groups[ReminderBucket.OVERDUE],
            today=groups[ReminderBucket.TODAY],
            upcoming=groups[ReminderBucket.UPCOMING],
            no_date=groups[ReminderBucket.NO_DATE],
        )


class StaleOrdersResponse(CamelModel):
    deleted: bool
    count: int
    orders: list[Order]


class ErrorResponse(BaseModel):
    detail: str


# Фасад /data/*
class TableRequest(BaseModel):
    table: Optional[str] = None


class InsertRequest(BaseModel):
    table: Optional[str] = None
    data: Optional[dict[str, Any]] = None


class UpdateRequest(BaseModel):
    table: Optional[str] = None
    where: Optional[dict[str, Any]] = None
    data: Optional[dict[str, Any]] = None


class DeleteRequest(BaseModel):
    table: Optional[str] = None
    where: Optional[dict[str, Any]] = None
