from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from typing import Optional

from order_desk.presentation.schemas import (
    ActorRequest,
    ConfirmReceiptRequest,
    ErrorResponse,
    ExtendReminderRequest,
    LifecycleResponse,
    ModifyItemsRequest,
    PaymentTermsRequest,
    ReminderBoardResponse,
    SetPricingRequest,
    SnoozeReminderRequest,
    StaleOrdersResponse,
    SubmitInquiryRequest,
)
from order_desk.application.accept_quote import AcceptQuoteUseCase
from order_desk.application.cleanup_stale import CleanupStaleOrdersUseCase
from order_desk.application.fulfillment import ConfirmReceiptDTO, ConfirmReceiptUseCase, DispatchOrderUseCase
from order_desk.application.get_order import GetOrderUseCase, ListOrdersUseCase, ListProductsUseCase
from order_desk.application.modify_items import ModifiedItemDTO, ModifyItemsDTO, ModifyItemsUseCase
from order_desk.application.payments import (
    ExtendReminderUseCase,
    GetReminderBoardUseCase,
    MarkPaidUseCase,
    PaymentTermsDTO,
    SetPaymentTermsUseCase,
    SnoozeReminderUseCase,
)
from order_desk.application.set_pricing import SetPricingDTO, SetPricingUseCase
from order_desk.application.submit_inquiry import InquiryItemDTO, SubmitInquiryDTO, SubmitInquiryUseCase
from order_desk.domain.models import Order, OrderStatus, Product
from order_desk.domain.exceptions import (
    DomainException,
    InvalidStatusTransitionError,
    NotFoundError,
    OrderLockedError,
    PersistenceError,
    ValidationError,
)

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


def to_http_error(e: DomainException) -> HTTPException:
    """Доменная ошибка → HTTP ответ"""
    if isinstance(e, ValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, (InvalidStatusTransitionError, OrderLockedError)):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if isinstance(e, PersistenceError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=f"Storage unavailable: {str(e)}")
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


def get_unit_of_work(request: Request):
    return request.app.state.uow


def get_clock(request: Request):
    return request.app.state.clock


# Фабрики для создания use cases
def get_submit_use_case(uow=Depends(get_unit_of_work), clock=Depends(get_clock)):
    return SubmitInquiryUseCase(uow, clock)


def get_pricing_use_case(uow=Depends(get_unit_of_work), clock=Depends(get_clock)):
    return SetPricingUseCase(uow, clock)


def get_modify_use_case(uow=Depends(get_unit_of_work), clock=Depends(get_clock)):
    return ModifyItemsUseCase(uow, clock)


def get_accept_use_case(uow=Depends(get_unit_of_work), clock=Depends(get_clock)):
    return AcceptQuoteUseCase(uow, clock)


def get_payment_terms_use_case(uow=Depends(get_unit_of_work), clock=Depends(get_clock)):
    return SetPaymentTermsUseCase(uow, clock)


def get_dispatch_use_case(uow=Depends(get_unit_of_work), clock=Depends(get_clock)):
    return DispatchOrderUseCase(uow, clock)


def get_mark_paid_use_case(uow=Depends(get_unit_of_work), clock=Depends(get_clock)):
    return MarkPaidUseCase(uow, clock)


def get_receipt_use_case(uow=Depends(get_unit_of_work), clock=Depends(get_clock)):
    return ConfirmReceiptUseCase(uow, clock)


def get_snooze_use_case(uow=Depends(get_unit_of_work), clock=Depends(get_clock)):
    return SnoozeReminderUseCase(uow, clock)


def get_extend_use_case(uow=Depends(get_unit_of_work), clock=Depends(get_clock)):
    return ExtendReminderUseCase(uow, clock)


def get_reminder_board_use_case(uow=Depends(get_unit_of_work), clock=Depends(get_clock)):
    return GetReminderBoardUseCase(uow, clock)


def get_cleanup_use_case(request: Request, uow=Depends(get_unit_of_work), clock=Depends(get_clock)):
    return CleanupStaleOrdersUseCase(uow, threshold_days=request.app.state.stale_order_days, clock=clock)


@router.get("/products", response_model=list[Product])
async def list_products(uow=Depends(get_unit_of_work)):
    """Каталог товаров"""
    return await ListProductsUseCase(uow)()


@router.get("/orders", response_model=list[Order])
async def list_orders(
    client_id: Optional[str] = None,
    order_status: Optional[OrderStatus] = Query(None, alias="status"),
    uow=Depends(get_unit_of_work),
):
    """Заказы, новые первыми; фильтр по клиенту и статусу"""
    return await ListOrdersUseCase(uow)(client_id=client_id, status=order_status)


@router.post(
    "/orders",
    response_model=LifecycleResponse,
    responses=ERROR_RESPONSES,
    status_code=status.HTTP_201_CREATED,
)
async def submit_inquiry(
    request: SubmitInquiryRequest,
    use_case: SubmitInquiryUseCase = Depends(get_submit_use_case),
):
    """Отправить запрос на оценку"""
    try:
        dto = SubmitInquiryDTO(
            client_id=request.client_id,
            client_name=request.client_name,
            client_mobile=request.client_mobile,
            items=[InquiryItemDTO(product_id=i.product_id, quantity=i.quantity) for i in request.items],
        )
        return LifecycleResponse.from_result(await use_case(dto))
    except DomainException as e:
        raise to_http_error(e)


@router.get("/orders/stale", response_model=StaleOrdersResponse)
async def preview_stale_orders(use_case: CleanupStaleOrdersUseCase = Depends(get_cleanup_use_case)):
    """Устаревшие запросы, которые будут удалены"""
    stale = await use_case(confirm=False)
    return StaleOrdersResponse(deleted=False, count=len(stale), orders=stale)


@router.delete("/orders/stale", response_model=StaleOrdersResponse, responses=ERROR_RESPONSES)
async def cleanup_stale_orders(
    confirm: bool = False,
    use_case: CleanupStaleOrdersUseCase = Depends(get_cleanup_use_case),
):
    """Удалить устаревшие запросы; без confirm=true ничего не удаляется"""
    try:
        stale = await use_case(confirm=confirm)
    except DomainException as e:
        raise to_http_error(e)
    return StaleOrdersResponse(deleted=confirm and bool(stale), count=len(stale), orders=stale)


@router.get("/orders/{order_id}", response_model=Order, responses={404: {"model": ErrorResponse}})
async def get_order(order_id: str, uow=Depends(get_unit_of_work)):
    """Получить заказ по ID"""
    try:
        return await GetOrderUseCase(uow)(order_id)
    except DomainException as e:
        raise to_http_error(e)


@router.post("/orders/{order_id}/pricing", response_model=LifecycleResponse, responses=ERROR_RESPONSES)
async def set_pricing(
    order_id: str,
    request: SetPricingRequest,
    use_case: SetPricingUseCase = Depends(get_pricing_use_case),
):
    """Администратор назначает цены и отправляет котировку"""
    try:
        dto = SetPricingDTO(order_id=order_id, prices=request.prices, use_catalog_prices=request.use_catalog_prices)
        return LifecycleResponse.from_result(await use_case(dto))
    except DomainException as e:
        raise to_http_error(e)


@router.put("/orders/{order_id}/items", response_model=LifecycleResponse, responses=ERROR_RESPONSES)
async def modify_items(
    order_id: str,
    request: ModifyItemsRequest,
    use_case: ModifyItemsUseCase = Depends(get_modify_use_case),
):
    try:
        dto = ModifyItemsDTO(
            order_id=order_id,
            actor=request.actor,
            user=request.user,
            items=[ModifiedItemDTO(**item.model_dump()) for item in request.items],
        )
        return LifecycleResponse.from_result(await use_case(dto))
    except DomainException as e:
        raise to_http_error(e)


@router.post("/orders/{order_id}/accept", response_model=LifecycleResponse, responses=ERROR_RESPONSES)
async def accept_quote(
    order_id: str,
    request: Optional[ActorRequest] = None,
    use_case: AcceptQuoteUseCase = Depends(get_accept_use_case),
):
    """Клиент принимает котировку, заказ блокируется"""
    try:
        user = request.user if request else "Client"
        return LifecycleResponse.from_result(await use_case(order_id, user=user))
    except DomainException as e:
        raise to_http_error(e)


@router.post("/orders/{order_id}/payment-terms", response_model=LifecycleResponse, responses=ERROR_RESPONSES)
async def set_payment_terms(
    order_id: str,
    request: PaymentTermsRequest,
    use_case: SetPaymentTermsUseCase = Depends(get_payment_terms_use_case),
):
    try:
        dto = PaymentTermsDTO(order_id=order_id, payment_type=request.payment_type, due_date=request.due_date)
        return LifecycleResponse.from_result(await use_case(dto))
    except DomainException as e:
        raise to_http_error(e)


@router.post("/orders/{order_id}/dispatch", response_model=LifecycleResponse, responses=ERROR_RESPONSES)
async def dispatch_order(order_id: str, use_case: DispatchOrderUseCase = Depends(get_dispatch_use_case)):
    try:
        return LifecycleResponse.from_result(await use_case(order_id))
    except DomainException as e:
        raise to_http_error(e)


@router.post("/orders/{order_id}/mark-paid", response_model=LifecycleResponse, responses=ERROR_RESPONSES)
async def mark_paid(order_id: str, use_case: MarkPaidUseCase = Depends(get_mark_paid_use_case)):
    try:
        return LifecycleResponse.from_result(await use_case(order_id))
    except DomainException as e:
        raise to_http_error(e)


@router.post("/orders/{order_id}/receipt", response_model=LifecycleResponse, responses=ERROR_RESPONSES)
async def confirm_receipt(
    order_id: str,
    request: ConfirmReceiptRequest,
    use_case: ConfirmReceiptUseCase = Depends(get_receipt_use_case),
):
    """Клиент подтверждает получение товара и ставит оценку"""
    try:
        dto = ConfirmReceiptDTO(
            order_id=order_id,
            rating=request.rating,
            feedback=request.feedback,
            user=request.user,
        )
        return LifecycleResponse.from_result(await use_case(dto))
    except DomainException as e:
        raise to_http_error(e)


@router.post("/orders/{order_id}/reminder/snooze", response_model=LifecycleResponse, responses=ERROR_RESPONSES)
async def snooze_reminder(
    order_id: str,
    request: SnoozeReminderRequest,
    use_case: SnoozeReminderUseCase = Depends(get_snooze_use_case),
):
    try:
        return LifecycleResponse.from_result(await use_case(order_id, request.days))
    except DomainException as e:
        raise to_http_error(e)


@router.post("/orders/{order_id}/reminder/extend", response_model=LifecycleResponse, responses=ERROR_RESPONSES)
async def extend_reminder(
    order_id: str,
    request: ExtendReminderRequest,
    use_case: ExtendReminderUseCase = Depends(get_extend_use_case),
):
    try:
        return LifecycleResponse.from_result(await use_case(order_id, request.new_date))
    except DomainException as e:
        raise to_http_error(e)


@router.get("/payments/reminders", response_model=ReminderBoardResponse)
async def reminder_board(use_case: GetReminderBoardUseCase = Depends(get_reminder_board_use_case)):
    """Неоплаченные кредитные заказы по группам напоминаний"""
    return ReminderBoardResponse.from_groups(await use_case())
