class DomainException(Exception):
    pass


class ValidationError(DomainException):
    pass


class EmptyOrderError(ValidationError):
    def __init__(self):
        super().__init__("Заказ должен содержать хотя бы одну позицию с количеством > 0")


class DuplicateItemError(ValidationError):
    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Товар {product_id} уже есть в заказе. Измените количество")


class MissingPriceError(ValidationError):
    def __init__(self, product_ids: list[str]):
        self.product_ids = product_ids
        super().__init__(f"Не указаны цены для позиций: {', '.join(product_ids)}")


class MissingRatingError(ValidationError):
    def __init__(self):
        super().__init__("Укажите оценку от 1 до 5")


class MissingDueDateError(ValidationError):
    def __init__(self):
        super().__init__("Для оплаты в кредит нужна дата платежа")


class NotFoundError(DomainException):
    pass


class OrderNotFoundError(NotFoundError):
    pass


class ProductNotFoundError(NotFoundError):
    pass


class InvalidStatusTransitionError(DomainException):
    def __init__(self, order_id: str, status, operation: str):
        self.order_id = order_id
        self.status = status
        self.operation = operation
        super().__init__(f"Заказ {order_id} в статусе {status.value}: операция '{operation}' недоступна")


class OrderLockedError(DomainException):
    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Заказ {order_id} заблокирован после принятия котировки")


class PersistenceError(DomainException):
    pass
