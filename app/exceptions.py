"""
Доменные исключения сервиса.

Каждое исключение несет стабильный kind и HTTP-статус; обработчик в main.py
превращает их в ответ {"error": kind, "message": message}.
"""


class MarketplaceError(Exception):
    """Базовый класс доменных ошибок"""

    kind = "internal_error"
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInputError(MarketplaceError):
    """Отсутствующие или некорректные входные данные"""

    kind = "invalid_input"
    status_code = 400
    default_message = "Invalid input"


class EmptyCartError(MarketplaceError):
    """Оформление заказа с пустой корзиной"""

    kind = "empty_cart"
    status_code = 400
    default_message = "Cart is empty"


class UnauthorizedError(MarketplaceError):
    kind = "unauthorized"
    status_code = 401
    default_message = "Authentication required"


class ForbiddenError(MarketplaceError):
    kind = "forbidden"
    status_code = 403
    default_message = "Access denied"


class NotFoundError(MarketplaceError):
    kind = "not_found"
    status_code = 404
    default_message = "Not found"


class TransientStoreError(MarketplaceError):
    """Ошибки соединения/блокировок БД. Повтор не выполняется."""

    kind = "store_unavailable"
    status_code = 503
    default_message = "Data store temporarily unavailable"


class CheckoutFailedError(MarketplaceError):
    """
    Ошибка на этапе записи заказа.
    Выбрасывается только после rollback; исходная причина в __cause__.
    """

    kind = "checkout_failed"
    status_code = 500
    default_message = "Checkout failed"


class ImageStoreError(MarketplaceError):
    """Ошибка внешнего хранилища изображений"""

    kind = "image_store_error"
    status_code = 502
    default_message = "Image store request failed"
