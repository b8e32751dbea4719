from typing import Optional

from fastapi import Depends, Header, Request

from ..auth import CurrentUser, decode_access_token
from ..config import Settings
from ..database import Database
from ..events.producer import OrderEventProducer
from ..exceptions import UnauthorizedError
from ..services.cart_service import CartService
from ..services.checkout_service import CheckoutService
from ..services.image_store import ImageStore
from ..services.order_query_service import OrderQueryService
from ..services.product_image_service import ProductImageService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> Database:
    """Dependency для получения шлюза БД"""
    return request.app.state.database


def get_event_producer(request: Request) -> Optional[OrderEventProducer]:
    return request.app.state.event_producer


def get_image_store(request: Request) -> ImageStore:
    return request.app.state.image_store


async def get_current_user(
        authorization: Optional[str] = Header(None),
        settings: Settings = Depends(get_settings)
) -> CurrentUser:
    """Пользователь из заголовка Authorization: Bearer <token>"""
    if not authorization:
        raise UnauthorizedError("No token provided")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise UnauthorizedError("Invalid token")

    return decode_access_token(token.strip(), settings.jwt_secret, settings.jwt_algorithm)


async def get_checkout_service(
        database: Database = Depends(get_database),
        event_producer: Optional[OrderEventProducer] = Depends(get_event_producer),
        settings: Settings = Depends(get_settings)
) -> CheckoutService:
    """Dependency для получения CheckoutService"""
    return CheckoutService(database, event_producer, timeout=settings.checkout_timeout_seconds)


async def get_order_query_service(
        database: Database = Depends(get_database),
        settings: Settings = Depends(get_settings)
) -> OrderQueryService:
    """Dependency для получения OrderQueryService"""
    return OrderQueryService(database, settings.media_base_url)


async def get_cart_service(
        database: Database = Depends(get_database),
        settings: Settings = Depends(get_settings)
) -> CartService:
    """Dependency для получения CartService"""
    return CartService(database, settings.media_base_url)


async def get_product_image_service(
        database: Database = Depends(get_database),
        image_store: ImageStore = Depends(get_image_store),
        settings: Settings = Depends(get_settings)
) -> ProductImageService:
    """Dependency для получения ProductImageService"""
    return ProductImageService(database, image_store, settings.media_base_url)
