from fastapi import APIRouter
from .routes import orders_router, cart_router, product_images_router

# Создаем основной API router
api_router = APIRouter()

# Подключаем роуты
api_router.include_router(orders_router)
api_router.include_router(cart_router)
api_router.include_router(product_images_router)

__all__ = ["api_router"]
