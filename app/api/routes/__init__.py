from .orders import router as orders_router
from .cart import router as cart_router
from .product_images import router as product_images_router

__all__ = ["orders_router", "cart_router", "product_images_router"]
