from .checkout_service import CheckoutService, CheckoutResult
from .order_query_service import OrderQueryService
from .cart_service import CartService
from .image_store import ImageStore, UploadedImage, resolve_image_url
from .product_image_service import ProductImageService

__all__ = [
    "CheckoutService",
    "CheckoutResult",
    "OrderQueryService",
    "CartService",
    "ImageStore",
    "UploadedImage",
    "resolve_image_url",
    "ProductImageService"
]
