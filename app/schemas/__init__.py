from .order import CheckoutRequest, CheckoutResponse, OrderResponse, OrderItemResponse
from .cart import CartItemCreate, CartItemUpdate, CartItemResponse, CartSummary
from .product_image import ProductImageResponse

__all__ = [
    "CheckoutRequest",
    "CheckoutResponse",
    "OrderResponse",
    "OrderItemResponse",
    "CartItemCreate",
    "CartItemUpdate",
    "CartItemResponse",
    "CartSummary",
    "ProductImageResponse"
]
