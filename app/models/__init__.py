from .user import User, ROLE_ADMIN, ROLE_USER
from .product import Product, ProductImage, ProductStatus
from .cart_item import CartItem
from .order import Order, OrderStatus
from .order_item import OrderItem

__all__ = [
    "User",
    "ROLE_ADMIN",
    "ROLE_USER",
    "Product",
    "ProductImage",
    "ProductStatus",
    "CartItem",
    "Order",
    "OrderStatus",
    "OrderItem"
]
