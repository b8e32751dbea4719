from .cart import CartLine, CartRepository
from .orders import OrderRepository
from .products import primary_image_path

__all__ = [
    "CartLine",
    "CartRepository",
    "OrderRepository",
    "primary_image_path"
]
