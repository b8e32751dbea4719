import logging

from sqlalchemy import select, delete
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from ..database import Database
from ..exceptions import InvalidInputError, NotFoundError
from ..models.cart_item import CartItem
from ..models.product import Product
from ..pricing import line_total, to_money
from ..repositories.products import primary_image_path
from ..schemas.cart import CartItemResponse, CartSummary
from ..validators import parse_id
from .image_store import resolve_image_url

logger = logging.getLogger(__name__)


class CartService:
    """Корзина пользователя. Цены всегда берутся из текущих данных товара."""

    def __init__(self, database: Database, media_base_url: str = ""):
        self.database = database
        self.media_base_url = media_base_url

    async def get_cart(self, user_id: int) -> CartSummary:
        """Получить корзину с подсчётом итогов"""
        query = (
            select(
                CartItem.id,
                CartItem.product_id,
                CartItem.quantity,
                Product.name,
                Product.price,
                primary_image_path().label("image_path")
            )
            .join(Product, CartItem.product_id == Product.id)
            .where(CartItem.user_id == user_id)
            .order_by(CartItem.id)
        )

        async with self.database.session() as session:
            result = await session.execute(query)
            rows = result.all()

        items = [
            CartItemResponse(
                id=row.id,
                product_id=row.product_id,
                name=row.name,
                price=to_money(row.price),
                quantity=row.quantity,
                total_price=line_total(to_money(row.price), row.quantity),
                image=resolve_image_url(row.image_path, self.media_base_url)
            )
            for row in rows
        ]

        return CartSummary(
            user_id=user_id,
            items=items,
            total_items=sum(item.quantity for item in items),
            total_amount=to_money(sum((item.total_price for item in items), to_money(0)))
        )

    async def add_item(self, user_id: int, product_id, quantity: int) -> CartSummary:
        """
        Добавить товар в корзину; повторное добавление увеличивает количество.
        Один INSERT ... ON CONFLICT, параллельные добавления не конфликтуют.
        """
        product_id = parse_id(product_id, "product ID")
        if quantity < 1:
            raise InvalidInputError("Quantity must be at least 1")

        dialect_insert = sqlite_insert if self.database.is_sqlite else postgresql_insert
        stmt = dialect_insert(CartItem).values(
            user_id=user_id, product_id=product_id, quantity=quantity
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "product_id"],
            set_={"quantity": CartItem.quantity + stmt.excluded.quantity}
        )

        async with self.database.transaction() as session:
            product = await session.get(Product, product_id)
            if product is None:
                raise NotFoundError(f"Product {product_id} not found")

            await session.execute(stmt)

        logger.info(f"🛒 Product {product_id} x{quantity} added to cart of user {user_id}")
        return await self.get_cart(user_id)

    async def update_quantity(self, user_id: int, item_id, quantity: int) -> CartSummary:
        """Обновить количество; 0 или меньше удаляет позицию"""
        item_id = parse_id(item_id, "cart item ID")

        async with self.database.transaction() as session:
            result = await session.execute(
                select(CartItem)
                .where(CartItem.id == item_id, CartItem.user_id == user_id)
                .with_for_update()
            )
            item = result.scalar_one_or_none()
            if item is None:
                raise NotFoundError("Item not found in cart")

            if quantity <= 0:
                await session.delete(item)
                logger.info(f"🛒 Cart item {item_id} removed for user {user_id}")
            else:
                item.quantity = quantity
                logger.info(f"🛒 Cart item {item_id} quantity set to {quantity}")

        return await self.get_cart(user_id)

    async def remove_item(self, user_id: int, item_id) -> None:
        """Удалить позицию из корзины"""
        item_id = parse_id(item_id, "cart item ID")

        async with self.database.transaction() as session:
            result = await session.execute(
                delete(CartItem)
                .where(CartItem.id == item_id, CartItem.user_id == user_id)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise NotFoundError("Item not found in cart")

        logger.info(f"🛒 Cart item {item_id} removed for user {user_id}")
