from dataclasses import dataclass
from decimal import Decimal
from typing import List

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.cart_item import CartItem
from ..models.product import Product
from ..pricing import to_money


@dataclass(frozen=True)
class CartLine:
    """Позиция корзины с ценой, прочитанной один раз внутри транзакции"""

    cart_item_id: int
    product_id: int
    quantity: int
    unit_price: Decimal


class CartRepository:
    """Чтение и очистка корзины внутри транзакции вызывающего кода"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def lock_lines(self, user_id: int) -> List[CartLine]:
        """
        Позиции корзины с текущими ценами товаров.
        Строки cart_items блокируются (FOR UPDATE) до конца транзакции.
        """
        query = (
            select(CartItem.id, CartItem.product_id, CartItem.quantity, Product.price)
            .join(Product, CartItem.product_id == Product.id)
            .where(CartItem.user_id == user_id)
            .order_by(CartItem.id)
            .with_for_update(of=CartItem)
        )
        result = await self.session.execute(query)

        return [
            CartLine(
                cart_item_id=row.id,
                product_id=row.product_id,
                quantity=row.quantity,
                unit_price=to_money(row.price)
            )
            for row in result.all()
        ]

    async def clear(self, user_id: int) -> int:
        """Удаляет все позиции корзины пользователя, возвращает их количество"""
        query = (
            delete(CartItem)
            .where(CartItem.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(query)
        return result.rowcount
