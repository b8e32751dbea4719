from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import select, insert
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.order import Order, OrderStatus
from ..models.order_item import OrderItem
from ..models.product import Product
from ..models.user import User
from .cart import CartLine
from .products import primary_image_path


class OrderRepository:
    """Запись и чтение заказов. Транзакцией управляет вызывающий код."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_order(
            self,
            user_id: int,
            total_price: Decimal,
            payment_method: str,
            shipping_address: str,
            phone: str
    ) -> Order:
        """Вставляет заголовок заказа и возвращает его с присвоенным id"""
        order = Order(
            user_id=user_id,
            status=OrderStatus.PENDING,
            total_price=total_price,
            payment_method=payment_method,
            shipping_address=shipping_address,
            phone=phone
        )

        self.session.add(order)
        await self.session.flush()  # Получаем ID заказа
        return order

    async def add_lines(self, order_id: int, lines: Sequence[CartLine]) -> None:
        """Одна пакетная вставка позиций заказа с ценами-снимками"""
        await self.session.execute(
            insert(OrderItem),
            [
                {
                    "order_id": order_id,
                    "product_id": line.product_id,
                    "quantity": line.quantity,
                    "unit_price": line.unit_price
                }
                for line in lines
            ]
        )

    async def get_with_user_name(self, order_id: int) -> Optional[Tuple[Order, str]]:
        query = (
            select(Order, User.name)
            .join(User, Order.user_id == User.id)
            .where(Order.id == order_id)
        )
        result = await self.session.execute(query)
        row = result.first()
        return (row[0], row[1]) if row else None

    async def list_for_user(self, user_id: int) -> List[Tuple[Order, str]]:
        query = (
            select(Order, User.name)
            .join(User, Order.user_id == User.id)
            .where(Order.user_id == user_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
        )
        result = await self.session.execute(query)
        return [(row[0], row[1]) for row in result.all()]

    async def list_lines(self, order_ids: Sequence[int]) -> list:
        """Позиции заказов с названием товара и путем главного изображения"""
        if not order_ids:
            return []

        query = (
            select(
                OrderItem.id,
                OrderItem.order_id,
                OrderItem.product_id,
                OrderItem.quantity,
                OrderItem.unit_price,
                Product.name.label("product_name"),
                primary_image_path().label("image_path")
            )
            .join(Product, OrderItem.product_id == Product.id)
            .where(OrderItem.order_id.in_(order_ids))
            .order_by(OrderItem.order_id, OrderItem.id)
        )
        result = await self.session.execute(query)
        return result.all()
