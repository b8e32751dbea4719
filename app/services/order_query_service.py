import logging
from collections import defaultdict
from typing import List

from sqlalchemy.exc import InterfaceError, OperationalError

from ..database import Database
from ..exceptions import ForbiddenError, NotFoundError, TransientStoreError
from ..models.order import Order
from ..models.user import ROLE_ADMIN
from ..pricing import line_total, to_money
from ..repositories.orders import OrderRepository
from ..schemas.order import OrderItemResponse, OrderResponse
from ..validators import parse_id
from .image_store import resolve_image_url

logger = logging.getLogger(__name__)


class OrderQueryService:
    """Чтение заказов с позициями, названиями товаров и изображениями"""

    def __init__(self, database: Database, media_base_url: str = ""):
        self.database = database
        self.media_base_url = media_base_url

    async def get_order(self, order_id, requester_id: int, requester_role: str) -> OrderResponse:
        """
        Заказ по ID.
        Не-админ может получить только свой заказ; проверка выполняется
        до загрузки позиций.
        """
        order_id = parse_id(order_id, "order ID")

        try:
            async with self.database.session() as session:
                repo = OrderRepository(session)

                found = await repo.get_with_user_name(order_id)
                if found is None:
                    raise NotFoundError("Order not found")

                order, user_name = found
                if requester_role != ROLE_ADMIN and order.user_id != requester_id:
                    logger.warning(f"⚠️ User {requester_id} denied access to order {order_id}")
                    raise ForbiddenError("You can only view your own orders")

                lines = await repo.list_lines([order.id])

        except (OperationalError, InterfaceError) as e:
            logger.error(f"❌ Error getting order {order_id}: {e}")
            raise TransientStoreError() from e

        return self._build_order(order, user_name, lines)

    async def get_user_orders(self, user_id) -> List[OrderResponse]:
        """Все заказы пользователя, новые первыми"""
        user_id = parse_id(user_id, "user ID")

        try:
            async with self.database.session() as session:
                repo = OrderRepository(session)

                orders = await repo.list_for_user(user_id)
                lines = await repo.list_lines([order.id for order, _ in orders])

        except (OperationalError, InterfaceError) as e:
            logger.error(f"❌ Error getting orders for user {user_id}: {e}")
            raise TransientStoreError() from e

        lines_by_order = defaultdict(list)
        for line in lines:
            lines_by_order[line.order_id].append(line)

        return [
            self._build_order(order, user_name, lines_by_order[order.id])
            for order, user_name in orders
        ]

    def _build_order(self, order: Order, user_name: str, lines: list) -> OrderResponse:
        return OrderResponse(
            id=order.id,
            user_id=order.user_id,
            user_name=user_name,
            status=order.status.value,
            total_price=to_money(order.total_price),
            payment_method=order.payment_method,
            shipping_address=order.shipping_address,
            phone=order.phone,
            created_at=order.created_at,
            items=[
                OrderItemResponse(
                    id=line.id,
                    product_id=line.product_id,
                    product_name=line.product_name,
                    quantity=line.quantity,
                    unit_price=to_money(line.unit_price),
                    total_price=line_total(to_money(line.unit_price), line.quantity),
                    image=resolve_image_url(line.image_path, self.media_base_url)
                )
                for line in lines
            ]
        )
