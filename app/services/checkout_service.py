import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Tuple

from ..database import Database
from ..events.producer import OrderEventProducer
from ..exceptions import CheckoutFailedError, EmptyCartError
from ..pricing import calculate_total
from ..repositories.cart import CartLine, CartRepository
from ..repositories.orders import OrderRepository
from ..validators import parse_id, require_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckoutResult:
    order_id: int
    user_id: int
    total_price: Decimal
    lines: Tuple[CartLine, ...]

    @property
    def items_count(self) -> int:
        return len(self.lines)


class CheckoutService:
    """
    Оформление заказа из корзины.

    Все шаги выполняются в одной транзакции на одном соединении:
    чтение корзины с блокировкой строк, расчет суммы, запись заказа и позиций,
    очистка корзины, commit. Любая ошибка после начала транзакции приводит
    к rollback и CheckoutFailedError; пустая корзина дает EmptyCartError.
    """

    def __init__(
            self,
            database: Database,
            event_producer: Optional[OrderEventProducer] = None,
            timeout: Optional[float] = None
    ):
        self.database = database
        self.event_producer = event_producer
        self.timeout = timeout

    async def checkout(
            self,
            user_id,
            payment_method: str,
            shipping_address: str,
            phone: str
    ) -> CheckoutResult:
        """Создает заказ из корзины пользователя и возвращает его ID и сумму"""
        user_id = parse_id(user_id, "user ID")
        payment_method = require_text(payment_method, "paymentMethod")
        shipping_address = require_text(shipping_address, "address")
        phone = require_text(phone, "phone")

        try:
            # При таймауте задача отменяется: транзакция откатывается,
            # соединение возвращается в пул
            result = await asyncio.wait_for(
                self._place_order(user_id, payment_method, shipping_address, phone),
                timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            logger.error(f"❌ Checkout for user {user_id} timed out after {self.timeout}s")
            raise CheckoutFailedError("Checkout timed out") from e

        logger.info(
            f"✅ Order {result.order_id} created for user {user_id}: "
            f"{result.items_count} items, total {result.total_price}"
        )

        await self._publish_order_created_event(result)
        return result

    async def _place_order(
            self,
            user_id: int,
            payment_method: str,
            shipping_address: str,
            phone: str
    ) -> CheckoutResult:
        async with self.database.session() as session:
            try:
                async with session.begin():
                    cart = CartRepository(session)
                    orders = OrderRepository(session)

                    lines = await cart.lock_lines(user_id)
                    if not lines:
                        raise EmptyCartError()

                    # Цена каждой позиции прочитана один раз и идет и в сумму, и в снимок
                    total_price = calculate_total(lines)

                    order = await orders.create_order(
                        user_id=user_id,
                        total_price=total_price,
                        payment_method=payment_method,
                        shipping_address=shipping_address,
                        phone=phone
                    )
                    await orders.add_lines(order.id, lines)
                    await cart.clear(user_id)

                    order_id = order.id

            except EmptyCartError:
                logger.warning(f"⚠️ Checkout rejected for user {user_id}: cart is empty")
                raise
            except Exception as e:
                logger.error(
                    f"❌ Checkout failed for user {user_id}, transaction rolled back: {e}",
                    exc_info=True
                )
                raise CheckoutFailedError() from e

        return CheckoutResult(
            order_id=order_id,
            user_id=user_id,
            total_price=total_price,
            lines=tuple(lines)
        )

    async def _publish_order_created_event(self, result: CheckoutResult):
        """Публикует событие создания заказа (после commit, без влияния на заказ)"""
        if self.event_producer is None:
            return

        try:
            payload = {
                "order_id": result.order_id,
                "user_id": result.user_id,
                "total_price": str(result.total_price),
                "items": [
                    {
                        "product_id": line.product_id,
                        "quantity": line.quantity,
                        "unit_price": str(line.unit_price)
                    } for line in result.lines
                ]
            }

            if await self.event_producer.publish_order_created(payload):
                logger.info(f"📤 Published order_created event for order {result.order_id}")

        except Exception as e:
            logger.error(f"❌ Failed to publish order_created event: {e}")
