from sqlalchemy import Column, String, DateTime, Enum, Numeric, Text, Integer, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from enum import Enum as PyEnum
from ..database import Base


class OrderStatus(PyEnum):
    PENDING = "pending"  # Ожидает обработки
    CONFIRMED = "confirmed"  # Подтвержден
    SHIPPED = "shipped"  # Отправлен
    DELIVERED = "delivered"  # Доставлен
    CANCELLED = "cancelled"  # Отменен


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Статус заказа
    status = Column(Enum(OrderStatus), default=OrderStatus.PENDING, nullable=False)

    # Сумма = сумма позиций по ценам на момент оформления
    total_price = Column(Numeric(10, 2), nullable=False)

    # Оплата и доставка
    payment_method = Column(String(50), nullable=False)
    shipping_address = Column(Text, nullable=False)
    phone = Column(String(32), nullable=False)

    created_at = Column(DateTime, default=func.now(), nullable=False)

    # Связи
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")
