from sqlalchemy import Column, Integer, String, DateTime, Enum, Numeric, Text, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from enum import Enum as PyEnum
from ..database import Base


class ProductStatus(PyEnum):
    PENDING = "pending"  # Ожидает модерации
    APPROVED = "approved"  # Одобрен
    REJECTED = "rejected"  # Отклонен


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    seller_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)  # Текущая цена

    # Модерация
    status = Column(Enum(ProductStatus), default=ProductStatus.PENDING, nullable=False)

    created_at = Column(DateTime, default=func.now(), nullable=False)

    # Связи
    images = relationship("ProductImage", back_populates="product", cascade="all, delete-orphan")


class ProductImage(Base):
    __tablename__ = "product_images"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)

    image_path = Column(String(1024), nullable=False)  # URL или относительный путь
    public_id = Column(String(255), nullable=True)  # ID во внешнем хранилище
    is_primary = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=func.now(), nullable=False)

    # Связи
    product = relationship("Product", back_populates="images")
