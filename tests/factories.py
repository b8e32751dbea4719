from decimal import Decimal
from typing import Dict

import jwt
from sqlalchemy import select, func

from app.database import Database
from app.models import CartItem, Product, ProductImage, ProductStatus, User
from app.services.image_store import UploadedImage

TEST_JWT_SECRET = "test-secret-key-for-marketplace-tests"

ALICE = 7
BOB = 8
ADMIN = 1

STROLLER = 1  # 10.00
BOTTLE = 2  # 5.50
CRIB = 3  # 99.99


async def seed_catalog(database: Database) -> None:
    """Пользователи и товары, общие для всех тестов"""
    async with database.transaction() as session:
        session.add_all([
            User(id=ADMIN, name="Admin", email="admin@example.com", role="admin"),
            User(id=ALICE, name="Alice", email="alice@example.com", role="user"),
            User(id=BOB, name="Bob", email="bob@example.com", role="user"),
        ])
        await session.flush()
        session.add_all([
            Product(id=STROLLER, seller_id=BOB, name="Stroller", price=Decimal("10.00"),
                    status=ProductStatus.APPROVED),
            Product(id=BOTTLE, seller_id=BOB, name="Baby bottle", price=Decimal("5.50"),
                    status=ProductStatus.APPROVED),
            Product(id=CRIB, seller_id=None, name="Crib", price=Decimal("99.99"),
                    status=ProductStatus.PENDING),
        ])


async def fill_cart(database: Database, user_id: int, items: Dict[int, int]) -> None:
    async with database.transaction() as session:
        for product_id, quantity in items.items():
            session.add(CartItem(user_id=user_id, product_id=product_id, quantity=quantity))


async def add_image(database: Database, product_id: int, path: str, is_primary: bool = False) -> int:
    async with database.transaction() as session:
        image = ProductImage(product_id=product_id, image_path=path, is_primary=is_primary)
        session.add(image)
        await session.flush()
        return image.id


async def set_price(database: Database, product_id: int, price: str) -> None:
    async with database.transaction() as session:
        product = await session.get(Product, product_id)
        product.price = Decimal(price)


async def count_rows(database: Database, model, **filters) -> int:
    query = select(func.count()).select_from(model)
    for name, value in filters.items():
        query = query.where(getattr(model, name) == value)
    async with database.session() as session:
        return await session.scalar(query)


def checked_out_connections(database: Database) -> int:
    return database.engine.pool.checkedout()


def make_token(user_id: int, role: str = "user", secret: str = TEST_JWT_SECRET) -> str:
    return jwt.encode({"id": user_id, "role": role}, secret, algorithm="HS256")


def auth_header(user_id: int, role: str = "user") -> dict:
    return {"Authorization": f"Bearer {make_token(user_id, role)}"}


class FakeImageStore:
    """Хранилище изображений в памяти"""

    def __init__(self):
        self.uploaded = []
        self.deleted = []

    async def upload(self, content: bytes, filename: str) -> UploadedImage:
        public_id = f"marketplace/img{len(self.uploaded) + 1}"
        self.uploaded.append(public_id)
        return UploadedImage(public_id=public_id, url=f"https://images.test/{public_id}.jpg")

    async def delete(self, public_id: str) -> None:
        self.deleted.append(public_id)


class RecordingProducer:
    """Подменяет OrderEventProducer и запоминает события"""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.events = []

    async def publish_order_created(self, order_data: dict) -> bool:
        if self.fail:
            raise RuntimeError("broker unavailable")
        self.events.append(order_data)
        return True
