import logging
from typing import List

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth import CurrentUser
from ..database import Database
from ..exceptions import ForbiddenError, ImageStoreError, NotFoundError
from ..models.product import Product, ProductImage
from ..schemas.product_image import ProductImageResponse
from ..validators import parse_id, validate_image_upload
from .image_store import ImageStore, resolve_image_url

logger = logging.getLogger(__name__)


class ProductImageService:
    """Изображения товаров: строки product_images + файлы во внешнем хранилище"""

    def __init__(self, database: Database, image_store: ImageStore, media_base_url: str = ""):
        self.database = database
        self.image_store = image_store
        self.media_base_url = media_base_url

    async def list_images(self, product_id) -> List[ProductImageResponse]:
        """Изображения товара: главное первым, затем в порядке загрузки"""
        product_id = parse_id(product_id, "product ID")

        async with self.database.session() as session:
            if await session.get(Product, product_id) is None:
                raise NotFoundError(f"Product {product_id} not found")

            result = await session.execute(
                select(ProductImage)
                .where(ProductImage.product_id == product_id)
                .order_by(ProductImage.is_primary.desc(), ProductImage.id.asc())
            )
            images = result.scalars().all()

        return [self._to_response(image) for image in images]

    async def add_image(
            self,
            product_id,
            requester: CurrentUser,
            content: bytes,
            filename: str,
            make_primary: bool = False
    ) -> ProductImageResponse:
        """
        Загружает файл в хранилище и сохраняет строку изображения.
        Первое изображение товара становится главным. Если запись в БД
        не удалась, загруженный файл удаляется из хранилища.
        """
        product_id = parse_id(product_id, "product ID")
        validate_image_upload(filename, content)

        async with self.database.session() as session:
            await self._get_editable_product(session, product_id, requester)

        uploaded = await self.image_store.upload(content, filename)

        try:
            async with self.database.transaction() as session:
                await self._get_editable_product(session, product_id, requester)

                images_count = await session.scalar(
                    select(func.count(ProductImage.id)).where(ProductImage.product_id == product_id)
                )
                is_primary = make_primary or images_count == 0
                if is_primary:
                    await session.execute(
                        update(ProductImage)
                        .where(ProductImage.product_id == product_id)
                        .values(is_primary=False)
                    )

                image = ProductImage(
                    product_id=product_id,
                    image_path=uploaded.url,
                    public_id=uploaded.public_id,
                    is_primary=is_primary
                )
                session.add(image)
                await session.flush()
                await session.refresh(image)

        except Exception as e:
            logger.error(f"❌ Error saving image for product {product_id}, removing upload: {e}")
            await self._delete_from_store(uploaded.public_id)
            raise

        logger.info(f"🖼️ Image {image.id} added to product {product_id} (primary: {is_primary})")
        return self._to_response(image)

    async def set_primary(self, product_id, image_id, requester: CurrentUser) -> ProductImageResponse:
        """Делает изображение главным, снимая флаг с остальных"""
        product_id = parse_id(product_id, "product ID")
        image_id = parse_id(image_id, "image ID")

        async with self.database.transaction() as session:
            await self._get_editable_product(session, product_id, requester)
            image = await self._get_image(session, product_id, image_id)

            await session.execute(
                update(ProductImage)
                .where(ProductImage.product_id == product_id, ProductImage.id != image_id)
                .values(is_primary=False)
            )
            image.is_primary = True

        logger.info(f"🖼️ Image {image_id} set as primary for product {product_id}")
        return self._to_response(image)

    async def delete_image(self, product_id, image_id, requester: CurrentUser) -> None:
        """Удаляет строку изображения, затем файл в хранилище"""
        product_id = parse_id(product_id, "product ID")
        image_id = parse_id(image_id, "image ID")

        async with self.database.transaction() as session:
            await self._get_editable_product(session, product_id, requester)
            image = await self._get_image(session, product_id, image_id)
            public_id = image.public_id
            await session.delete(image)

        logger.info(f"🗑️ Image {image_id} deleted from product {product_id}")

        if public_id:
            await self._delete_from_store(public_id)

    async def _get_editable_product(
            self,
            session: AsyncSession,
            product_id: int,
            requester: CurrentUser
    ) -> Product:
        product = await session.get(Product, product_id)
        if product is None:
            raise NotFoundError(f"Product {product_id} not found")
        if not requester.is_admin and product.seller_id != requester.id:
            raise ForbiddenError("Only the seller or an admin can manage product images")
        return product

    async def _get_image(self, session: AsyncSession, product_id: int, image_id: int) -> ProductImage:
        result = await session.execute(
            select(ProductImage)
            .where(ProductImage.id == image_id, ProductImage.product_id == product_id)
        )
        image = result.scalar_one_or_none()
        if image is None:
            raise NotFoundError("Image not found")
        return image

    async def _delete_from_store(self, public_id: str) -> None:
        try:
            await self.image_store.delete(public_id)
        except ImageStoreError as e:
            logger.warning(f"⚠️ Image {public_id} left in store: {e}")

    def _to_response(self, image: ProductImage) -> ProductImageResponse:
        return ProductImageResponse(
            id=image.id,
            product_id=image.product_id,
            url=resolve_image_url(image.image_path, self.media_base_url),
            is_primary=image.is_primary,
            created_at=image.created_at
        )
