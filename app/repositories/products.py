from sqlalchemy import select

from ..models.product import Product, ProductImage


def primary_image_path():
    """
    Коррелированный подзапрос: путь главного изображения товара,
    а если главное не отмечено, то первого загруженного.
    """
    return (
        select(ProductImage.image_path)
        .where(ProductImage.product_id == Product.id)
        .order_by(ProductImage.is_primary.desc(), ProductImage.id.asc())
        .limit(1)
        .correlate(Product)
        .scalar_subquery()
    )
