from fastapi import APIRouter, Depends, File, Form, UploadFile
from typing import List

from ...auth import CurrentUser
from ...schemas.product_image import ProductImageResponse
from ...services.product_image_service import ProductImageService
from ..dependencies import get_current_user, get_product_image_service

router = APIRouter(prefix="/products/{product_id}/images", tags=["product-images"])


@router.get("", response_model=List[ProductImageResponse])
async def list_product_images(
        product_id: str,
        image_service: ProductImageService = Depends(get_product_image_service)
):
    """Изображения товара"""
    return await image_service.list_images(product_id)


@router.post("", response_model=ProductImageResponse, status_code=201)
async def upload_product_image(
        product_id: str,
        file: UploadFile = File(...),
        is_primary: bool = Form(False),
        current_user: CurrentUser = Depends(get_current_user),
        image_service: ProductImageService = Depends(get_product_image_service)
):
    """Загрузка изображения товара (продавец или админ)"""
    content = await file.read()
    return await image_service.add_image(
        product_id,
        requester=current_user,
        content=content,
        filename=file.filename,
        make_primary=is_primary
    )


@router.put("/{image_id}/primary", response_model=ProductImageResponse)
async def set_primary_image(
        product_id: str,
        image_id: str,
        current_user: CurrentUser = Depends(get_current_user),
        image_service: ProductImageService = Depends(get_product_image_service)
):
    """Сделать изображение главным"""
    return await image_service.set_primary(product_id, image_id, current_user)


@router.delete("/{image_id}")
async def delete_product_image(
        product_id: str,
        image_id: str,
        current_user: CurrentUser = Depends(get_current_user),
        image_service: ProductImageService = Depends(get_product_image_service)
):
    """Удалить изображение товара"""
    await image_service.delete_image(product_id, image_id, current_user)
    return {"message": "Image deleted"}
