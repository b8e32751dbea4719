from fastapi import APIRouter, Depends

from ...auth import CurrentUser
from ...schemas.cart import CartItemCreate, CartItemUpdate, CartSummary
from ...services.cart_service import CartService
from ..dependencies import get_cart_service, get_current_user

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("", response_model=CartSummary)
async def get_cart(
        current_user: CurrentUser = Depends(get_current_user),
        cart_service: CartService = Depends(get_cart_service)
):
    """Получение текущей корзины пользователя"""
    return await cart_service.get_cart(current_user.id)


@router.post("/items", response_model=CartSummary, status_code=201)
async def add_item_to_cart(
        item: CartItemCreate,
        current_user: CurrentUser = Depends(get_current_user),
        cart_service: CartService = Depends(get_cart_service)
):
    """Добавление товара в корзину"""
    return await cart_service.add_item(current_user.id, item.product_id, item.quantity)


@router.put("/items/{item_id}", response_model=CartSummary)
async def update_cart_item(
        item_id: str,
        item: CartItemUpdate,
        current_user: CurrentUser = Depends(get_current_user),
        cart_service: CartService = Depends(get_cart_service)
):
    """Обновление количества товара в корзине"""
    return await cart_service.update_quantity(current_user.id, item_id, item.quantity)


@router.delete("/items/{item_id}")
async def remove_item_from_cart(
        item_id: str,
        current_user: CurrentUser = Depends(get_current_user),
        cart_service: CartService = Depends(get_cart_service)
):
    """Удаление товара из корзины"""
    await cart_service.remove_item(current_user.id, item_id)
    return {"message": "Item removed from cart"}
