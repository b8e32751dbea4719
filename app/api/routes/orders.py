from fastapi import APIRouter, Depends
from typing import List

from ...auth import CurrentUser
from ...exceptions import ForbiddenError
from ...schemas.order import CheckoutRequest, CheckoutResponse, OrderResponse
from ...services.checkout_service import CheckoutService
from ...services.order_query_service import OrderQueryService
from ...validators import parse_id
from ..dependencies import get_checkout_service, get_current_user, get_order_query_service

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("/checkout", response_model=CheckoutResponse, status_code=201)
async def checkout(
        checkout_request: CheckoutRequest,
        current_user: CurrentUser = Depends(get_current_user),
        checkout_service: CheckoutService = Depends(get_checkout_service)
):
    """Оформление заказа из корзины"""
    if (
            not current_user.is_admin
            and parse_id(checkout_request.user_id, "userId") != current_user.id
    ):
        raise ForbiddenError("You can only check out your own cart")

    result = await checkout_service.checkout(
        user_id=checkout_request.user_id,
        payment_method=checkout_request.payment_method,
        shipping_address=checkout_request.address,
        phone=checkout_request.phone
    )

    return CheckoutResponse(
        order_id=result.order_id,
        total_price=result.total_price,
        items_count=result.items_count
    )


@router.get("/user/{user_id}", response_model=List[OrderResponse])
async def get_user_orders(
        user_id: str,
        current_user: CurrentUser = Depends(get_current_user),
        order_service: OrderQueryService = Depends(get_order_query_service)
):
    """Все заказы пользователя"""
    if not current_user.is_admin and parse_id(user_id, "user ID") != current_user.id:
        raise ForbiddenError("You can only view your own orders")

    return await order_service.get_user_orders(user_id)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
        order_id: str,
        current_user: CurrentUser = Depends(get_current_user),
        order_service: OrderQueryService = Depends(get_order_query_service)
):
    """Получить заказ по ID"""
    return await order_service.get_order(order_id, current_user.id, current_user.role)
