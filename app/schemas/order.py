from pydantic import BaseModel, Field
from typing import List, Optional, Union
from datetime import datetime
from decimal import Decimal


class CheckoutRequest(BaseModel):
    """Тело POST /orders/checkout. Проверка полей выполняется в сервисе."""

    user_id: Optional[Union[int, str]] = Field(None, alias="userId")
    payment_method: Optional[str] = Field(None, alias="paymentMethod")
    address: Optional[str] = None
    phone: Optional[str] = None

    class Config:
        populate_by_name = True


class CheckoutResponse(BaseModel):
    order_id: int = Field(..., alias="orderId")
    total_price: Decimal = Field(..., alias="totalPrice")
    items_count: int = Field(..., alias="itemsCount")

    class Config:
        populate_by_name = True


class OrderItemResponse(BaseModel):
    id: int
    product_id: int
    product_name: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal  # quantity * unit_price
    image: Optional[str] = None

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    id: int
    user_id: int
    user_name: Optional[str] = None
    status: str

    total_price: Decimal
    payment_method: str
    shipping_address: str
    phone: str

    created_at: datetime

    items: List[OrderItemResponse] = []

    class Config:
        from_attributes = True
