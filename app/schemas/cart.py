from pydantic import BaseModel, Field
from typing import List, Optional
from decimal import Decimal


class CartItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(1, ge=1)


class CartItemUpdate(BaseModel):
    quantity: int  # 0 или меньше удаляет позицию


class CartItemResponse(BaseModel):
    id: int
    product_id: int
    name: str
    price: Decimal  # Текущая цена товара
    quantity: int
    total_price: Decimal
    image: Optional[str] = None

    class Config:
        from_attributes = True


class CartSummary(BaseModel):
    user_id: int
    items: List[CartItemResponse] = []
    total_items: int
    total_amount: Decimal
