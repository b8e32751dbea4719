from pydantic import BaseModel
from datetime import datetime


class ProductImageResponse(BaseModel):
    id: int
    product_id: int
    url: str
    is_primary: bool
    created_at: datetime

    class Config:
        from_attributes = True
