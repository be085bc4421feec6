from typing import List, Optional

from pydantic import BaseModel, Field


class CartItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(1, ge=1)


class CartLine(BaseModel):
    id: int  # cart row id, used by remove
    product_id: int
    name: str
    price: float
    quantity: int
    subtotal: float
    image_url: Optional[str] = None


class CartView(BaseModel):
    items: List[CartLine] = []
    subtotal: float = 0
    delivery_fee: float = 0
    total: float = 0
    item_count: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.items


class CheckoutResult(BaseModel):
    order_id: int
    order_number: str
    items: List[CartLine]
    subtotal: float
    delivery_fee: float
    total: float
    payment_method: str
