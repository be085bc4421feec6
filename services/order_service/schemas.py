from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


# Forward progression; a status may skip ahead but never move back
PROGRESSION = [
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
]
TERMINAL = {OrderStatus.CANCELLED, OrderStatus.REFUNDED}


def can_transition(current: OrderStatus, new: OrderStatus) -> bool:
    if current in TERMINAL:
        # A cancelled order that was already paid can still be refunded
        return current == OrderStatus.CANCELLED and new == OrderStatus.REFUNDED
    if new == OrderStatus.REFUNDED:
        return True
    if new == OrderStatus.CANCELLED:
        return current != OrderStatus.DELIVERED
    return PROGRESSION.index(new) > PROGRESSION.index(current)


class CustomerInfo(BaseModel):
    name: str = ""
    address: str = ""
    city: str = ""
    payment_method: str = ""

    def missing_fields(self) -> List[str]:
        return [field for field in ("name", "address", "city") if not getattr(self, field).strip()]


class OrderItemResponse(BaseModel):
    product_id: Optional[int]
    product_name: str
    quantity: int
    unit_price: float
    subtotal: float

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    id: int
    order_number: str
    customer_address: str
    customer_name: str
    delivery_address: str
    city: str
    total_amount: float
    delivery_fee: float
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: Optional[str]
    tracking_id: Optional[str]
    created_at: datetime
    items: List[OrderItemResponse] = []

    class Config:
        from_attributes = True


class StatusUpdate(BaseModel):
    status: OrderStatus


class PaymentStatusUpdate(BaseModel):
    payment_status: PaymentStatus


class TrackingUpdate(BaseModel):
    tracking_id: str = Field(..., min_length=1)


class NewOrderEvent(BaseModel):
    """Broadcast once per successful checkout for dashboard listeners."""
    order_id: int
    order_number: str
    customer_address: str
    customer_name: str
    total: float
    delivery_fee: float
    status: OrderStatus
    payment_method: str
    created_at: datetime
