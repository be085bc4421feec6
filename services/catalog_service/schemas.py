from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ProductStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    icon: Optional[str] = Field(None, max_length=64)
    sort_order: int = 0


class CategoryResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    icon: Optional[str]
    sort_order: int
    active: bool

    class Config:
        from_attributes = True


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    category_id: Optional[int] = None
    price: float = Field(..., ge=0)
    description: str = ""
    stock_quantity: int = Field(10, ge=0)
    image_url: Optional[str] = None


class ProductResponse(BaseModel):
    id: int
    category_id: Optional[int]
    name: str
    description: Optional[str]
    price: float
    stock_quantity: int
    image_url: Optional[str]
    status: ProductStatus

    class Config:
        from_attributes = True
