from typing import Optional

from pydantic import BaseModel, Field, field_validator


class AutoReplyCreate(BaseModel):
    keyword: str = Field(..., min_length=1)
    response: str = Field(..., min_length=1)

    @field_validator("keyword")
    @classmethod
    def normalize_keyword(cls, v: str) -> str:
        return v.strip().lower()


class AutoReplyUpdate(BaseModel):
    keyword: Optional[str] = None
    response: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("keyword")
    @classmethod
    def normalize_keyword(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if v is not None else v


class AutoReplyResponse(BaseModel):
    id: int
    keyword: str
    response: str
    is_active: bool

    class Config:
        from_attributes = True
