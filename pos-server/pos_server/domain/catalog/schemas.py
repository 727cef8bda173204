# pos_server/domain/catalog/schemas.py
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional


class ProductIn(BaseModel):
    name: str = Field(min_length=1)
    barcode: Optional[str] = None
    price: Decimal = Field(ge=0, max_digits=18, decimal_places=2)
    stock: int = Field(ge=0)
    category: Optional[str] = None
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("barcode")
    @classmethod
    def blank_barcode_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class ProductOut(BaseModel):
    id: int
    name: str
    barcode: Optional[str] = None
    price: Decimal
    stock: int
    category: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
