from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional


class PartBase(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    name: str
    description: Optional[str] = None
    unit_price: Decimal = Field(ge=0)


class PartCreate(PartBase):
    stock_quantity: int = Field(default=0, ge=0)


class PartUpdate(BaseModel):
    code: Optional[str] = Field(default=None, min_length=1, max_length=50)
    name: Optional[str] = None
    description: Optional[str] = None
    unit_price: Optional[Decimal] = Field(default=None, ge=0)


class StockMovement(BaseModel):
    quantity: int


class PartResponse(PartBase):
    id: int
    stock_quantity: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
