from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal


class ProductResponse(BaseModel):
    """Canonical product record, as stored, cached and returned to clients."""

    id: str = Field(..., description="Product UUID")
    name: str = Field(..., min_length=1, description="Product name (unique)")
    image: Optional[str] = Field(None, description="Image URL")
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    qty: int = Field(..., ge=0)
    out_of_stock: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProductRow(BaseModel):
    """A validated data row from an ingestion CSV."""

    row_number: int = Field(..., description="File line the record starts on (1-based)")
    id: str
    name: str
    image: Optional[str] = None
    price: Decimal
    qty: int
