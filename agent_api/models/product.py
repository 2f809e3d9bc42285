from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Product(BaseModel):
    """One row of the price list."""

    model_config = ConfigDict(frozen=True)

    code: str
    name: str
    unit: str = ""
    unit_cost: float = 0.0
    stock: int = 0
    cost_with_tax: float = 0.0
    price: float = 0.0


class ProductSearchRequest(BaseModel):
    query: str = ""
    limit: Optional[int] = Field(default=None, ge=1, le=500)
