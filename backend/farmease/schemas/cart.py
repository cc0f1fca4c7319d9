from datetime import date
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field

from farmease.models.cart import RentalPeriod


class AddOutcome(str, Enum):
    """Outcome of adding a line item."""
    ADDED = "added"
    QUANTITY_UPDATED = "quantity_updated"
    LOGIN_REQUIRED = "login_required"


class AddItemResult(BaseModel):
    """Result of CartStore.add_item."""
    outcome: AddOutcome
    title: str
    message: str
    redirect_to: Optional[str] = None

    @property
    def applied(self) -> bool:
        return self.outcome != AddOutcome.LOGIN_REQUIRED


class QuantityChangeResult(BaseModel):
    """Result of a stock-reconciled quantity change."""
    accepted: bool
    ceiling: Optional[int] = None
    title: Optional[str] = None
    message: Optional[str] = None


class AddToCartRequest(BaseModel):
    """Schema for adding a product to cart."""
    product_id: str
    quantity: int = Field(default=1, gt=0)

    class Config:
        json_schema_extra = {
            "example": {
                "product_id": "prod123",
                "quantity": 2
            }
        }


class UpdateCartItemRequest(BaseModel):
    """Schema for updating cart item quantity. Zero or less removes the item."""
    quantity: int

    class Config:
        json_schema_extra = {
            "example": {
                "quantity": 3
            }
        }


class RentalRequest(BaseModel):
    """Schema for quoting or booking a rental."""
    product_id: str
    from_date: date
    to_date: date

    class Config:
        json_schema_extra = {
            "example": {
                "product_id": "prod123",
                "from_date": "2024-01-01",
                "to_date": "2024-01-03"
            }
        }


class RentalQuoteResponse(BaseModel):
    """Schema for a rental quote."""
    product_id: str
    daily_rate: float
    from_date: date
    to_date: date
    total_days: int
    total_price: float
    total_display: str


class CartItemResponse(BaseModel):
    """Schema for cart item response."""
    id: str
    kind: str
    name: str
    price: str
    image: str
    quantity: int
    category: str
    line_total: str
    stock: Optional[int] = None
    stock_warning: bool = False
    rental_dates: Optional[RentalPeriod] = None


class CartResponse(BaseModel):
    """Schema for cart response."""
    items: List[CartItemResponse]
    total_amount: float
    total_display: str
    total_items: int
    message: Optional[str] = None

    class Config:
        from_attributes = True
