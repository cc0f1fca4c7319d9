from typing import Optional, Union
from pydantic import BaseModel, Field, field_validator


class ProductStock(BaseModel):
    """Stock row returned by the batched stock lookup."""
    id: str = Field(alias="_id")
    stock: int = Field(ge=0)

    class Config:
        populate_by_name = True

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, value):
        return str(value)


class ProductSummary(BaseModel):
    """Product fields the cart needs, with the category name resolved."""
    id: str = Field(alias="_id")
    name: str
    price: str  # Display price as entered by the seller, e.g. "₹45/kg"
    image: str = ""
    category: str = ""
    stock: int = Field(default=0, ge=0)
    seller_id: Optional[str] = None

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "_id": "prod123",
                "name": "Organic Tomatoes",
                "price": "₹45.00",
                "image": "https://example.com/tomatoes.jpg",
                "category": "Organic Produce",
                "stock": 120,
                "seller_id": "seller123"
            }
        }

    @field_validator("id", "seller_id", mode="before")
    @classmethod
    def stringify_ids(cls, value):
        if value is None:
            return value
        return str(value)

    @field_validator("price", mode="before")
    @classmethod
    def stringify_price(cls, value: Union[str, int, float]) -> str:
        return str(value)
