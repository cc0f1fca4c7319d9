from datetime import datetime
from typing import Annotated, List, Literal, Union, Any
from pydantic import BaseModel, Field, Tag, Discriminator, TypeAdapter


class RentalPeriod(BaseModel):
    """Booked date range of a rental line."""
    from_date: datetime = Field(alias="from")
    to_date: datetime = Field(alias="to")

    class Config:
        populate_by_name = True


class QuantityItem(BaseModel):
    """N units of a stocked product."""
    kind: Literal["quantity"] = "quantity"
    id: str
    name: str
    price: str  # Per-unit display price, e.g. "₹45.99"
    image: str = ""
    quantity: int = Field(ge=1)
    category: str = ""

    class Config:
        populate_by_name = True


class RentalItem(BaseModel):
    """One date-range rental booking; price is the booking total."""
    kind: Literal["rental"] = "rental"
    id: str
    name: str
    price: str  # Total booking price, already multiplied by the day count
    image: str = ""
    quantity: Literal[1] = 1
    category: str = ""
    rental_dates: RentalPeriod = Field(alias="rentalDates")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "kind": "rental",
                "id": "prod123",
                "name": "Mini Tractor",
                "price": "₹300.00",
                "image": "https://example.com/tractor.jpg",
                "quantity": 1,
                "category": "Rental Equipment",
                "rentalDates": {
                    "from": "2024-01-01T00:00:00",
                    "to": "2024-01-03T00:00:00"
                }
            }
        }


def _line_item_kind(value: Any) -> str:
    """Resolve the line item kind, inferring it for snapshots written without one."""
    if isinstance(value, dict):
        if "kind" in value:
            return value["kind"]
        if value.get("rentalDates") or value.get("rental_dates"):
            return "rental"
        return "quantity"
    return getattr(value, "kind", "quantity")


LineItem = Annotated[
    Union[
        Annotated[QuantityItem, Tag("quantity")],
        Annotated[RentalItem, Tag("rental")],
    ],
    Discriminator(_line_item_kind),
]

line_items_adapter = TypeAdapter(List[LineItem])


def dump_line_items(items: List[LineItem]) -> str:
    """Serialize line items to the stored JSON snapshot."""
    return line_items_adapter.dump_json(items, by_alias=True).decode("utf-8")


def load_line_items(raw: str) -> List[LineItem]:
    """Parse a stored JSON snapshot; raises pydantic.ValidationError when corrupt."""
    return line_items_adapter.validate_json(raw)
