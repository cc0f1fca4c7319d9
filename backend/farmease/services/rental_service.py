"""
Rental pricing for date-range bookings.

A rental line is billed daily_rate * inclusive day count once, when the
booking is added; the cart then carries that total as the line price with
quantity 1.
"""

import math
from datetime import date, datetime, time
from typing import Optional, Union

from pydantic import BaseModel

from farmease.models.cart import RentalItem, RentalPeriod
from farmease.models.product import ProductSummary
from farmease.utils.helpers import to_calendar_date
from farmease.utils.pricing import parse_price, format_price, exact_amount, to_minor_units, from_minor_units

DateLike = Union[date, datetime]


class RentalQuote(BaseModel):
    """Derived price of a booking."""
    daily_rate: float
    from_date: date
    to_date: date
    total_days: int
    total_price: float

    @property
    def total_display(self) -> str:
        return format_price(self.total_price)


def rental_days(from_date: DateLike, to_date: DateLike) -> int:
    """Inclusive number of calendar days between two dates."""
    return (to_calendar_date(to_date) - to_calendar_date(from_date)).days + 1


def quote_rental(
    daily_rate: str,
    from_date: Optional[DateLike],
    to_date: Optional[DateLike]
) -> Optional[RentalQuote]:
    """
    Price a booking.

    Args:
        daily_rate: Daily display price, e.g. "₹100"
        from_date: First rental day
        to_date: Last rental day (inclusive)

    Returns:
        The quote, or None when a date is missing, the range is reversed or
        the rate cannot be parsed
    """
    if from_date is None or to_date is None:
        return None

    start = to_calendar_date(from_date)
    end = to_calendar_date(to_date)
    if end < start:
        return None

    rate = parse_price(daily_rate)
    if math.isnan(rate):
        return None

    total_days = rental_days(start, end)
    return RentalQuote(
        daily_rate=rate,
        from_date=start,
        to_date=end,
        total_days=total_days,
        total_price=from_minor_units(to_minor_units(exact_amount(rate, total_days)))
    )


def build_rental_item(product: ProductSummary, quote: RentalQuote) -> RentalItem:
    """Cart line for a booking; the formatted total replaces the daily price."""
    return RentalItem(
        id=product.id,
        name=product.name,
        price=quote.total_display,
        image=product.image,
        category=product.category,
        rental_dates=RentalPeriod(
            from_date=datetime.combine(quote.from_date, time.min),
            to_date=datetime.combine(quote.to_date, time.min)
        )
    )
