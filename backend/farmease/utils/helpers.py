from datetime import datetime, date
from typing import Union
from bson import ObjectId


def coerce_document_id(value: str) -> Union[ObjectId, str]:
    """Use an ObjectId when the value is one, otherwise keep the raw string id."""
    if ObjectId.is_valid(value):
        return ObjectId(value)
    return value


def to_calendar_date(value: Union[date, datetime]) -> date:
    """Drop the time of day from a timestamp."""
    if isinstance(value, datetime):
        return value.date()
    return value


def get_current_timestamp() -> datetime:
    """Get current UTC timestamp."""
    return datetime.utcnow()
