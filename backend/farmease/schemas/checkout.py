from enum import Enum
from typing import List, Optional
from pydantic import BaseModel


class CheckoutState(str, Enum):
    """Checkout sequencer states."""
    IDLE = "idle"
    AWAITING_PAYMENT_DETAILS = "awaiting_payment_details"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class PaymentDetailsRequest(BaseModel):
    """Card details from the payment dialog. Nothing is charged or stored."""
    card_number: Optional[str] = None
    expiry: Optional[str] = None
    cvv: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "card_number": "4111 1111 1111 1111",
                "expiry": "12/27",
                "cvv": "123"
            }
        }


class InvoiceLine(BaseModel):
    """Line in an emailed invoice."""
    name: str
    quantity: int
    price: str


class OrderSummary(BaseModel):
    """Invoice payload."""
    order_number: str
    total_amount: str
    items: List[InvoiceLine]


class InvoiceDispatchResult(BaseModel):
    """Result of sending an invoice."""
    success: bool
    status_code: Optional[int] = None
    error: Optional[str] = None


class CheckoutResult(BaseModel):
    """Result of a checkout transition."""
    success: bool
    state: CheckoutState
    title: str
    message: str
    order_number: Optional[str] = None
    redirect_to: Optional[str] = None


class CheckoutStatusResponse(BaseModel):
    """Schema for the checkout state."""
    state: CheckoutState
    last_outcome: Optional[CheckoutState] = None
    total_amount: float
    total_display: str
    order_number: Optional[str] = None
