"""
Checkout sequencer.

IDLE -> AWAITING_PAYMENT_DETAILS -> PROCESSING -> SUCCEEDED | FAILED

Payment is simulated and no order record is stored; a successful checkout
is a completed simulated authorization plus a sent invoice email, after
which the cart is cleared. A failed invoice leaves the cart untouched and
is reported as a failed payment. Retrying runs the whole flow again,
including another invoice attempt.
"""

import logging
import secrets
import string
from typing import Dict, Optional

from farmease.config.checkout_config import CHECKOUT_CONFIG
from farmease.schemas.checkout import (
    CheckoutState,
    CheckoutResult,
    InvoiceLine,
    OrderSummary,
    PaymentDetailsRequest
)
from farmease.services.cart_service import CartStore
from farmease.services.invoice_service import InvoiceService
from farmease.services.payment_simulation import PaymentSimulationService
from farmease.utils.pricing import display_price, format_minor_units

logger = logging.getLogger(__name__)


class CheckoutError(Exception):
    """Checkout step failed."""


def generate_order_number(length: Optional[int] = None) -> str:
    """Generate an order number such as ORD-k3j9x0a2b. Uniqueness is not checked."""
    length = length or CHECKOUT_CONFIG["order_number_length"]
    characters = string.ascii_lowercase + string.digits
    suffix = "".join(secrets.choice(characters) for _ in range(length))
    return f"{CHECKOUT_CONFIG['order_number_prefix']}{suffix}"


def build_order_summary(store: CartStore, order_number: str) -> OrderSummary:
    """Invoice payload for the current cart."""
    return OrderSummary(
        order_number=order_number,
        total_amount=format_minor_units(store.get_total_minor_units()),
        items=[
            InvoiceLine(name=item.name, quantity=item.quantity, price=display_price(item.price))
            for item in store.items
        ]
    )


class CheckoutSequencer:
    """Checkout state machine for one user."""

    def __init__(
        self,
        payment_service: Optional[PaymentSimulationService] = None,
        invoice_service: Optional[InvoiceService] = None
    ):
        self.payment_service = payment_service or PaymentSimulationService()
        self.invoice_service = invoice_service or InvoiceService()
        self.state = CheckoutState.IDLE
        self.last_outcome: Optional[CheckoutState] = None
        self.last_order_number: Optional[str] = None

    def begin(self, store: CartStore) -> CheckoutResult:
        """Open the payment step. Refused for an empty cart or while processing."""
        if self.state == CheckoutState.PROCESSING:
            return CheckoutResult(
                success=False,
                state=self.state,
                title="Payment in progress",
                message="Your payment is already being processed."
            )

        if store.is_empty():
            return CheckoutResult(
                success=False,
                state=self.state,
                title="Cart is empty",
                message="Add items to your cart before checking out."
            )

        self.state = CheckoutState.AWAITING_PAYMENT_DETAILS
        return CheckoutResult(
            success=True,
            state=self.state,
            title="Complete Payment",
            message="Enter your payment details to complete the purchase"
        )

    def cancel(self) -> CheckoutResult:
        """Close the payment step. Not possible once processing has begun."""
        if self.state == CheckoutState.PROCESSING:
            return CheckoutResult(
                success=False,
                state=self.state,
                title="Payment in progress",
                message="A payment that is being processed cannot be cancelled."
            )

        self.state = CheckoutState.IDLE
        return CheckoutResult(
            success=True,
            state=self.state,
            title="Checkout cancelled",
            message="Your cart has been kept."
        )

    async def submit_payment(self, store: CartStore, details: PaymentDetailsRequest) -> CheckoutResult:
        """
        Run the simulated payment and send the invoice.

        Args:
            store: Cart of the paying user; its session supplies the invoice email
            details: Payment dialog input

        Returns:
            Checkout result; on failure the state is back to AWAITING_PAYMENT_DETAILS
        """
        if self.state != CheckoutState.AWAITING_PAYMENT_DETAILS:
            return CheckoutResult(
                success=False,
                state=self.state,
                title="Checkout not started",
                message="Proceed to payment before submitting payment details."
            )

        self.state = CheckoutState.PROCESSING
        order_number = generate_order_number()
        logger.info(f"[CHECKOUT] Processing payment for order {order_number}")

        try:
            try:
                await self.payment_service.authorize(store.get_total(), details)

                email = store.session.email if store.session else None
                if not email:
                    raise CheckoutError("User email not found")

                summary = build_order_summary(store, order_number)
                dispatch = await self.invoice_service.send_invoice(email, summary)
                if not dispatch.success:
                    raise CheckoutError(f"Invoice dispatch failed: {dispatch.error}")
            except Exception as e:
                logger.error(f"[CHECKOUT] Error processing payment for order {order_number}: {str(e)}")
                self.state = CheckoutState.AWAITING_PAYMENT_DETAILS
                self.last_outcome = CheckoutState.FAILED
                return CheckoutResult(
                    success=False,
                    state=CheckoutState.FAILED,
                    title="Payment failed",
                    message="There was an error processing your payment. Please try again.",
                    order_number=order_number
                )

            # Payment and invoice are done; a storage failure here does not undo them
            try:
                await store.clear()
            except Exception as e:
                logger.error(f"[CHECKOUT] Order {order_number} completed but the cart could not be cleared: {str(e)}")

            self.state = CheckoutState.SUCCEEDED
            self.last_outcome = CheckoutState.SUCCEEDED
            self.last_order_number = order_number
            logger.info(f"[CHECKOUT] Order {order_number} completed")

            return CheckoutResult(
                success=True,
                state=self.state,
                title="Payment successful!",
                message="Your order has been placed and an invoice has been sent to your email.",
                order_number=order_number,
                redirect_to="/"
            )
        finally:
            if self.state == CheckoutState.PROCESSING:
                # Interrupted, e.g. the request was cancelled mid-payment
                logger.warning(f"[CHECKOUT] Payment for order {order_number} was interrupted")
                self.state = CheckoutState.AWAITING_PAYMENT_DETAILS
                self.last_outcome = CheckoutState.FAILED


class CheckoutRegistry:
    """Process-local sequencers, one per user."""

    def __init__(self):
        self._sequencers: Dict[str, CheckoutSequencer] = {}

    def get(self, user_id: str) -> CheckoutSequencer:
        if user_id not in self._sequencers:
            self._sequencers[user_id] = CheckoutSequencer()
        return self._sequencers[user_id]

    def find(self, user_id: str) -> Optional[CheckoutSequencer]:
        return self._sequencers.get(user_id)

    def release(self, user_id: str) -> None:
        """Forget a user's sequencer once its checkout is settled; kept while processing."""
        sequencer = self._sequencers.get(user_id)
        if sequencer is not None and sequencer.state != CheckoutState.PROCESSING:
            del self._sequencers[user_id]

    def __len__(self) -> int:
        return len(self._sequencers)

    def reset(self) -> None:
        self._sequencers.clear()


checkout_registry = CheckoutRegistry()
