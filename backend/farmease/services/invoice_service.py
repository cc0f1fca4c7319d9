"""
Invoice dispatch through the EmailJS REST API.

Documentation: https://www.emailjs.com/docs/rest-api/send/
"""

import logging
import math
from datetime import datetime
from typing import Any, Dict

import requests

from farmease.config.checkout_config import CHECKOUT_CONFIG, get_invoice_config
from farmease.core.config import settings
from farmease.schemas.checkout import OrderSummary, InvoiceDispatchResult
from farmease.utils.pricing import line_total_display, parse_price, format_price

logger = logging.getLogger(__name__)


def ensure_currency(price: str) -> str:
    """Render a price as the currency glyph plus two decimals; unparseable text keeps its own wording."""
    amount = parse_price(price)
    if not math.isnan(amount):
        return format_price(amount)
    symbol = CHECKOUT_CONFIG["currency_symbol"]
    if symbol in price:
        return price
    return f"{symbol}{price}"


class InvoiceService:
    """Sends order invoices by email."""

    def __init__(self):
        self.config = get_invoice_config()
        self.endpoint = self.config["endpoint"]
        self.service_id = settings.EMAILJS_SERVICE_ID
        self.template_id = settings.EMAILJS_TEMPLATE_ID
        self.public_key = settings.EMAILJS_PUBLIC_KEY
        self.private_key = settings.EMAILJS_PRIVATE_KEY

    def is_configured(self) -> bool:
        return bool(self.service_id and self.template_id and self.public_key)

    def build_template_params(self, to_email: str, summary: OrderSummary) -> Dict[str, Any]:
        """Template variables for the invoice email."""
        rows = []
        for item in summary.items:
            rows.append(
                "<tr>"
                f"<td>{item.name}</td>"
                f"<td>{item.quantity}</td>"
                f"<td>{ensure_currency(item.price)}</td>"
                f"<td>{line_total_display(item.price, item.quantity)}</td>"
                "</tr>"
            )

        return {
            "to_email": to_email,
            "order_number": summary.order_number,
            "order_date": datetime.now().strftime(self.config["date_format"]),
            "total_amount": ensure_currency(summary.total_amount),
            "items_list": "\n".join(
                f"{item.name} ({item.quantity}x) - {ensure_currency(item.price)}"
                for item in summary.items
            ),
            "items_list_html": "".join(rows)
        }

    async def send_invoice(self, to_email: str, summary: OrderSummary) -> InvoiceDispatchResult:
        """
        Send an invoice email.

        Args:
            to_email: Recipient address
            summary: Order number, total and lines

        Returns:
            Dispatch result; failures are reported, never raised
        """
        if not self.is_configured():
            logger.error("EmailJS is not properly configured. Please check your environment variables.")
            return InvoiceDispatchResult(success=False, error="Invoice email is not configured")

        payload = {
            "service_id": self.service_id,
            "template_id": self.template_id,
            "user_id": self.public_key,
            "template_params": self.build_template_params(to_email, summary)
        }
        if self.private_key:
            payload["accessToken"] = self.private_key

        logger.info(f"Sending invoice {summary.order_number} to {to_email}")

        try:
            response = requests.post(
                self.endpoint,
                json=payload,
                timeout=self.config["timeout_seconds"]
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error(f"Error sending invoice email: {str(e)}")
            status_code = e.response.status_code if e.response is not None else None
            return InvoiceDispatchResult(success=False, status_code=status_code, error=str(e))

        return InvoiceDispatchResult(success=True, status_code=response.status_code)
