"""
Checkout configuration.

Supports two operating modes:
- SIMULATION: no payment gateway is contacted, a fixed delay stands in for
  the authorization round-trip (the only mode the storefront ships with)
- INSTANT: same as SIMULATION without the delay (local tooling and demos)
"""

import os
from typing import Dict, Any


# Checkout operating mode
CHECKOUT_MODE = os.getenv("CHECKOUT_MODE", "SIMULATION")  # SIMULATION | INSTANT

# Checkout configuration
CHECKOUT_CONFIG: Dict[str, Any] = {
    "mode": CHECKOUT_MODE,

    # Display currency
    "currency_symbol": os.getenv("CURRENCY_SYMBOL", "₹"),
    "currency": "INR",

    # Order numbers: ORD- followed by random lowercase alphanumerics
    "order_number_prefix": "ORD-",
    "order_number_length": int(os.getenv("ORDER_NUMBER_LENGTH", "9")),

    # Durable client storage
    "cart_storage_key": "cart",

    # Invoice dispatch (EmailJS REST API)
    "invoice": {
        "endpoint": os.getenv("EMAILJS_ENDPOINT", "https://api.emailjs.com/api/v1.0/email/send"),
        "timeout_seconds": int(os.getenv("INVOICE_TIMEOUT_SECONDS", "30")),
        "date_format": "%B %d, %Y"
    },

    # Simulation Settings
    "simulation": {
        "payment_delay_seconds": float(os.getenv("SIMULATED_PAYMENT_DELAY_SECONDS", "2"))
    },

    # Product categories
    "categories": {
        "rental": "Rental Equipment",
        "quantity": ["Organic Produce", "Fruits and Vegetables"]
    }
}


def get_payment_delay() -> float:
    """
    Get the simulated payment delay for the current mode.

    Returns:
        Delay in seconds (0 in INSTANT mode)
    """
    if CHECKOUT_MODE == "INSTANT":
        return 0.0
    return CHECKOUT_CONFIG["simulation"]["payment_delay_seconds"]


def get_invoice_config() -> Dict[str, Any]:
    """Get invoice dispatch configuration."""
    return CHECKOUT_CONFIG["invoice"]


def is_rental_category(category: str) -> bool:
    """Check whether a category name is billed per rental day."""
    return category == CHECKOUT_CONFIG["categories"]["rental"]


def is_quantity_category(category: str) -> bool:
    """Check whether a category name is sold by quantity."""
    return category in CHECKOUT_CONFIG["categories"]["quantity"]
