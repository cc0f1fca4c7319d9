"""
Simulated payment authorization.

No payment gateway is contacted: a fixed delay stands in for the
authorization round-trip and the payment always succeeds. Card details are
neither validated nor stored.
"""

import asyncio
import logging
import secrets
from typing import Any, Dict, Optional

from farmease.config.checkout_config import CHECKOUT_CONFIG, get_payment_delay
from farmease.schemas.checkout import PaymentDetailsRequest
from farmease.utils.helpers import get_current_timestamp

logger = logging.getLogger(__name__)


class PaymentSimulationService:
    """Payment simulation service."""

    def __init__(self, delay_seconds: Optional[float] = None):
        self.delay_seconds = get_payment_delay() if delay_seconds is None else delay_seconds

    async def authorize(self, amount: float, details: PaymentDetailsRequest) -> Dict[str, Any]:
        """
        Simulate a payment authorization.

        Args:
            amount: Amount to charge
            details: Card details from the payment dialog (ignored)

        Returns:
            Simulated authorization response
        """
        transaction_id = f"SIM_{secrets.token_hex(8).upper()}"
        logger.info(f"[SIMULATION] Authorizing {amount:.2f} {CHECKOUT_CONFIG['currency']} ({transaction_id})")

        await asyncio.sleep(self.delay_seconds)

        logger.info(f"[SIMULATION] Authorized {transaction_id}")
        return {
            "success": True,
            "transaction_id": transaction_id,
            "status": "completed",
            "completed_at": get_current_timestamp().isoformat(),
            "simulation_mode": True
        }
