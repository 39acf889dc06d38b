from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional
from uuid import uuid4

from ..constants import PaymentStatus
from ..logging_config import logger
from ..models import PaymentDetails, utcnow_iso
from ..utils.errors import PaymentError
from .base import store_operation


@dataclass
class PaymentState:
    payment_details: Optional[PaymentDetails] = None
    is_processing: bool = False
    error: Optional[str] = None


class PaymentStore:
    """Simulated payment processing.

    Every well-formed request is approved after ``delay`` seconds. There is
    no gateway, idempotency key or retry behind it.
    """

    def __init__(self, delay: float = 2.0):
        self.delay = delay
        self.state = PaymentState()

    @store_operation("Payment processing failed", loading_attr="is_processing")
    async def process_payment(self, user_id: str, event_id: str, amount: float, payment_method: str) -> PaymentDetails:
        if amount < 0:
            raise PaymentError("Payment amount cannot be negative")
        if not payment_method or not payment_method.strip():
            raise PaymentError("Payment method is required")
        await asyncio.sleep(self.delay)

        details = PaymentDetails(
            id=f"pay_{uuid4().hex[:13]}",
            user_id=user_id,
            event_id=event_id,
            amount=amount,
            status=PaymentStatus.COMPLETED.value,
            payment_method=payment_method.strip(),
            payment_date=utcnow_iso(),
            transaction_id=f"txn_{uuid4().hex[:13]}",
        )
        self.state.payment_details = details
        logger.info("Payment %s completed user=%s event=%s amount=%.2f", details.id, user_id, event_id, amount)
        return details
