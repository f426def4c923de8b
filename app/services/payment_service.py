# app/services/payment_service.py
"""
Simulated payment processing.

No real gateway is contacted. The simulator waits a fixed delay and then
succeeds with probability `success_rate`. Checkout receives it through a
FastAPI dependency (`get_payment_simulator` in app.routers.orders), so
tests can swap in a simulator with success_rate 1.0 or 0.0.
"""
import logging
import random
import re
import time
import uuid
from datetime import datetime, timezone
from typing import Callable

from app.core.errors import PaymentFailed
from app.schemas.order import PaymentData, PaymentReceipt

logger = logging.getLogger(__name__)

CARD_METHODS = frozenset({"credit_card", "debit_card"})

CARD_NUMBER_RE = re.compile(r"^\d{4}[\s-]?\d{4}[\s-]?\d{4}[\s-]?\d{4}$")
EXPIRY_RE = re.compile(r"^(0[1-9]|1[0-2])/\d{2}$")
CVV_RE = re.compile(r"^\d{3,4}$")


def validate_payment_data(method: str, data: PaymentData) -> list[str]:
    """
    Return the list of problems with `data` for `method` (empty when valid).

    Card methods need card number, expiry date (MM/YY) and CVV. A positive
    amount is already guaranteed by PaymentData.
    """
    errors: list[str] = []

    if method in CARD_METHODS:
        if not data.card_number:
            errors.append("Card number is required for card payments")
        elif not CARD_NUMBER_RE.match(data.card_number):
            errors.append("Card number must be 16 digits (spaces or dashes allowed)")

        if not data.expiry_date:
            errors.append("Expiry date is required for card payments")
        elif not EXPIRY_RE.match(data.expiry_date):
            errors.append("Expiry date must be in format MM/YY")

        if not data.cvv:
            errors.append("CVV is required for card payments")
        elif not CVV_RE.match(data.cvv):
            errors.append("CVV must be 3 or 4 digits")

    return errors


class PaymentSimulator:
    """
    Stand-in for a payment gateway.

    simulate() blocks for `delay_seconds`, then either returns a
    PaymentReceipt or raises PaymentFailed.
    """

    def __init__(
        self,
        success_rate: float = 0.8,
        delay_seconds: float = 2.0,
        rng: random.Random | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.success_rate = success_rate
        self.delay_seconds = delay_seconds
        self.rng = rng or random.Random()
        self.sleep = sleep

    @staticmethod
    def _transaction_id() -> str:
        return f"TXN_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"

    def simulate(
        self,
        amount: float,
        method: str,
        data: PaymentData,
        reference: str | None = None,
    ) -> PaymentReceipt:
        if self.delay_seconds > 0:
            self.sleep(self.delay_seconds)

        if self.rng.random() >= self.success_rate:
            logger.warning(
                "Simulated %s payment of %.2f %s declined (ref=%s)",
                method, amount, data.currency, reference,
            )
            raise PaymentFailed(
                "Payment could not be processed. Please try again.",
            )

        receipt = PaymentReceipt(
            transaction_id=self._transaction_id(),
            amount=round(amount, 2),
            currency=data.currency,
            timestamp=datetime.now(timezone.utc),
        )
        logger.info(
            "Simulated %s payment of %.2f %s accepted (ref=%s, txn=%s)",
            method, amount, data.currency, reference, receipt.transaction_id,
        )
        return receipt
