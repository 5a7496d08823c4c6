"""
Payment Gate

Decides whether a provider category must prepay and confirms payment
references with the payment provider. The gate never retries; provider
failures surface to the caller.
"""

import asyncio
import enum
import logging
from typing import Optional, Protocol

from ...config import PAYMENT_TIMEOUT_SECONDS, PRIVATE_CATEGORIES
from ...errors import PaymentProviderError, ValidationError
from .stripe_service import StripePaymentService

logger = logging.getLogger(__name__)

SUCCEEDED_STATUS = "succeeded"


class PaymentConfirmation(str, enum.Enum):
    CONFIRMED = "confirmed"
    NOT_FOUND = "not_found"
    NOT_SUCCEEDED = "not_succeeded"


class PaymentProvider(Protocol):
    async def create_payment_intent(self, amount: int, metadata: Optional[dict] = None) -> dict: ...

    async def retrieve_payment_intent(self, payment_reference: str) -> Optional[dict]: ...


def requires_payment(category: Optional[str]) -> bool:
    """Private-equivalent categories must prepay"""
    return (category or "").strip().lower() in PRIVATE_CATEGORIES


class PaymentGate:
    def __init__(
        self,
        provider: Optional[PaymentProvider] = None,
        timeout: float = PAYMENT_TIMEOUT_SECONDS,
    ):
        self.provider = provider if provider is not None else StripePaymentService()
        self.timeout = timeout

    requires_payment = staticmethod(requires_payment)

    async def confirm(self, payment_reference: str) -> PaymentConfirmation:
        """
        Report the terminal state of a payment reference.

        Raises PaymentProviderError when the provider fails or does not answer
        within ``timeout`` seconds.
        """
        try:
            intent = await asyncio.wait_for(
                self.provider.retrieve_payment_intent(payment_reference), timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            logger.error(f"❌ Payment confirmation for {payment_reference} timed out after {self.timeout}s")
            raise PaymentProviderError("Payment provider timed out") from e
        if intent is None:
            logger.warning(f"⚠️ Payment reference {payment_reference} not found")
            return PaymentConfirmation.NOT_FOUND

        status = intent.get("status")
        if status != SUCCEEDED_STATUS:
            logger.warning(f"⚠️ Payment {payment_reference} not completed (status={status})")
            return PaymentConfirmation.NOT_SUCCEEDED

        logger.info(f"✅ Payment {payment_reference} confirmed")
        return PaymentConfirmation.CONFIRMED

    async def create_intent(self, amount: int, provider_id: int, consumer_id: str) -> dict:
        """Open a pending payment intent tagged with who is paying whom"""
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            raise ValidationError("Invalid amount (must be positive number in minor units)")

        intent = await self.provider.create_payment_intent(
            amount,
            metadata={"providerId": provider_id, "consumerId": consumer_id},
        )
        if not intent.get("id"):
            raise PaymentProviderError("Payment provider returned no intent id")
        return {"id": intent["id"], "client_secret": intent.get("client_secret")}


# Shared gate for the HTTP layer, created on first use
_payment_gate: Optional[PaymentGate] = None


def get_payment_gate() -> PaymentGate:
    """Dependency returning the process-wide PaymentGate"""
    global _payment_gate
    if _payment_gate is None:
        _payment_gate = PaymentGate()
    return _payment_gate
