"""Stripe payment service - Payment intents over the Stripe REST API"""

import logging
from typing import Optional

import httpx

from ...config import PAYMENT_CURRENCY, PAYMENT_TIMEOUT_SECONDS, STRIPE_API_URL, STRIPE_SECRET_KEY
from ...errors import PaymentProviderError

logger = logging.getLogger(__name__)


class StripePaymentService:
    """
    Creates and looks up payment intents.

    ``transport`` lets callers swap the HTTP transport (tests pass an
    ``httpx.MockTransport``).
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: str = STRIPE_API_URL,
        timeout: float = PAYMENT_TIMEOUT_SECONDS,
        currency: str = PAYMENT_CURRENCY,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else STRIPE_SECRET_KEY
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.currency = currency
        self.transport = transport

        if not self.api_key:
            logger.warning("STRIPE_SECRET_KEY not set; payment confirmation will fail until configured")

    def is_available(self) -> bool:
        return bool(self.api_key)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.api_url,
            timeout=self.timeout,
            transport=self.transport,
            headers={"Authorization": f"Bearer {self.api_key}"},
        )

    async def create_payment_intent(self, amount: int, metadata: Optional[dict] = None) -> dict:
        """Create a pending payment intent for ``amount`` minor units"""
        if not self.api_key:
            raise PaymentProviderError("Payment service unavailable - check configuration")

        data = {
            "amount": str(amount),
            "currency": self.currency,
            "automatic_payment_methods[enabled]": "true",
        }
        for key, value in (metadata or {}).items():
            data[f"metadata[{key}]"] = str(value)

        try:
            async with self._client() as http_client:
                response = await http_client.post("/payment_intents", data=data)
        except httpx.TimeoutException as e:
            logger.error(f"❌ Payment intent creation timed out after {self.timeout}s")
            raise PaymentProviderError("Payment provider timed out") from e
        except httpx.HTTPError as e:
            logger.error(f"❌ Payment intent creation failed: {e}")
            raise PaymentProviderError(f"Payment provider error: {e}") from e

        if response.status_code != 200:
            logger.error(f"❌ Failed to create payment intent: HTTP {response.status_code} {response.text}")
            raise PaymentProviderError("Payment setup failed", status=response.status_code)

        intent = response.json()
        logger.info(f"✅ Payment intent created: {intent.get('id')}")
        return intent

    async def retrieve_payment_intent(self, payment_reference: str) -> Optional[dict]:
        """
        Fetch a payment intent by id.

        Returns None when the provider does not know the reference; raises
        PaymentProviderError on transport failures, timeouts and server errors.
        """
        if not self.api_key:
            raise PaymentProviderError("Payment service unavailable - check configuration")

        try:
            async with self._client() as http_client:
                response = await http_client.get(f"/payment_intents/{payment_reference}")
        except httpx.TimeoutException as e:
            logger.error(f"❌ Payment lookup for {payment_reference} timed out after {self.timeout}s")
            raise PaymentProviderError("Payment provider timed out") from e
        except httpx.HTTPError as e:
            logger.error(f"❌ Payment lookup for {payment_reference} failed: {e}")
            raise PaymentProviderError(f"Payment provider error: {e}") from e

        if response.status_code == 404:
            return None
        if response.status_code != 200:
            logger.error(f"❌ Payment lookup failed: HTTP {response.status_code} {response.text}")
            raise PaymentProviderError("Payment lookup failed", status=response.status_code)

        return response.json()
