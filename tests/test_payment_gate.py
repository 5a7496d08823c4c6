from urllib.parse import parse_qs

import httpx
import pytest
from helpers import FakePaymentProvider

from medbook.domain.payments.gate import PaymentConfirmation, PaymentGate, requires_payment
from medbook.domain.payments.stripe_service import StripePaymentService
from medbook.errors import PaymentProviderError, ValidationError


def stripe(handler, api_key="sk_test_123"):
    return StripePaymentService(
        api_key=api_key,
        api_url="https://payments.test/v1",
        timeout=1.0,
        currency="inr",
        transport=httpx.MockTransport(handler),
    )


def intent_handler(status_by_id):
    def handler(request: httpx.Request) -> httpx.Response:
        intent_id = request.url.path.rsplit("/", 1)[-1]
        if intent_id not in status_by_id:
            return httpx.Response(404, json={"error": {"code": "resource_missing"}})
        return httpx.Response(200, json={"id": intent_id, "status": status_by_id[intent_id]})

    return handler


@pytest.mark.parametrize(
    "category, expected",
    [("private", True), ("Private ", True), ("government", False), ("", False), (None, False)],
)
def test_requires_payment(category, expected):
    assert requires_payment(category) is expected
    assert PaymentGate.requires_payment(category) is expected


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "reference, expected",
    [
        ("pi_ok", PaymentConfirmation.CONFIRMED),
        ("pi_processing", PaymentConfirmation.NOT_SUCCEEDED),
        ("pi_unknown", PaymentConfirmation.NOT_FOUND),
    ],
)
async def test_confirm_against_stripe_api(reference, expected):
    gate = PaymentGate(stripe(intent_handler({"pi_ok": "succeeded", "pi_processing": "processing"})))
    assert await gate.confirm(reference) is expected


@pytest.mark.asyncio
async def test_lookup_sends_bearer_key_to_intent_path():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"id": "pi_ok", "status": "succeeded"})

    await stripe(handler).retrieve_payment_intent("pi_ok")

    assert seen[0].method == "GET"
    assert seen[0].url == "https://payments.test/v1/payment_intents/pi_ok"
    assert seen[0].headers["Authorization"] == "Bearer sk_test_123"


@pytest.mark.asyncio
async def test_server_error_raises_provider_error():
    gate = PaymentGate(stripe(lambda request: httpx.Response(500, text="upstream broke")))
    with pytest.raises(PaymentProviderError) as exc_info:
        await gate.confirm("pi_ok")
    assert exc_info.value.status_code == 502
    assert exc_info.value.details["status"] == 500


@pytest.mark.asyncio
async def test_transport_timeout_raises_provider_error():
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(PaymentProviderError) as exc_info:
        await PaymentGate(stripe(handler)).confirm("pi_ok")
    assert exc_info.value.message == "Payment provider timed out"


@pytest.mark.asyncio
async def test_connection_error_raises_provider_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(PaymentProviderError):
        await PaymentGate(stripe(handler)).confirm("pi_ok")


@pytest.mark.asyncio
async def test_missing_api_key_raises_provider_error():
    service = stripe(intent_handler({}), api_key="")
    assert not service.is_available()
    with pytest.raises(PaymentProviderError):
        await service.retrieve_payment_intent("pi_ok")


@pytest.mark.asyncio
async def test_gate_bounds_slow_provider():
    slow = FakePaymentProvider(intents={"pi_ok": {"id": "pi_ok", "status": "succeeded"}}, delay=1.0)
    with pytest.raises(PaymentProviderError):
        await PaymentGate(slow, timeout=0.05).confirm("pi_ok")


@pytest.mark.asyncio
async def test_create_intent_posts_amount_currency_and_metadata():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(
            200, json={"id": "pi_new", "client_secret": "pi_new_secret_abc", "status": "requires_payment_method"}
        )

    intent = await PaymentGate(stripe(handler)).create_intent(50000, provider_id=3, consumer_id="pat-1")

    assert intent == {"id": "pi_new", "client_secret": "pi_new_secret_abc"}
    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/v1/payment_intents"
    form = parse_qs(request.content.decode())
    assert form["amount"] == ["50000"]
    assert form["currency"] == ["inr"]
    assert form["metadata[providerId]"] == ["3"]
    assert form["metadata[consumerId]"] == ["pat-1"]


@pytest.mark.asyncio
async def test_create_intent_failure_raises_provider_error():
    gate = PaymentGate(stripe(lambda request: httpx.Response(400, json={"error": {"message": "bad amount"}})))
    with pytest.raises(PaymentProviderError):
        await gate.create_intent(100, provider_id=1, consumer_id="pat-1")


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", [0, -100, True, 12.5])
async def test_create_intent_rejects_invalid_amount(amount):
    fake = FakePaymentProvider()
    with pytest.raises(ValidationError):
        await PaymentGate(fake).create_intent(amount, provider_id=1, consumer_id="pat-1")
    assert fake.created == []
