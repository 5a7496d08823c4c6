"""Small builders shared by the test modules"""

import asyncio
from datetime import date, datetime, time, timedelta
from typing import Callable, Optional

from medbook.domain.availability.overlap import SlotSpec


def at(day: date, hhmm: str) -> datetime:
    hours, minutes = (int(part) for part in hhmm.split(":"))
    return datetime.combine(day, time(hours, minutes))


def spans(day: date, *pairs: tuple[str, str]) -> list[SlotSpec]:
    """``spans(d, ("09:00", "09:30"))`` -> slots on ``d``; "24:00" means next midnight"""
    result = []
    for start, end in pairs:
        start_at = at(day, start)
        if end == "24:00":
            end_at = datetime.combine(day, time.min) + timedelta(days=1)
        else:
            end_at = at(day, end)
        result.append(SlotSpec(start=start_at, end=end_at))
    return result


class FakePaymentProvider:
    """In-memory stand-in for the Stripe verifier"""

    def __init__(
        self,
        intents: Optional[dict] = None,
        error: Optional[Exception] = None,
        delay: float = 0,
        on_retrieve: Optional[Callable[[str], None]] = None,
    ):
        self.intents = dict(intents or {})
        self.error = error
        self.delay = delay
        self.on_retrieve = on_retrieve
        self.retrieved: list[str] = []
        self.created: list[tuple[int, dict]] = []

    async def retrieve_payment_intent(self, payment_reference: str) -> Optional[dict]:
        self.retrieved.append(payment_reference)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        if self.on_retrieve:
            self.on_retrieve(payment_reference)
        return self.intents.get(payment_reference)

    async def create_payment_intent(self, amount: int, metadata: Optional[dict] = None) -> dict:
        intent_id = f"pi_test_{len(self.created) + 1}"
        self.created.append((amount, metadata or {}))
        self.intents[intent_id] = {"id": intent_id, "status": "requires_payment_method"}
        return {"id": intent_id, "client_secret": f"{intent_id}_secret", "status": "requires_payment_method"}
