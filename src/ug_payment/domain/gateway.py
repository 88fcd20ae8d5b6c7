"""Payment gateway port.

The orchestrator only ever sees these value objects; the Stripe adapter
translates to and from the SDK's objects.
"""

from dataclasses import dataclass, field
from typing import Protocol


@dataclass(frozen=True)
class GatewayIntent:
    id: str
    status: str                      # gateway status, e.g. "succeeded", "requires_payment_method"
    amount: int                      # minor units
    currency: str
    client_secret: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class GatewayEvent:
    id: str
    event_type: str                  # e.g. "payment_intent.succeeded"
    intent: GatewayIntent | None     # None for event types that carry no intent


class PaymentGatewayProtocol(Protocol):
    async def create_intent(
        self,
        amount: int,
        currency: str,
        metadata: dict[str, str],
        description: str,
        receipt_email: str | None,
    ) -> GatewayIntent: ...

    async def retrieve_intent(self, intent_id: str) -> GatewayIntent: ...

    async def cancel_intent(self, intent_id: str) -> GatewayIntent: ...

    def parse_webhook(self, payload: bytes, signature: str) -> GatewayEvent: ...
