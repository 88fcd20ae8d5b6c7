"""Pydantic schemas for payment results (camelCase wire format)."""

from src.ug_common.cents import cents_to_display
from src.ug_common.schemas import CamelModel
from src.ug_payment.application.orchestrator import CreatedIntent
from src.ug_payment.domain.models import PurchaseOutcome


class PaymentIntentResponse(CamelModel):
    client_secret: str | None
    payment_intent_id: str
    amount: int
    amount_display: str
    currency: str
    product_types: list[str]

    @classmethod
    def from_created(cls, created: CreatedIntent) -> "PaymentIntentResponse":
        return cls(
            client_secret=created.client_secret,
            payment_intent_id=created.payment_intent_id,
            amount=created.amount_cents,
            amount_display=cents_to_display(created.amount_cents),
            currency=created.currency,
            product_types=created.product_types,
        )


class PurchaseResultResponse(CamelModel):
    success: bool = True
    applied_immediately: bool = True
    already_applied: bool
    release_id: int
    product_types: list[str]
    distribution: str
    funding_method: str
    payment_intent_id: str | None

    @classmethod
    def from_outcome(cls, outcome: PurchaseOutcome) -> "PurchaseResultResponse":
        return cls(
            already_applied=outcome.already_applied,
            release_id=outcome.release_id,
            product_types=outcome.product_types,
            distribution=outcome.distribution,
            funding_method=outcome.funding_method.value,
            payment_intent_id=outcome.payment_intent_id,
        )
