"""Domain models for ug_payment — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime

from src.ug_common.enums import FundingMethod, PaymentIntentStatus


@dataclass
class PaymentIntent:
    """Local mirror of a gateway intent.

    ``line_items`` (type -> cents) and ``amount_cents`` are fixed when the
    intent is created; confirmation never re-prices.
    """
    id: str                          # gateway intent id
    release_id: int
    user_id: int
    company_id: int | None
    product_types: list[str]
    line_items: dict[str, int]
    amount_cents: int
    currency: str
    status: str                      # PaymentIntentStatus value
    receipt_email: str | None = None
    receipt_name: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status != PaymentIntentStatus.PENDING


@dataclass
class PurchaseRecord:
    id: int                          # BIGSERIAL
    release_id: int
    product_type: str
    funding_method: str              # FundingMethod value
    amount_cents: int = 0            # cash purchases
    credits_consumed: int = 0        # credit purchases
    payment_intent_id: str | None = None
    user_id: int | None = None
    created_at: datetime | None = None


@dataclass
class NewPurchaseRecord:
    release_id: int
    product_type: str
    funding_method: FundingMethod
    user_id: int
    amount_cents: int = 0
    credits_consumed: int = 0
    payment_intent_id: str | None = None


@dataclass
class PurchaseOutcome:
    """Result of applying a purchase to a release."""
    release_id: int
    product_types: list[str]
    distribution: str
    funding_method: FundingMethod
    payment_intent_id: str | None = None
    already_applied: bool = False
    records: list[PurchaseRecord] = field(default_factory=list)
