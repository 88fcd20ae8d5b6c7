"""Pydantic schemas for the distribution endpoint's POST actions."""

from typing import Literal

from src.ug_common.errors import MissingParameterError
from src.ug_common.schemas import CamelModel

DistributionAction = Literal[
    "create_payment_intent",
    "confirm_payment",
    "cancel_payment",
    "use_credit",
    "skip",
]


class DistributionActionRequest(CamelModel):
    action: DistributionAction
    product_types: list[str] = []
    product_type: str | None = None
    payment_intent_id: str | None = None

    def require_intent_id(self) -> str:
        if not self.payment_intent_id:
            raise MissingParameterError("paymentIntentId", self.action)
        return self.payment_intent_id

    def credit_product_types(self) -> list[str]:
        """use_credit accepts a single productType or a productTypes list."""
        if self.product_type:
            return [self.product_type]
        if self.product_types:
            return self.product_types
        raise MissingParameterError("productType", self.action)


class SkipResponse(CamelModel):
    success: bool = True
    distribution: str
