"""Pure consumption planning — brand credits first, then user credits.

A plan is all-or-nothing: either both scopes together cover the amount and
the plan says how much to take from each, or InsufficientCreditsError is
raised and nothing may be written.
"""

from dataclasses import dataclass

from src.ug_common.enums import CreditScope
from src.ug_common.errors import InsufficientCreditsError


@dataclass(frozen=True)
class ConsumptionStep:
    scope: CreditScope
    amount: int   # positive, credits to take


def plan_consumption(
    product_type: str,
    amount: int,
    brand_available: int,
    user_available: int,
) -> list[ConsumptionStep]:
    if amount <= 0:
        raise ValueError(f"Credit amount must be positive, got {amount}")
    # Negative scope sums (historic over-consumption) contribute nothing
    brand_available = max(brand_available, 0)
    user_available = max(user_available, 0)
    available = brand_available + user_available
    if amount > available:
        raise InsufficientCreditsError(product_type, amount, available)

    steps: list[ConsumptionStep] = []
    from_brand = min(amount, brand_available)
    if from_brand:
        steps.append(ConsumptionStep(CreditScope.BRAND, from_brand))
    remaining = amount - from_brand
    if remaining:
        steps.append(ConsumptionStep(CreditScope.USER, remaining))
    return steps
