"""Unit tests for plan_consumption — brand first, never partial."""

import pytest

from src.ug_common.enums import CreditScope
from src.ug_common.errors import InsufficientCreditsError
from src.ug_credit.domain.allocation import ConsumptionStep, plan_consumption


class TestPlanConsumption:
    def test_brand_covers_everything(self) -> None:
        assert plan_consumption("yahoo", 2, 5, 5) == [ConsumptionStep(CreditScope.BRAND, 2)]

    def test_user_only(self) -> None:
        assert plan_consumption("yahoo", 1, 0, 3) == [ConsumptionStep(CreditScope.USER, 1)]

    def test_split_brand_then_user(self) -> None:
        assert plan_consumption("yahoo", 3, 1, 5) == [
            ConsumptionStep(CreditScope.BRAND, 1),
            ConsumptionStep(CreditScope.USER, 2),
        ]

    def test_exact_total(self) -> None:
        steps = plan_consumption("yahoo", 4, 1, 3)
        assert sum(s.amount for s in steps) == 4

    def test_insufficient_raises_with_available(self) -> None:
        with pytest.raises(InsufficientCreditsError) as exc_info:
            plan_consumption("yahoo", 3, 1, 1)
        assert exc_info.value.available == 2
        assert exc_info.value.required == 3

    def test_negative_scope_does_not_offset_other_scope(self) -> None:
        with pytest.raises(InsufficientCreditsError):
            plan_consumption("yahoo", 2, -5, 1)
        assert plan_consumption("yahoo", 1, -5, 1) == [ConsumptionStep(CreditScope.USER, 1)]

    @pytest.mark.parametrize("amount", [0, -1])
    def test_non_positive_amount_rejected(self, amount: int) -> None:
        with pytest.raises(ValueError):
            plan_consumption("yahoo", amount, 5, 5)
