"""Pydantic schemas for ug_credit API."""

from pydantic import BaseModel

from src.ug_credit.domain.models import CreditBalance


class CreditBalanceResponse(BaseModel):
    company_id: int | None
    balance: dict[str, int]          # merged per product type
    brand: dict[str, int]
    user: dict[str, int]

    @classmethod
    def from_balance(cls, balance: CreditBalance) -> "CreditBalanceResponse":
        return cls(
            company_id=balance.company_id,
            balance=balance.merged(),
            brand=dict(sorted(balance.brand.items())),
            user=dict(sorted(balance.user.items())),
        )
