"""Pydantic schemas for ug_cart API."""

from pydantic import BaseModel, Field

from src.ug_cart.application.service import CartView, CheckoutResult
from src.ug_common.cents import cents_to_display
from src.ug_payment.application.schemas import PaymentIntentResponse, PurchaseResultResponse


class CheckoutRequest(BaseModel):
    use_credits: bool = Field(False, description="Pay the whole selection from credits")


class CartItem(BaseModel):
    product_type: str
    name: str
    price_cents: int
    price_display: str
    is_solo_upgrade: bool


class CartResponse(BaseModel):
    release_id: int
    state: str
    items: list[CartItem]
    total_cents: int
    total_display: str
    payment_intent_id: str | None
    blocked: dict[str, str]

    @classmethod
    def from_view(cls, view: CartView) -> "CartResponse":
        return cls(
            release_id=view.cart.release_id,
            state=view.cart.state.value,
            items=[
                CartItem(
                    product_type=p.product_type,
                    name=p.display_name,
                    price_cents=p.price,
                    price_display=cents_to_display(p.price),
                    is_solo_upgrade=p.is_solo_upgrade,
                )
                for p in view.items
            ],
            total_cents=view.total_cents,
            total_display=cents_to_display(view.total_cents),
            payment_intent_id=view.cart.payment_intent_id,
            blocked={t: reason.value for t, reason in view.blocked.items()},
        )


class CheckoutResponse(BaseModel):
    state: str
    applied_immediately: bool
    payment: dict | None = None     # PaymentIntentResponse, camelCase
    purchase: dict | None = None    # PurchaseResultResponse, camelCase

    @classmethod
    def from_result(cls, result: CheckoutResult) -> "CheckoutResponse":
        return cls(
            state=result.cart.state.value,
            applied_immediately=result.applied_immediately,
            payment=(
                PaymentIntentResponse.from_created(result.created).model_dump(by_alias=True)
                if result.created
                else None
            ),
            purchase=(
                PurchaseResultResponse.from_outcome(result.outcome).model_dump(by_alias=True)
                if result.outcome
                else None
            ),
        )
