"""Cart / selection state machine — pure functions over an immutable value.

Every operation takes a ``CartSelection`` and returns a new one; nothing
here touches storage or the network. The cart is a convenience for the UI:
the payment orchestrator re-validates everything it is handed.

States:
    EMPTY ──toggle──> HAS_SELECTION ──begin_checkout──> CHECKING_OUT
      ^                 ^      |                            |
      └─remove/toggle───┘      |                      await_payment
                               |                            v
                               └──return_to_selection── AWAITING_PAYMENT
                                                            |
                                                      mark_purchased
                                                            v
                                                        PURCHASED
"""

from collections.abc import Mapping
from collections.abc import Set as AbstractSet
from dataclasses import dataclass, field, replace
from enum import Enum

from src.ug_common.errors import (
    EmptySelectionError,
    ExclusivityViolation,
    UnknownProductTypeError,
)
from src.ug_distribution.domain.exclusivity import BlockReason, persisted_block_reason


class CartState(str, Enum):
    EMPTY = "empty"
    HAS_SELECTION = "has_selection"
    CHECKING_OUT = "checking_out"
    AWAITING_PAYMENT = "awaiting_payment"
    PURCHASED = "purchased"


@dataclass(frozen=True)
class CartContext:
    """What the release and catalog look like right now."""
    persisted: frozenset[str]                       # types already in distribution
    solo_types: frozenset[str]
    prices: Mapping[str, int] = field(default_factory=dict)  # purchasable type -> cents


@dataclass(frozen=True)
class CartSelection:
    release_id: int
    selected: frozenset[str] = frozenset()
    state: CartState = CartState.EMPTY
    payment_intent_id: str | None = None
    session_id: str | None = None        # login session that owns the cart


def _with_selection(cart: CartSelection, selected: AbstractSet[str]) -> CartSelection:
    # Any edit abandons an in-flight checkout; the next intent cancels the old one
    return replace(
        cart,
        selected=frozenset(selected),
        state=CartState.HAS_SELECTION if selected else CartState.EMPTY,
        payment_intent_id=None,
    )


def toggle(cart: CartSelection, product_type: str, ctx: CartContext) -> CartSelection:
    """Flip ``product_type`` in the selection, enforcing solo exclusivity.

    - already purchased, or a solo upgrade is purchased: no-op
    - solo while a combinable upgrade is purchased: ExclusivityViolation
    - selecting a solo replaces the whole selection
    - selecting a combinable evicts any selected solo
    """
    reason = persisted_block_reason(product_type, ctx.persisted, ctx.solo_types)
    if reason in (BlockReason.PURCHASED, BlockReason.SOLO_PURCHASED):
        return cart
    if reason == BlockReason.SOLO_AFTER_COMBINABLE:
        raise ExclusivityViolation(
            f"{product_type} cannot be added to a release that already has "
            f"{', '.join(sorted(ctx.persisted))}"
        )
    if product_type not in ctx.prices:
        raise UnknownProductTypeError(product_type)

    if product_type in cart.selected:
        return _with_selection(cart, cart.selected - {product_type})
    if product_type in ctx.solo_types:
        return _with_selection(cart, {product_type})
    return _with_selection(cart, (cart.selected - ctx.solo_types) | {product_type})


def remove(cart: CartSelection, product_type: str) -> CartSelection:
    if product_type not in cart.selected:
        return cart
    return _with_selection(cart, cart.selected - {product_type})


def clear(cart: CartSelection) -> CartSelection:
    return CartSelection(release_id=cart.release_id, session_id=cart.session_id)


def total(cart: CartSelection, prices: Mapping[str, int]) -> int:
    """Sum of catalog prices in cents; types no longer sold count as 0."""
    return sum(prices.get(product_type, 0) for product_type in cart.selected)


def prune(cart: CartSelection, ctx: CartContext) -> CartSelection:
    """Drop selections made stale by purchases or catalog changes elsewhere."""
    if cart.state == CartState.PURCHASED:
        return cart
    if ctx.persisted & ctx.solo_types:
        keep: frozenset[str] = frozenset()
    else:
        keep = frozenset(
            t for t in cart.selected
            if t in ctx.prices and t not in ctx.persisted
            and not (t in ctx.solo_types and ctx.persisted)
        )
    if keep == cart.selected:
        return cart
    return _with_selection(cart, keep)


def begin_checkout(cart: CartSelection) -> CartSelection:
    if not cart.selected:
        raise EmptySelectionError()
    return replace(cart, state=CartState.CHECKING_OUT, payment_intent_id=None)


def await_payment(cart: CartSelection, payment_intent_id: str) -> CartSelection:
    return replace(cart, state=CartState.AWAITING_PAYMENT, payment_intent_id=payment_intent_id)


def return_to_selection(cart: CartSelection) -> CartSelection:
    """Failed checkout or canceled payment: keep the selection for a retry."""
    return replace(
        cart,
        state=CartState.HAS_SELECTION if cart.selected else CartState.EMPTY,
        payment_intent_id=None,
    )


def mark_purchased(cart: CartSelection) -> CartSelection:
    return CartSelection(
        release_id=cart.release_id, state=CartState.PURCHASED, session_id=cart.session_id
    )