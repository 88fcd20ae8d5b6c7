"""Unit tests for the cart / selection state machine (pure functions)."""

import itertools

import pytest

from src.ug_cart.domain import state_machine as sm
from src.ug_cart.domain.state_machine import CartContext, CartSelection, CartState
from src.ug_common.errors import (
    EmptySelectionError,
    ExclusivityViolation,
    UnknownProductTypeError,
)

PRICES = {"exclusive": 50000, "yahoo": 15000, "enhanced": 7500}
SOLO = frozenset({"exclusive"})


def _ctx(persisted: set[str] | None = None) -> CartContext:
    return CartContext(persisted=frozenset(persisted or ()), solo_types=SOLO, prices=PRICES)


def _cart(*selected: str) -> CartSelection:
    cart = CartSelection(release_id=1)
    if selected:
        cart = CartSelection(
            release_id=1, selected=frozenset(selected), state=CartState.HAS_SELECTION
        )
    return cart


class TestToggle:
    def test_add_to_empty(self) -> None:
        cart = sm.toggle(_cart(), "yahoo", _ctx())
        assert cart.selected == {"yahoo"}
        assert cart.state == CartState.HAS_SELECTION

    def test_toggle_twice_removes(self) -> None:
        cart = sm.toggle(sm.toggle(_cart(), "yahoo", _ctx()), "yahoo", _ctx())
        assert cart.selected == frozenset()
        assert cart.state == CartState.EMPTY

    def test_scenario_combinables_then_solo(self) -> None:
        ctx = _ctx()
        cart = sm.toggle(_cart(), "yahoo", ctx)
        cart = sm.toggle(cart, "enhanced", ctx)
        assert cart.selected == {"yahoo", "enhanced"}
        assert sm.total(cart, PRICES) == 22500

        cart = sm.toggle(cart, "exclusive", ctx)
        assert cart.selected == {"exclusive"}
        assert sm.total(cart, PRICES) == 50000

    def test_combinable_evicts_selected_solo(self) -> None:
        cart = sm.toggle(_cart("exclusive"), "enhanced", _ctx())
        assert cart.selected == {"enhanced"}

    def test_purchased_type_is_noop(self) -> None:
        cart = _cart("enhanced")
        assert sm.toggle(cart, "yahoo", _ctx({"yahoo"})) is cart

    def test_everything_noop_when_solo_purchased(self) -> None:
        ctx = _ctx({"exclusive"})
        cart = _cart()
        for product_type in PRICES:
            cart = sm.toggle(cart, product_type, ctx)
        assert cart.selected == frozenset()

    def test_solo_rejected_when_combinable_purchased(self) -> None:
        with pytest.raises(ExclusivityViolation):
            sm.toggle(_cart(), "exclusive", _ctx({"yahoo"}))

    def test_unknown_type_rejected(self) -> None:
        with pytest.raises(UnknownProductTypeError):
            sm.toggle(_cart(), "billboard", _ctx())

    def test_returns_new_value(self) -> None:
        cart = _cart()
        toggled = sm.toggle(cart, "yahoo", _ctx())
        assert cart.selected == frozenset()
        assert toggled is not cart

    def test_toggle_during_payment_abandons_intent(self) -> None:
        cart = sm.await_payment(sm.begin_checkout(_cart("yahoo")), "pi_1")
        cart = sm.toggle(cart, "enhanced", _ctx())
        assert cart.state == CartState.HAS_SELECTION
        assert cart.payment_intent_id is None


class TestSoloProperty:
    @pytest.mark.parametrize(
        "sequence",
        [seq for n in range(1, 5) for seq in itertools.product(sorted(PRICES), repeat=n)],
    )
    def test_solo_never_shares_the_cart(self, sequence: tuple[str, ...]) -> None:
        cart = _cart()
        for product_type in sequence:
            cart = sm.toggle(cart, product_type, _ctx())
            if "exclusive" in cart.selected:
                assert cart.selected == {"exclusive"}


class TestRemoveClearTotal:
    def test_remove(self) -> None:
        cart = sm.remove(_cart("yahoo", "enhanced"), "yahoo")
        assert cart.selected == {"enhanced"}

    def test_remove_missing_is_noop(self) -> None:
        cart = _cart("yahoo")
        assert sm.remove(cart, "enhanced") is cart

    def test_remove_last_empties(self) -> None:
        assert sm.remove(_cart("yahoo"), "yahoo").state == CartState.EMPTY

    def test_clear(self) -> None:
        cart = sm.clear(_cart("yahoo", "enhanced"))
        assert cart == CartSelection(release_id=1)

    def test_clear_and_purchase_keep_session(self) -> None:
        cart = CartSelection(release_id=1, selected=frozenset({"yahoo"}), session_id="s1")
        assert sm.clear(cart).session_id == "s1"
        assert sm.mark_purchased(cart).session_id == "s1"

    def test_total_ignores_unpriced_types(self) -> None:
        assert sm.total(_cart("yahoo", "retired"), PRICES) == 15000


class TestCheckoutTransitions:
    def test_begin_checkout_requires_selection(self) -> None:
        with pytest.raises(EmptySelectionError):
            sm.begin_checkout(_cart())

    def test_happy_path(self) -> None:
        cart = sm.begin_checkout(_cart("yahoo"))
        assert cart.state == CartState.CHECKING_OUT
        cart = sm.await_payment(cart, "pi_1")
        assert cart.state == CartState.AWAITING_PAYMENT
        assert cart.payment_intent_id == "pi_1"
        cart = sm.mark_purchased(cart)
        assert cart.state == CartState.PURCHASED
        assert cart.selected == frozenset()

    def test_failed_checkout_keeps_selection(self) -> None:
        cart = sm.return_to_selection(sm.begin_checkout(_cart("yahoo", "enhanced")))
        assert cart.state == CartState.HAS_SELECTION
        assert cart.selected == {"yahoo", "enhanced"}

    def test_cancel_payment_keeps_selection(self) -> None:
        cart = sm.await_payment(sm.begin_checkout(_cart("yahoo")), "pi_9")
        cart = sm.return_to_selection(cart)
        assert cart.state == CartState.HAS_SELECTION
        assert cart.payment_intent_id is None
        assert cart.selected == {"yahoo"}


class TestPrune:
    def test_drops_types_purchased_elsewhere(self) -> None:
        cart = sm.prune(_cart("yahoo", "enhanced"), _ctx({"yahoo"}))
        assert cart.selected == {"enhanced"}

    def test_solo_purchased_empties_cart(self) -> None:
        cart = sm.prune(_cart("yahoo"), _ctx({"exclusive"}))
        assert cart.state == CartState.EMPTY

    def test_drops_solo_once_combinable_purchased(self) -> None:
        cart = sm.prune(_cart("exclusive"), _ctx({"yahoo"}))
        assert cart.selected == frozenset()

    def test_drops_types_no_longer_sold(self) -> None:
        ctx = CartContext(persisted=frozenset(), solo_types=SOLO, prices={"yahoo": 15000})
        assert sm.prune(_cart("yahoo", "enhanced"), ctx).selected == {"yahoo"}

    def test_unchanged_cart_is_same_object(self) -> None:
        cart = _cart("yahoo")
        assert sm.prune(cart, _ctx()) is cart
