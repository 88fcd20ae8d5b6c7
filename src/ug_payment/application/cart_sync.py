"""Keeps the session cart in step with purchase outcomes.

Runs after the purchase transaction has committed, so a Redis failure here
is logged and does not fail the request: the cart is pruned against the
release's distribution on its next load anyway.
"""

import logging

from redis.exceptions import RedisError

from src.ug_cart.domain.state_machine import mark_purchased, return_to_selection
from src.ug_cart.domain.store import CartStoreProtocol

logger = logging.getLogger(__name__)


async def finish_cart(store: CartStoreProtocol, user_id: int, release_id: int) -> None:
    try:
        cart = await store.load(user_id, release_id)
        if cart is not None:
            await store.save(user_id, mark_purchased(cart))
    except RedisError as exc:
        logger.warning("Could not clear cart: user=%s release=%s error=%s", user_id, release_id, exc)


async def reopen_cart(
    store: CartStoreProtocol, user_id: int, release_id: int, payment_intent_id: str
) -> None:
    """Canceled payment: the cart goes back to its selection."""
    try:
        cart = await store.load(user_id, release_id)
        if cart is not None and cart.payment_intent_id == payment_intent_id:
            await store.save(user_id, return_to_selection(cart))
    except RedisError as exc:
        logger.warning("Could not reopen cart: user=%s release=%s error=%s", user_id, release_id, exc)
