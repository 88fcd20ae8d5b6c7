"""RedisCartStore — carts as JSON strings with a sliding TTL.

Key: cart:{user_id}:{release_id}. A missing or unreadable key is an empty cart.
The stored session_id lets CartService drop a cart left by another login.
"""

import json
import logging

import redis.asyncio as aioredis

from config.settings import settings
from src.ug_cart.domain.state_machine import CartSelection, CartState
from src.ug_common.redis_client import get_redis

logger = logging.getLogger(__name__)


def cart_key(user_id: int, release_id: int) -> str:
    return f"cart:{user_id}:{release_id}"


def encode_cart(cart: CartSelection) -> str:
    return json.dumps(
        {
            "release_id": cart.release_id,
            "selected": sorted(cart.selected),
            "state": cart.state.value,
            "payment_intent_id": cart.payment_intent_id,
            "session_id": cart.session_id,
        }
    )


def decode_cart(raw: str) -> CartSelection:
    payload = json.loads(raw)
    return CartSelection(
        release_id=int(payload["release_id"]),
        selected=frozenset(payload.get("selected", [])),
        state=CartState(payload.get("state", CartState.EMPTY.value)),
        payment_intent_id=payload.get("payment_intent_id"),
        session_id=payload.get("session_id"),
    )


class RedisCartStore:
    def __init__(self, redis: aioredis.Redis | None = None, ttl_seconds: int | None = None) -> None:
        self._redis = redis
        self._ttl = ttl_seconds or settings.CART_TTL_SECONDS

    async def _client(self) -> aioredis.Redis:
        if self._redis is None:
            self._redis = await get_redis()
        return self._redis

    async def load(self, user_id: int, release_id: int) -> CartSelection | None:
        client = await self._client()
        raw = await client.get(cart_key(user_id, release_id))
        if raw is None:
            return None
        try:
            return decode_cart(raw)
        except (ValueError, KeyError, TypeError):
            logger.warning("Discarding unreadable cart: user=%s release=%s", user_id, release_id)
            return None

    async def save(self, user_id: int, cart: CartSelection) -> None:
        client = await self._client()
        await client.set(cart_key(user_id, cart.release_id), encode_cart(cart), ex=self._ttl)

    async def delete(self, user_id: int, release_id: int) -> None:
        client = await self._client()
        await client.delete(cart_key(user_id, release_id))
