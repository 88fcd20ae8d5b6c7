"""Cart store Protocol — where selections live between requests."""

from typing import Protocol

from src.ug_cart.domain.state_machine import CartSelection


class CartStoreProtocol(Protocol):
    async def load(self, user_id: int, release_id: int) -> CartSelection | None: ...

    async def save(self, user_id: int, cart: CartSelection) -> None: ...

    async def delete(self, user_id: int, release_id: int) -> None: ...
