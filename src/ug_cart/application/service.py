"""CartService — session cart operations for one (user, release).

Loads the stored selection, prunes it against the release's current
distribution and catalog, applies one pure state-machine step, and saves the
result. Checkout hands the selection to the payment side, which re-validates
everything from the database.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from src.ug_cart.domain import state_machine as sm
from src.ug_cart.domain.state_machine import CartContext, CartSelection
from src.ug_cart.domain.store import CartStoreProtocol
from src.ug_cart.infrastructure.redis_store import RedisCartStore
from src.ug_catalog.application.service import CatalogService
from src.ug_catalog.domain.models import Product
from src.ug_distribution.domain.exclusivity import BlockReason, persisted_block_reason
from src.ug_distribution.domain.models import Release
from src.ug_gateway.auth.dependencies import CurrentUser
from src.ug_payment.application.credit_purchase import CreditPurchaseService
from src.ug_payment.application.orchestrator import CreatedIntent, PaymentOrchestrator
from src.ug_payment.domain.models import PurchaseOutcome

logger = logging.getLogger(__name__)


@dataclass
class CartView:
    cart: CartSelection
    items: list[Product]
    total_cents: int
    blocked: dict[str, BlockReason] = field(default_factory=dict)


@dataclass
class CheckoutResult:
    cart: CartSelection
    created: CreatedIntent | None = None
    outcome: PurchaseOutcome | None = None

    @property
    def applied_immediately(self) -> bool:
        return self.outcome is not None


class CartService:
    def __init__(
        self,
        store: CartStoreProtocol | None = None,
        catalog: CatalogService | None = None,
    ) -> None:
        self._store: CartStoreProtocol = store or RedisCartStore()
        self._catalog = catalog or CatalogService()

    async def _context(
        self, db: AsyncSession, release: Release, partner_id: int | None
    ) -> tuple[CartContext, dict[str, Product]]:
        products = await self._catalog.load_products(db, partner_id)
        ctx = CartContext(
            persisted=release.distribution.tokens,
            solo_types=await self._catalog.solo_types(db),
            prices={t: p.price for t, p in products.items()},
        )
        return ctx, products

    async def _load(self, user: CurrentUser, release: Release, ctx: CartContext) -> CartSelection:
        cart = await self._store.load(user.user_id, release.id)
        if cart is None:
            return CartSelection(release_id=release.id, session_id=user.session_id)
        if cart.session_id != user.session_id:
            # Carts are never carried across logins
            logger.info(
                "Discarding cart from an earlier session: user=%s release=%s",
                user.user_id,
                release.id,
            )
            return CartSelection(release_id=release.id, session_id=user.session_id)
        return sm.prune(cart, ctx)

    def _view(
        self, cart: CartSelection, ctx: CartContext, products: dict[str, Product]
    ) -> CartView:
        items = sorted(
            (products[t] for t in cart.selected if t in products),
            key=lambda p: (p.price, p.id),
        )
        blocked: dict[str, BlockReason] = {}
        for product_type in products:
            reason = persisted_block_reason(product_type, ctx.persisted, ctx.solo_types)
            if reason is not None:
                blocked[product_type] = reason
        return CartView(
            cart=cart,
            items=items,
            total_cents=sm.total(cart, ctx.prices),
            blocked=blocked,
        )

    async def get_cart(self, db: AsyncSession, release: Release, user: CurrentUser) -> CartView:
        ctx, products = await self._context(db, release, user.partner_id)
        cart = await self._load(user, release, ctx)
        return self._view(cart, ctx, products)

    async def toggle(
        self, db: AsyncSession, release: Release, user: CurrentUser, product_type: str
    ) -> CartView:
        ctx, products = await self._context(db, release, user.partner_id)
        cart = sm.toggle(await self._load(user, release, ctx), product_type, ctx)
        await self._store.save(user.user_id, cart)
        return self._view(cart, ctx, products)

    async def remove(
        self, db: AsyncSession, release: Release, user: CurrentUser, product_type: str
    ) -> CartView:
        ctx, products = await self._context(db, release, user.partner_id)
        cart = sm.remove(await self._load(user, release, ctx), product_type)
        await self._store.save(user.user_id, cart)
        return self._view(cart, ctx, products)

    async def clear(self, db: AsyncSession, release: Release, user: CurrentUser) -> CartView:
        ctx, products = await self._context(db, release, user.partner_id)
        await self._store.delete(user.user_id, release.id)
        return self._view(
            CartSelection(release_id=release.id, session_id=user.session_id), ctx, products
        )

    async def checkout(
        self,
        db: AsyncSession,
        release: Release,
        user: CurrentUser,
        orchestrator: PaymentOrchestrator,
        credit_purchase: CreditPurchaseService,
        use_credits: bool = False,
    ) -> CheckoutResult:
        """Start paying for the selection.

        use_credits=True applies the whole selection from credits right away;
        otherwise a gateway intent is created and the cart waits for payment.
        A failure leaves the selection intact for a retry.
        """
        ctx, _ = await self._context(db, release, user.partner_id)
        cart = sm.begin_checkout(await self._load(user, release, ctx))
        await self._store.save(user.user_id, cart)
        selected = sorted(cart.selected)

        try:
            if use_credits:
                outcome = await credit_purchase.purchase_with_credits(db, release, selected, user)
                return CheckoutResult(cart=sm.mark_purchased(cart), outcome=outcome)
            created = await orchestrator.create_intent(db, release, selected, user)
        except Exception:
            await self._store.save(user.user_id, sm.return_to_selection(cart))
            raise

        cart = sm.await_payment(cart, created.payment_intent_id)
        await self._store.save(user.user_id, cart)
        logger.info(
            "Checkout awaiting payment: user=%s release=%s intent=%s",
            user.user_id,
            release.id,
            created.payment_intent_id,
        )
        return CheckoutResult(cart=cart, created=created)

    async def cancel_payment(
        self,
        db: AsyncSession,
        release: Release,
        user: CurrentUser,
        orchestrator: PaymentOrchestrator,
        payment_intent_id: str | None = None,
    ) -> CartView:
        """Cancel the pending payment; the selection stays in the cart."""
        ctx, products = await self._context(db, release, user.partner_id)
        cart = await self._load(user, release, ctx)
        intent_id = payment_intent_id or cart.payment_intent_id
        if intent_id is not None:
            await orchestrator.cancel(db, intent_id, user)
        cart = sm.return_to_selection(cart)
        await self._store.save(user.user_id, cart)
        return self._view(cart, ctx, products)
