"""CreditPurchaseService — upgrades paid for entirely from credit balances.

Opt-in only (``use_credit`` action or checkout with use_credits): a purchase
is either fully credit-funded or fully paid through the gateway, never split.
Credit debits, the distribution change and the purchase records share one
transaction, so an InsufficientCreditsError or a reconciliation conflict
leaves no trace.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.ug_cart.domain.store import CartStoreProtocol
from src.ug_cart.infrastructure.redis_store import RedisCartStore
from src.ug_catalog.application.service import CatalogService
from src.ug_common.enums import FundingMethod
from src.ug_common.errors import ReconciliationConflict
from src.ug_credit.application.service import CreditService
from src.ug_distribution.application.reconciler import DistributionReconciler
from src.ug_distribution.domain.models import Release
from src.ug_gateway.auth.dependencies import CurrentUser
from src.ug_payment.application.cart_sync import finish_cart
from src.ug_payment.application.eligibility import validate_purchase
from src.ug_payment.domain.models import NewPurchaseRecord, PurchaseOutcome
from src.ug_payment.domain.repository import PaymentRepositoryProtocol
from src.ug_payment.infrastructure.persistence import PaymentRepository

logger = logging.getLogger(__name__)

CREDITS_PER_UPGRADE = 1


class CreditPurchaseService:
    def __init__(
        self,
        repo: PaymentRepositoryProtocol | None = None,
        catalog: CatalogService | None = None,
        credits: CreditService | None = None,
        reconciler: DistributionReconciler | None = None,
        cart_store: CartStoreProtocol | None = None,
    ) -> None:
        self._repo: PaymentRepositoryProtocol = repo or PaymentRepository()
        self._catalog = catalog or CatalogService()
        self._credits = credits or CreditService()
        self._reconciler = reconciler or DistributionReconciler()
        self._carts: CartStoreProtocol = cart_store or RedisCartStore()

    async def purchase_with_credits(
        self,
        db: AsyncSession,
        release: Release,
        product_types: list[str],
        user: CurrentUser,
    ) -> PurchaseOutcome:
        purchase = await validate_purchase(
            db, self._catalog, release, product_types, user.partner_id
        )
        types = purchase.product_types

        try:
            for product_type in types:
                await self._credits.consume_credits(
                    db,
                    product_type=product_type,
                    amount=CREDITS_PER_UPGRADE,
                    release_id=release.id,
                    user_id=user.user_id,
                    company_id=release.company_id,
                    release_title=release.title,
                    release_uuid=release.uuid,
                )
            distribution = await self._reconciler.apply_purchase(db, release.id, types)
            records = await self._repo.insert_records(
                db,
                [
                    NewPurchaseRecord(
                        release_id=release.id,
                        product_type=product_type,
                        funding_method=FundingMethod.CREDIT,
                        user_id=user.user_id,
                        credits_consumed=CREDITS_PER_UPGRADE,
                    )
                    for product_type in types
                ],
            )
            if len(records) != len(types):
                # Another purchase recorded one of these first; do not spend credits twice
                raise ReconciliationConflict(release.id, "upgrade was already recorded")
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Credit purchase applied: release=%s types=%s distribution=%s",
            release.id,
            types,
            distribution.serialize(),
        )
        await finish_cart(self._carts, user.user_id, release.id)
        return PurchaseOutcome(
            release_id=release.id,
            product_types=types,
            distribution=distribution.serialize(),
            funding_method=FundingMethod.CREDIT,
            records=records,
        )
