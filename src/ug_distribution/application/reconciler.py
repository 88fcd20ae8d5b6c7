"""DistributionReconciler — the only writer of ``releases.distribution``.

Runs inside the CALLER's transaction (the payment or credit purchase that
earned the upgrade), so the distribution change and the purchase records
commit or roll back together.

Write protocol:
  1. SELECT distribution ... FOR UPDATE
  2. merge purchased types into the parsed token set
  3. refuse the write if the merged set breaks solo exclusivity
  4. UPDATE ... WHERE distribution IS NOT DISTINCT FROM <value read in 1>
A CAS miss is retried once against a fresh read; a second miss is fatal.
"""

import logging
from collections.abc import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from src.ug_catalog.domain.repository import ProductRepositoryProtocol
from src.ug_catalog.infrastructure.persistence import ProductRepository
from src.ug_common.errors import ReconciliationConflict
from src.ug_distribution.domain.exclusivity import find_violation
from src.ug_distribution.domain.models import Distribution
from src.ug_distribution.domain.repository import ReleaseRepositoryProtocol
from src.ug_distribution.infrastructure.release_store import ReleaseRepository

logger = logging.getLogger(__name__)

_MAX_ATTEMPTS = 2


class DistributionReconciler:
    def __init__(
        self,
        release_repo: ReleaseRepositoryProtocol | None = None,
        product_repo: ProductRepositoryProtocol | None = None,
    ) -> None:
        self._releases: ReleaseRepositoryProtocol = release_repo or ReleaseRepository()
        self._products: ProductRepositoryProtocol = product_repo or ProductRepository()

    async def apply_purchase(
        self, db: AsyncSession, release_id: int, product_types: Iterable[str]
    ) -> Distribution:
        purchased = frozenset(product_types)
        solo_types = await self._products.list_solo_product_types(db)

        for attempt in range(1, _MAX_ATTEMPTS + 1):
            current_raw = await self._releases.lock_distribution(db, release_id)
            current = Distribution.parse(current_raw)
            merged = current.merge(purchased)

            if merged == current and current_raw:
                logger.info(
                    "Distribution already contains %s: release=%s",
                    sorted(purchased),
                    release_id,
                )
                return current

            violation = find_violation(merged.tokens, solo_types)
            if violation is not None:
                raise ReconciliationConflict(release_id, violation)

            new_value = merged.serialize()
            if await self._releases.compare_and_set_distribution(
                db, release_id, current_raw, new_value
            ):
                logger.info(
                    "Distribution updated: release=%s %r -> %r",
                    release_id,
                    current_raw,
                    new_value,
                )
                return merged

            logger.warning(
                "Distribution changed underneath reconciliation: release=%s attempt=%d",
                release_id,
                attempt,
            )

        raise ReconciliationConflict(release_id, "distribution kept changing during update")

    async def skip(self, db: AsyncSession, release_id: int) -> Distribution:
        """Choose the free 'standard' distribution if nothing was chosen yet."""
        if await self._releases.set_standard_if_unset(db, release_id):
            logger.info("Distribution set to standard: release=%s", release_id)
            return Distribution()
        current_raw = await self._releases.lock_distribution(db, release_id)
        return Distribution.parse(current_raw)
