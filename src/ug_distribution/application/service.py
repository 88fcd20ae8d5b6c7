"""ReleaseService — ownership lookup and the explicit 'skip' action."""

from sqlalchemy.ext.asyncio import AsyncSession

from src.ug_common.errors import ReleaseNotFoundError
from src.ug_distribution.application.reconciler import DistributionReconciler
from src.ug_distribution.domain.models import Distribution, Release
from src.ug_distribution.domain.repository import ReleaseRepositoryProtocol
from src.ug_distribution.infrastructure.release_store import ReleaseRepository


class ReleaseService:
    def __init__(
        self,
        repo: ReleaseRepositoryProtocol | None = None,
        reconciler: DistributionReconciler | None = None,
    ) -> None:
        self._repo: ReleaseRepositoryProtocol = repo or ReleaseRepository()
        self._reconciler = reconciler or DistributionReconciler(release_repo=self._repo)

    async def get_owned_release(self, db: AsyncSession, release_uuid: str, user_id: int) -> Release:
        release = await self._repo.get_release_for_user(db, release_uuid, user_id)
        if release is None:
            raise ReleaseNotFoundError(release_uuid)
        return release

    async def skip(self, db: AsyncSession, release: Release) -> Distribution:
        try:
            distribution = await self._reconciler.skip(db, release.id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return distribution
