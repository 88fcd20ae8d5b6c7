"""Repository Protocol — dependency inversion for testability.

Unit tests inject a fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.ug_distribution.domain.models import Release


class ReleaseRepositoryProtocol(Protocol):
    async def get_release_for_user(
        self, db: AsyncSession, release_uuid: str, user_id: int
    ) -> Release | None: ...

    async def get_release_by_id(self, db: AsyncSession, release_id: int) -> Release | None: ...

    async def lock_distribution(self, db: AsyncSession, release_id: int) -> str | None:
        """SELECT ... FOR UPDATE; raises ReleaseNotFoundError when the row is gone."""
        ...

    async def compare_and_set_distribution(
        self, db: AsyncSession, release_id: int, expected: str | None, new_value: str
    ) -> bool: ...

    async def set_standard_if_unset(self, db: AsyncSession, release_id: int) -> bool: ...
