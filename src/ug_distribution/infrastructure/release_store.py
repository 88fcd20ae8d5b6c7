"""ReleaseRepository — concrete implementation of ReleaseRepositoryProtocol.

The releases table belongs to the authoring application; this service reads
it and writes exactly one column, ``distribution``. Writes are a row lock
followed by a compare-and-swap on the previous value, so two reconciliations
of the same release can never overwrite each other.

Transaction ownership: the CALLER commits.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.ug_common.errors import ReleaseNotFoundError
from src.ug_distribution.domain.models import Release

_GET_FOR_USER_SQL = text("""
    SELECT id, uuid, user_id, company_id, title, distribution
    FROM releases
    WHERE uuid = :uuid AND user_id = :user_id AND is_deleted = FALSE
""")

_GET_BY_ID_SQL = text("""
    SELECT id, uuid, user_id, company_id, title, distribution
    FROM releases
    WHERE id = :id
""")

_LOCK_DISTRIBUTION_SQL = text("""
    SELECT distribution FROM releases WHERE id = :id FOR UPDATE
""")

# IS NOT DISTINCT FROM so an unset (NULL) distribution compares equal to NULL
_CAS_DISTRIBUTION_SQL = text("""
    UPDATE releases
    SET distribution = :new_value
    WHERE id = :id
      AND distribution IS NOT DISTINCT FROM CAST(:expected AS VARCHAR)
    RETURNING id
""")

_SET_STANDARD_IF_UNSET_SQL = text("""
    UPDATE releases
    SET distribution = 'standard'
    WHERE id = :id
      AND (distribution IS NULL OR distribution = '')
    RETURNING id
""")


def _row_to_release(row: object) -> Release:
    return Release(
        id=row.id,  # type: ignore[attr-defined]
        uuid=row.uuid,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        company_id=row.company_id,  # type: ignore[attr-defined]
        title=row.title,  # type: ignore[attr-defined]
        distribution_raw=row.distribution,  # type: ignore[attr-defined]
    )


class ReleaseRepository:
    async def get_release_for_user(
        self, db: AsyncSession, release_uuid: str, user_id: int
    ) -> Release | None:
        result = await db.execute(_GET_FOR_USER_SQL, {"uuid": release_uuid, "user_id": user_id})
        row = result.fetchone()
        return _row_to_release(row) if row else None

    async def get_release_by_id(self, db: AsyncSession, release_id: int) -> Release | None:
        result = await db.execute(_GET_BY_ID_SQL, {"id": release_id})
        row = result.fetchone()
        return _row_to_release(row) if row else None

    async def lock_distribution(self, db: AsyncSession, release_id: int) -> str | None:
        result = await db.execute(_LOCK_DISTRIBUTION_SQL, {"id": release_id})
        row = result.fetchone()
        if row is None:
            raise ReleaseNotFoundError(str(release_id))
        return row.distribution  # type: ignore[no-any-return]

    async def compare_and_set_distribution(
        self, db: AsyncSession, release_id: int, expected: str | None, new_value: str
    ) -> bool:
        result = await db.execute(
            _CAS_DISTRIBUTION_SQL,
            {"id": release_id, "expected": expected, "new_value": new_value},
        )
        return result.fetchone() is not None

    async def set_standard_if_unset(self, db: AsyncSession, release_id: int) -> bool:
        result = await db.execute(_SET_STANDARD_IF_UNSET_SQL, {"id": release_id})
        return result.fetchone() is not None
