"""Helpers shared by integration tests: tokens and direct table writes."""

from datetime import datetime, timedelta, timezone

from jose import jwt
from sqlalchemy import text

from config.settings import settings
from src.ug_common.database import async_session_factory

TEST_USER_ID = 900001
TEST_COMPANY_ID = 900001


def access_token(user_id: int = TEST_USER_ID) -> str:
    return jwt.encode(
        {
            "sub": str(user_id),
            "type": "access",
            "email": "integration@example.com",
            "exp": datetime.now(timezone.utc) + timedelta(minutes=30),
        },
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )


async def create_release(release_uuid: str) -> None:
    async with async_session_factory() as db:
        await db.execute(
            text(
                "INSERT INTO releases (uuid, user_id, company_id, title) "
                "VALUES (:uuid, :user_id, :company_id, 'Integration Release')"
            ),
            {"uuid": release_uuid, "user_id": TEST_USER_ID, "company_id": TEST_COMPANY_ID},
        )
        await db.commit()


async def grant_credits(product_type: str, credits: int, company_id: int | None = TEST_COMPANY_ID) -> None:
    async with async_session_factory() as db:
        await db.execute(
            text(
                "INSERT INTO brand_credits (user_id, company_id, product_type, credits, notes) "
                "VALUES (:user_id, :company_id, :product_type, :credits, 'integration grant')"
            ),
            {
                "user_id": TEST_USER_ID,
                "company_id": company_id,
                "product_type": product_type,
                "credits": credits,
            },
        )
        await db.commit()
