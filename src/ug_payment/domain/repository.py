"""Repository Protocol for payment intents and purchase records."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.ug_payment.domain.models import NewPurchaseRecord, PaymentIntent, PurchaseRecord


class PaymentRepositoryProtocol(Protocol):
    async def insert_intent(self, db: AsyncSession, intent: PaymentIntent) -> PaymentIntent: ...

    async def get_intent(
        self, db: AsyncSession, intent_id: str, for_update: bool = False
    ) -> PaymentIntent | None: ...

    async def list_pending_intents_for_release(
        self, db: AsyncSession, release_id: int
    ) -> list[PaymentIntent]: ...

    async def transition_intent(
        self, db: AsyncSession, intent_id: str, from_status: str, to_status: str
    ) -> bool:
        """Conditional status change; False when the intent is no longer in from_status."""
        ...

    async def list_records_for_intent(
        self, db: AsyncSession, intent_id: str
    ) -> list[PurchaseRecord]: ...

    async def insert_records(
        self, db: AsyncSession, records: list[NewPurchaseRecord]
    ) -> list[PurchaseRecord]:
        """Insert, skipping (release, type) pairs that already have a record."""
        ...
