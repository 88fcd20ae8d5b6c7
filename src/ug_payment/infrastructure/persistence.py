"""PaymentRepository — upgrade_payment_intents + upgrade_purchase_records.

Status changes are conditional UPDATE ... RETURNING; 0 rows means another
request already moved the intent on. Purchase records are unique per
(release_id, product_type), so a release can never be granted the same
upgrade twice even if two confirmations race past the application checks.

Transaction ownership: the CALLER commits.
"""

import json
import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.ug_common.errors import InternalError
from src.ug_payment.domain.models import NewPurchaseRecord, PaymentIntent, PurchaseRecord

logger = logging.getLogger(__name__)

_INTENT_COLUMNS = """
    id, release_id, user_id, company_id, product_types, line_items,
    amount_cents, currency, status, receipt_email, receipt_name, created_at, updated_at
"""

_INSERT_INTENT_SQL = text(f"""
    INSERT INTO upgrade_payment_intents
        (id, release_id, user_id, company_id, product_types, line_items,
         amount_cents, currency, status, receipt_email, receipt_name)
    VALUES
        (:id, :release_id, :user_id, :company_id, :product_types, CAST(:line_items AS JSONB),
         :amount_cents, :currency, :status, :receipt_email, :receipt_name)
    RETURNING {_INTENT_COLUMNS}
""")

_GET_INTENT_SQL = text(f"""
    SELECT {_INTENT_COLUMNS} FROM upgrade_payment_intents WHERE id = :id
""")

_GET_INTENT_FOR_UPDATE_SQL = text(f"""
    SELECT {_INTENT_COLUMNS} FROM upgrade_payment_intents WHERE id = :id FOR UPDATE
""")

_LIST_PENDING_FOR_RELEASE_SQL = text(f"""
    SELECT {_INTENT_COLUMNS}
    FROM upgrade_payment_intents
    WHERE release_id = :release_id AND status = 'pending'
    ORDER BY created_at
""")

_TRANSITION_INTENT_SQL = text("""
    UPDATE upgrade_payment_intents
    SET status = :to_status
    WHERE id = :id AND status = :from_status
    RETURNING id
""")

_RECORD_COLUMNS = """
    id, release_id, product_type, funding_method, amount_cents,
    credits_consumed, payment_intent_id, user_id, created_at
"""

_LIST_RECORDS_FOR_INTENT_SQL = text(f"""
    SELECT {_RECORD_COLUMNS}
    FROM upgrade_purchase_records
    WHERE payment_intent_id = :intent_id
    ORDER BY product_type
""")

_INSERT_RECORD_SQL = text(f"""
    INSERT INTO upgrade_purchase_records
        (release_id, product_type, funding_method, amount_cents,
         credits_consumed, payment_intent_id, user_id)
    VALUES
        (:release_id, :product_type, :funding_method, :amount_cents,
         :credits_consumed, :payment_intent_id, :user_id)
    ON CONFLICT (release_id, product_type) DO NOTHING
    RETURNING {_RECORD_COLUMNS}
""")


def _row_to_intent(row: object) -> PaymentIntent:
    line_items = row.line_items  # type: ignore[attr-defined]
    if isinstance(line_items, str):
        line_items = json.loads(line_items)
    return PaymentIntent(
        id=row.id,  # type: ignore[attr-defined]
        release_id=row.release_id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        company_id=row.company_id,  # type: ignore[attr-defined]
        product_types=list(row.product_types),  # type: ignore[attr-defined]
        line_items={k: int(v) for k, v in line_items.items()},
        amount_cents=row.amount_cents,  # type: ignore[attr-defined]
        currency=row.currency,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        receipt_email=row.receipt_email,  # type: ignore[attr-defined]
        receipt_name=row.receipt_name,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_record(row: object) -> PurchaseRecord:
    return PurchaseRecord(
        id=row.id,  # type: ignore[attr-defined]
        release_id=row.release_id,  # type: ignore[attr-defined]
        product_type=row.product_type,  # type: ignore[attr-defined]
        funding_method=row.funding_method,  # type: ignore[attr-defined]
        amount_cents=row.amount_cents,  # type: ignore[attr-defined]
        credits_consumed=row.credits_consumed,  # type: ignore[attr-defined]
        payment_intent_id=row.payment_intent_id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class PaymentRepository:
    async def insert_intent(self, db: AsyncSession, intent: PaymentIntent) -> PaymentIntent:
        result = await db.execute(
            _INSERT_INTENT_SQL,
            {
                "id": intent.id,
                "release_id": intent.release_id,
                "user_id": intent.user_id,
                "company_id": intent.company_id,
                "product_types": intent.product_types,
                "line_items": json.dumps(intent.line_items),
                "amount_cents": intent.amount_cents,
                "currency": intent.currency,
                "status": intent.status,
                "receipt_email": intent.receipt_email,
                "receipt_name": intent.receipt_name,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Payment intent insert returned no rows")
        return _row_to_intent(row)

    async def get_intent(
        self, db: AsyncSession, intent_id: str, for_update: bool = False
    ) -> PaymentIntent | None:
        sql = _GET_INTENT_FOR_UPDATE_SQL if for_update else _GET_INTENT_SQL
        result = await db.execute(sql, {"id": intent_id})
        row = result.fetchone()
        return _row_to_intent(row) if row else None

    async def list_pending_intents_for_release(
        self, db: AsyncSession, release_id: int
    ) -> list[PaymentIntent]:
        result = await db.execute(_LIST_PENDING_FOR_RELEASE_SQL, {"release_id": release_id})
        return [_row_to_intent(row) for row in result.fetchall()]

    async def transition_intent(
        self, db: AsyncSession, intent_id: str, from_status: str, to_status: str
    ) -> bool:
        result = await db.execute(
            _TRANSITION_INTENT_SQL,
            {"id": intent_id, "from_status": from_status, "to_status": to_status},
        )
        return result.fetchone() is not None

    async def list_records_for_intent(
        self, db: AsyncSession, intent_id: str
    ) -> list[PurchaseRecord]:
        result = await db.execute(_LIST_RECORDS_FOR_INTENT_SQL, {"intent_id": intent_id})
        return [_row_to_record(row) for row in result.fetchall()]

    async def insert_records(
        self, db: AsyncSession, records: list[NewPurchaseRecord]
    ) -> list[PurchaseRecord]:
        inserted: list[PurchaseRecord] = []
        for record in records:
            result = await db.execute(
                _INSERT_RECORD_SQL,
                {
                    "release_id": record.release_id,
                    "product_type": record.product_type,
                    "funding_method": record.funding_method.value,
                    "amount_cents": record.amount_cents,
                    "credits_consumed": record.credits_consumed,
                    "payment_intent_id": record.payment_intent_id,
                    "user_id": record.user_id,
                },
            )
            row = result.fetchone()
            if row is None:
                logger.error(
                    "Purchase record already exists: release=%s type=%s",
                    record.release_id,
                    record.product_type,
                )
                continue
            inserted.append(_row_to_record(row))
        return inserted
