"""In-memory fakes conforming to the repository/store/gateway Protocols.

The db argument is ignored. Fakes apply writes immediately; FakeSession
only counts commits and rollbacks (and runs hooks), so tests assert on
those counts where a real database would discard the writes.
"""

import asyncio
import itertools
from collections.abc import Iterable
from unittest.mock import MagicMock

from src.ug_cart.domain.state_machine import CartSelection
from src.ug_catalog.domain.models import Product
from src.ug_common.enums import CreditScope
from src.ug_common.errors import PaymentGatewayError, ReleaseNotFoundError
from src.ug_credit.domain.models import CreditLedgerEntry
from src.ug_distribution.domain.models import Release
from src.ug_payment.domain.gateway import GatewayEvent, GatewayIntent
from src.ug_payment.domain.models import NewPurchaseRecord, PaymentIntent, PurchaseRecord


class FakeSession:
    """Stands in for AsyncSession: records commit/rollback and runs hooks."""

    def __init__(self) -> None:
        self.commits = 0
        self.rollbacks = 0
        self._on_commit: list = []
        self._on_rollback: list = []

    def on_commit(self, fn) -> None:  # type: ignore[no-untyped-def]
        self._on_commit.append(fn)

    def on_rollback(self, fn) -> None:  # type: ignore[no-untyped-def]
        self._on_rollback.append(fn)

    async def commit(self) -> None:
        self.commits += 1
        for fn in self._on_commit:
            fn()

    async def rollback(self) -> None:
        self.rollbacks += 1
        for fn in self._on_rollback:
            fn()


def make_product(
    product_type: str,
    price: int,
    product_id: int | None = None,
    solo: bool = False,
    **kwargs: object,
) -> Product:
    return Product(
        id=product_id if product_id is not None else abs(hash(product_type)) % 1000,
        product_type=product_type,
        display_name=str(kwargs.pop("display_name", product_type.title())),
        price=price,
        is_solo_upgrade=solo,
        **kwargs,  # type: ignore[arg-type]
    )


def default_products() -> list[Product]:
    return [
        make_product("enhanced", 7500, 1, display_name="Enhanced Distribution"),
        make_product("yahoo", 15000, 2, display_name="Yahoo Finance"),
        make_product("exclusive", 50000, 3, solo=True, display_name="Exclusive Placement"),
    ]


def make_release(distribution: str | None = None, release_id: int = 10, **kwargs: object) -> Release:
    return Release(
        id=release_id,
        uuid=str(kwargs.get("uuid", "rel-uuid-10")),
        user_id=int(kwargs.get("user_id", 7)),  # type: ignore[arg-type]
        company_id=kwargs.get("company_id", 3),  # type: ignore[arg-type]
        title=str(kwargs.get("title", "Launch Day")),
        distribution_raw=distribution,
    )


class FakeProductRepository:
    def __init__(self, products: Iterable[Product] | None = None) -> None:
        self.products = list(products) if products is not None else default_products()

    async def list_upgrade_products(self, db: object, partner_id: int | None) -> list[Product]:
        return sorted(
            (
                p for p in self.products
                if p.is_active and (p.partner_id is None or p.partner_id == partner_id)
            ),
            key=lambda p: (p.price, p.id),
        )

    async def get_products_by_types(
        self, db: object, product_types: Iterable[str], partner_id: int | None
    ) -> list[Product]:
        wanted = set(product_types)
        return [
            p for p in self.products
            if p.product_type in wanted and (p.partner_id is None or p.partner_id == partner_id)
        ]

    async def list_solo_product_types(self, db: object) -> set[str]:
        return {p.product_type for p in self.products if p.is_solo_upgrade}


class FakeReleaseRepository:
    """Distribution column store; writes are applied immediately (row-level CAS)."""

    def __init__(self, *releases: Release) -> None:
        self.releases = {r.id: r for r in releases}
        self.cas_failures_remaining = 0
        self.cas_calls = 0

    async def get_release_for_user(
        self, db: object, release_uuid: str, user_id: int
    ) -> Release | None:
        for release in self.releases.values():
            if release.uuid == release_uuid and release.user_id == user_id:
                return release
        return None

    async def get_release_by_id(self, db: object, release_id: int) -> Release | None:
        return self.releases.get(release_id)

    async def lock_distribution(self, db: object, release_id: int) -> str | None:
        if release_id not in self.releases:
            raise ReleaseNotFoundError(str(release_id))
        return self.releases[release_id].distribution_raw

    async def compare_and_set_distribution(
        self, db: object, release_id: int, expected: str | None, new_value: str
    ) -> bool:
        self.cas_calls += 1
        if self.cas_failures_remaining > 0:
            self.cas_failures_remaining -= 1
            return False
        release = self.releases[release_id]
        if release.distribution_raw != expected:
            return False
        release.distribution_raw = new_value
        return True

    async def set_standard_if_unset(self, db: object, release_id: int) -> bool:
        release = self.releases[release_id]
        if release.distribution_raw:
            return False
        release.distribution_raw = "standard"
        return True


class FakeCreditRepository:
    """brand_credits in memory; the advisory lock is a real asyncio.Lock per key."""

    def __init__(self) -> None:
        self.rows: list[CreditLedgerEntry] = []
        self._ids = itertools.count(1)
        self._locks: dict[str, asyncio.Lock] = {}
        self.held: list[asyncio.Lock] = []

    def grant(self, user_id: int, company_id: int | None, product_type: str, credits: int) -> None:
        self.rows.append(
            CreditLedgerEntry(
                id=next(self._ids),
                user_id=user_id,
                company_id=company_id,
                product_type=product_type,
                credits=credits,
            )
        )

    def release_locks(self) -> None:
        while self.held:
            self.held.pop().release()

    async def sum_by_scope(
        self, db: object, user_id: int, company_id: int | None
    ) -> list[tuple[str, CreditScope, int]]:
        totals: dict[tuple[str, CreditScope], int] = {}
        for row in self.rows:
            if row.user_id != user_id:
                continue
            if row.company_id is None:
                scope = CreditScope.USER
            elif row.company_id == company_id:
                scope = CreditScope.BRAND
            else:
                continue
            key = (row.product_type, scope)
            totals[key] = totals.get(key, 0) + row.credits
        return [(t, s, v) for (t, s), v in sorted(totals.items())]

    async def lock_balance(self, db: object, user_id: int, product_type: str) -> None:
        lock = self._locks.setdefault(f"credits:{user_id}:{product_type}", asyncio.Lock())
        await lock.acquire()
        self.held.append(lock)

    async def scope_balances(
        self, db: object, user_id: int, company_id: int | None, product_type: str
    ) -> tuple[int, int]:
        brand = user = 0
        for row in self.rows:
            if row.user_id != user_id or row.product_type != product_type:
                continue
            if row.company_id is None:
                user += row.credits
            elif row.company_id == company_id:
                brand += row.credits
        # Yield so concurrent consumers interleave between read and write
        await asyncio.sleep(0)
        return brand, user

    async def insert_entry(
        self,
        db: object,
        user_id: int,
        company_id: int | None,
        product_type: str,
        credits: int,
        pr_id: int | None,
        notes: str | None,
    ) -> CreditLedgerEntry:
        entry = CreditLedgerEntry(
            id=next(self._ids),
            user_id=user_id,
            company_id=company_id,
            product_type=product_type,
            credits=credits,
            pr_id=pr_id,
            notes=notes,
        )
        self.rows.append(entry)
        return entry


class FakePaymentRepository:
    def __init__(self) -> None:
        self.intents: dict[str, PaymentIntent] = {}
        self.records: list[PurchaseRecord] = []
        self._ids = itertools.count(1)

    async def insert_intent(self, db: object, intent: PaymentIntent) -> PaymentIntent:
        self.intents[intent.id] = intent
        return intent

    async def get_intent(
        self, db: object, intent_id: str, for_update: bool = False
    ) -> PaymentIntent | None:
        intent = self.intents.get(intent_id)
        if intent is None:
            return None
        # Hand out copies so callers never mutate the stored row directly
        return PaymentIntent(**{**intent.__dict__, "product_types": list(intent.product_types)})

    async def list_pending_intents_for_release(
        self, db: object, release_id: int
    ) -> list[PaymentIntent]:
        return [
            PaymentIntent(**{**i.__dict__, "product_types": list(i.product_types)})
            for i in self.intents.values()
            if i.release_id == release_id and i.status == "pending"
        ]

    async def transition_intent(
        self, db: object, intent_id: str, from_status: str, to_status: str
    ) -> bool:
        intent = self.intents.get(intent_id)
        if intent is None or intent.status != from_status:
            return False
        intent.status = to_status
        return True

    async def list_records_for_intent(self, db: object, intent_id: str) -> list[PurchaseRecord]:
        return [r for r in self.records if r.payment_intent_id == intent_id]

    async def insert_records(
        self, db: object, records: list[NewPurchaseRecord]
    ) -> list[PurchaseRecord]:
        inserted = []
        for new in records:
            if any(
                r.release_id == new.release_id and r.product_type == new.product_type
                for r in self.records
            ):
                continue
            record = PurchaseRecord(
                id=next(self._ids),
                release_id=new.release_id,
                product_type=new.product_type,
                funding_method=new.funding_method.value,
                amount_cents=new.amount_cents,
                credits_consumed=new.credits_consumed,
                payment_intent_id=new.payment_intent_id,
                user_id=new.user_id,
            )
            self.records.append(record)
            inserted.append(record)
        return inserted


class FakeCartStore:
    def __init__(self) -> None:
        self.carts: dict[tuple[int, int], CartSelection] = {}

    async def load(self, user_id: int, release_id: int) -> CartSelection | None:
        return self.carts.get((user_id, release_id))

    async def save(self, user_id: int, cart: CartSelection) -> None:
        self.carts[(user_id, cart.release_id)] = cart

    async def delete(self, user_id: int, release_id: int) -> None:
        self.carts.pop((user_id, release_id), None)


class FakeGateway:
    """Payment gateway double; intents move to 'succeeded' via pay()."""

    def __init__(self) -> None:
        self.intents: dict[str, GatewayIntent] = {}
        self.created: list[dict] = []
        self.canceled: list[str] = []
        self.fail_create = False
        self._ids = itertools.count(1)

    async def create_intent(
        self,
        amount: int,
        currency: str,
        metadata: dict[str, str],
        description: str,
        receipt_email: str | None,
    ) -> GatewayIntent:
        if self.fail_create:
            raise PaymentGatewayError("card network unavailable")
        intent_id = f"pi_test_{next(self._ids)}"
        intent = GatewayIntent(
            id=intent_id,
            status="requires_payment_method",
            amount=amount,
            currency=currency,
            client_secret=f"{intent_id}_secret",
            metadata=dict(metadata),
        )
        self.intents[intent_id] = intent
        self.created.append(
            {"amount": amount, "currency": currency, "metadata": metadata, "description": description}
        )
        return intent

    def pay(self, intent_id: str, amount: int | None = None) -> GatewayIntent:
        current = self.intents[intent_id]
        paid = GatewayIntent(
            id=current.id,
            status="succeeded",
            amount=current.amount if amount is None else amount,
            currency=current.currency,
            client_secret=current.client_secret,
            metadata=current.metadata,
        )
        self.intents[intent_id] = paid
        return paid

    async def retrieve_intent(self, intent_id: str) -> GatewayIntent:
        if intent_id not in self.intents:
            raise PaymentGatewayError(f"No such payment_intent: {intent_id}")
        return self.intents[intent_id]

    async def cancel_intent(self, intent_id: str) -> GatewayIntent:
        current = self.intents[intent_id]
        canceled = GatewayIntent(
            id=current.id,
            status="canceled",
            amount=current.amount,
            currency=current.currency,
            metadata=current.metadata,
        )
        self.intents[intent_id] = canceled
        self.canceled.append(intent_id)
        return canceled

    def parse_webhook(self, payload: bytes, signature: str) -> GatewayEvent:
        raise NotImplementedError


def make_mailer() -> MagicMock:
    from unittest.mock import AsyncMock

    mailer = MagicMock()
    mailer.send_receipt = AsyncMock(return_value=True)
    return mailer
