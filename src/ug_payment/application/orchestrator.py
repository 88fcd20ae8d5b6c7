"""PaymentOrchestrator — cash purchases through the payment gateway.

Lifecycle of one purchase:
  create_intent          validate -> cancel overlapping pending intents ->
                         gateway intent -> local row (pending)
  confirm_and_reconcile  gateway says succeeded -> distribution + purchase
                         records + intent status in ONE transaction
  cancel                 gateway cancel -> local status canceled, release untouched

The charge is fixed when the intent is created (line_items, amount_cents);
confirmation verifies the gateway amount against it and never re-prices.
Confirmation is idempotent: the first success applies the purchase, every
later call (client retry, webhook) returns the recorded outcome.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.ug_cart.domain.store import CartStoreProtocol
from src.ug_cart.infrastructure.redis_store import RedisCartStore
from src.ug_catalog.application.service import CatalogService
from src.ug_common.enums import FundingMethod, PaymentIntentStatus
from src.ug_common.errors import (
    IdempotencyNoop,
    PaymentAlreadyMadeError,
    PaymentIntentClosedError,
    PaymentIntentNotFoundError,
    PaymentGatewayError,
    PaymentMismatchError,
    PaymentNotCompletedError,
    ReconciliationConflict,
)
from src.ug_distribution.application.reconciler import DistributionReconciler
from src.ug_distribution.domain.models import Distribution, Release
from src.ug_distribution.domain.repository import ReleaseRepositoryProtocol
from src.ug_distribution.infrastructure.release_store import ReleaseRepository
from src.ug_gateway.auth.dependencies import CurrentUser
from src.ug_payment.application.cart_sync import finish_cart, reopen_cart
from src.ug_payment.application.eligibility import ValidatedPurchase, validate_purchase
from src.ug_payment.domain.gateway import GatewayEvent, GatewayIntent, PaymentGatewayProtocol
from src.ug_payment.domain.models import NewPurchaseRecord, PaymentIntent, PurchaseOutcome
from src.ug_payment.domain.repository import PaymentRepositoryProtocol
from src.ug_payment.infrastructure.persistence import PaymentRepository
from src.ug_payment.infrastructure.receipt_mailer import Receipt, ResendReceiptMailer

logger = logging.getLogger(__name__)

_METADATA_VALUE_LIMIT = 500  # Stripe metadata value length limit

_GATEWAY_SUCCEEDED = "succeeded"
_GATEWAY_CANCELED = "canceled"

EVENT_SUCCEEDED = "payment_intent.succeeded"
EVENT_FAILED = "payment_intent.payment_failed"
EVENT_CANCELED = "payment_intent.canceled"


@dataclass
class CreatedIntent:
    payment_intent_id: str
    client_secret: str | None
    amount_cents: int
    currency: str
    product_types: list[str]


def build_intent_metadata(purchase: ValidatedPurchase, user_id: int) -> dict[str, str]:
    release = purchase.release
    metadata = {
        "releaseId": str(release.id),
        "releaseUuid": release.uuid,
        "releaseTitle": release.title or "",
        "userId": str(user_id),
        "productTypes": ",".join(purchase.product_types),
        "productIds": ",".join(str(p.id) for p in purchase.products),
        "productNames": ", ".join(purchase.product_names),
    }
    return {key: value[:_METADATA_VALUE_LIMIT] for key, value in metadata.items()}


def build_intent_description(purchase: ValidatedPurchase) -> str:
    release = purchase.release
    return f'{", ".join(purchase.product_names)} for "{release.title or "Untitled"}" ({release.uuid})'


class PaymentOrchestrator:
    def __init__(
        self,
        gateway: PaymentGatewayProtocol,
        repo: PaymentRepositoryProtocol | None = None,
        catalog: CatalogService | None = None,
        reconciler: DistributionReconciler | None = None,
        release_repo: ReleaseRepositoryProtocol | None = None,
        cart_store: CartStoreProtocol | None = None,
        mailer: ResendReceiptMailer | None = None,
    ) -> None:
        self._gateway = gateway
        self._repo: PaymentRepositoryProtocol = repo or PaymentRepository()
        self._catalog = catalog or CatalogService()
        self._releases: ReleaseRepositoryProtocol = release_repo or ReleaseRepository()
        self._reconciler = reconciler or DistributionReconciler(release_repo=self._releases)
        self._carts: CartStoreProtocol = cart_store or RedisCartStore()
        self._mailer = mailer or ResendReceiptMailer()

    # ------------------------------------------------------------------
    # create
    # ------------------------------------------------------------------

    async def create_intent(
        self,
        db: AsyncSession,
        release: Release,
        product_types: list[str],
        user: CurrentUser,
    ) -> CreatedIntent:
        purchase = await validate_purchase(
            db, self._catalog, release, product_types, user.partner_id
        )
        currency = settings.PAYMENT_CURRENCY
        await self._supersede_pending(db, release.id, purchase.product_types)

        gateway_intent = await self._gateway.create_intent(
            amount=purchase.amount_cents,
            currency=currency,
            metadata=build_intent_metadata(purchase, user.user_id),
            description=build_intent_description(purchase),
            receipt_email=user.email,
        )

        intent = PaymentIntent(
            id=gateway_intent.id,
            release_id=release.id,
            user_id=user.user_id,
            company_id=release.company_id,
            product_types=purchase.product_types,
            line_items=purchase.line_items,
            amount_cents=purchase.amount_cents,
            currency=currency,
            status=PaymentIntentStatus.PENDING.value,
            receipt_email=user.email,
            receipt_name=user.name,
        )
        try:
            await self._repo.insert_intent(db, intent)
            await db.commit()
        except Exception:
            await db.rollback()
            logger.error("Could not record payment intent %s, canceling it", gateway_intent.id)
            try:
                await self._gateway.cancel_intent(gateway_intent.id)
            except PaymentGatewayError:
                logger.exception("Orphaned payment intent %s could not be canceled", gateway_intent.id)
            raise

        logger.info(
            "Payment intent created: intent=%s release=%s types=%s amount=%d",
            intent.id,
            release.id,
            intent.product_types,
            intent.amount_cents,
        )
        return CreatedIntent(
            payment_intent_id=intent.id,
            client_secret=gateway_intent.client_secret,
            amount_cents=intent.amount_cents,
            currency=currency,
            product_types=intent.product_types,
        )

    async def _supersede_pending(
        self, db: AsyncSession, release_id: int, product_types: list[str]
    ) -> None:
        """Cancel earlier pending intents that would charge for any of these types.

        Only one open charge per (release, type) may exist. An earlier intent the
        customer already paid blocks the new one; it has to be confirmed instead.
        """
        wanted = set(product_types)
        for pending in await self._repo.list_pending_intents_for_release(db, release_id):
            if not wanted.intersection(pending.product_types):
                continue
            remote = await self._gateway.retrieve_intent(pending.id)
            if remote.status == _GATEWAY_SUCCEEDED:
                raise PaymentAlreadyMadeError(pending.id)
            if remote.status != _GATEWAY_CANCELED:
                await self._gateway.cancel_intent(pending.id)
            await self._close(db, pending.id, PaymentIntentStatus.CANCELED)
            logger.info(
                "Superseded pending intent %s on release %s", pending.id, release_id
            )

    # ------------------------------------------------------------------
    # confirm
    # ------------------------------------------------------------------

    async def confirm_and_reconcile(
        self,
        db: AsyncSession,
        intent_id: str,
        user: CurrentUser | None = None,
        gateway_intent: GatewayIntent | None = None,
        release_id: int | None = None,
    ) -> PurchaseOutcome:
        """Apply a succeeded payment to its release exactly once.

        ``user`` and ``release_id`` restrict confirmation to the intent's owner
        and release (client path); the webhook path passes neither and hands
        over the event's intent as ``gateway_intent``.
        """
        intent = await self._repo.get_intent(db, intent_id)
        if intent is None or (user is not None and intent.user_id != user.user_id):
            raise PaymentIntentNotFoundError(intent_id)
        if release_id is not None and intent.release_id != release_id:
            raise PaymentMismatchError("payment belongs to a different release")

        try:
            return await self._confirm(db, intent, gateway_intent)
        except IdempotencyNoop:
            logger.info("Payment confirmation idempotency hit: intent=%s", intent_id)
            return await self._recorded_outcome(db, intent)

    async def _confirm(
        self,
        db: AsyncSession,
        intent: PaymentIntent,
        gateway_intent: GatewayIntent | None,
    ) -> PurchaseOutcome:
        if intent.status == PaymentIntentStatus.SUCCEEDED:
            raise IdempotencyNoop(intent.id)
        if intent.status != PaymentIntentStatus.PENDING:
            raise PaymentIntentClosedError(intent.id, intent.status)

        remote = gateway_intent or await self._gateway.retrieve_intent(intent.id)
        if remote.status == _GATEWAY_CANCELED:
            await self._close(db, intent.id, PaymentIntentStatus.CANCELED)
            raise PaymentIntentClosedError(intent.id, PaymentIntentStatus.CANCELED.value)
        if remote.status != _GATEWAY_SUCCEEDED:
            raise PaymentNotCompletedError(intent.id, remote.status)
        self._verify_matches(intent, remote)

        try:
            locked = await self._repo.get_intent(db, intent.id, for_update=True)
            if locked is None:
                raise PaymentIntentNotFoundError(intent.id)
            if locked.status == PaymentIntentStatus.SUCCEEDED:
                raise IdempotencyNoop(intent.id)
            if locked.status != PaymentIntentStatus.PENDING:
                raise PaymentIntentClosedError(intent.id, locked.status)

            distribution = await self._reconciler.apply_purchase(
                db, intent.release_id, intent.product_types
            )
            records = await self._repo.insert_records(
                db,
                [
                    NewPurchaseRecord(
                        release_id=intent.release_id,
                        product_type=product_type,
                        funding_method=FundingMethod.CASH,
                        user_id=intent.user_id,
                        amount_cents=intent.line_items.get(product_type, 0),
                        payment_intent_id=intent.id,
                    )
                    for product_type in intent.product_types
                ],
            )
            if len(records) != len(intent.product_types):
                # Another payment recorded one of these types first
                raise ReconciliationConflict(intent.release_id, "upgrade was already recorded")
            if not await self._repo.transition_intent(
                db,
                intent.id,
                PaymentIntentStatus.PENDING.value,
                PaymentIntentStatus.SUCCEEDED.value,
            ):
                raise IdempotencyNoop(intent.id)
            await db.commit()
        except ReconciliationConflict:
            await db.rollback()
            logger.error(
                "Paid intent could not be applied, needs refund review: intent=%s release=%s",
                intent.id,
                intent.release_id,
            )
            raise
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Payment reconciled: intent=%s release=%s distribution=%s",
            intent.id,
            intent.release_id,
            distribution.serialize(),
        )
        await finish_cart(self._carts, intent.user_id, intent.release_id)
        await self._send_receipt(db, intent, remote)
        return PurchaseOutcome(
            release_id=intent.release_id,
            product_types=list(intent.product_types),
            distribution=distribution.serialize(),
            funding_method=FundingMethod.CASH,
            payment_intent_id=intent.id,
            records=records,
        )

    @staticmethod
    def _verify_matches(intent: PaymentIntent, remote: GatewayIntent) -> None:
        if remote.amount != intent.amount_cents:
            raise PaymentMismatchError(
                f"charged {remote.amount}, expected {intent.amount_cents}"
            )
        if remote.currency.lower() != intent.currency.lower():
            raise PaymentMismatchError(f"currency {remote.currency}")
        release_ref = remote.metadata.get("releaseId")
        if release_ref is not None and release_ref != str(intent.release_id):
            raise PaymentMismatchError("payment belongs to a different release")

    async def _recorded_outcome(self, db: AsyncSession, intent: PaymentIntent) -> PurchaseOutcome:
        records = await self._repo.list_records_for_intent(db, intent.id)
        release = await self._releases.get_release_by_id(db, intent.release_id)
        distribution = release.distribution if release else Distribution()
        return PurchaseOutcome(
            release_id=intent.release_id,
            product_types=list(intent.product_types),
            distribution=distribution.serialize(),
            funding_method=FundingMethod.CASH,
            payment_intent_id=intent.id,
            already_applied=True,
            records=records,
        )

    async def _send_receipt(
        self, db: AsyncSession, intent: PaymentIntent, remote: GatewayIntent
    ) -> None:
        if not intent.receipt_email:
            return
        release = await self._releases.get_release_by_id(db, intent.release_id)
        names = remote.metadata.get("productNames")
        await self._mailer.send_receipt(
            Receipt(
                to_email=intent.receipt_email,
                to_name=intent.receipt_name or "Customer",
                release_title=release.title if release else None,
                release_uuid=release.uuid if release else remote.metadata.get("releaseUuid", ""),
                product_names=names.split(", ") if names else list(intent.product_types),
                amount_cents=intent.amount_cents,
                transaction_id=intent.id,
            )
        )

    # ------------------------------------------------------------------
    # cancel / failure
    # ------------------------------------------------------------------

    async def cancel(self, db: AsyncSession, intent_id: str, user: CurrentUser) -> PaymentIntent:
        intent = await self._repo.get_intent(db, intent_id)
        if intent is None or intent.user_id != user.user_id:
            raise PaymentIntentNotFoundError(intent_id)
        if intent.status == PaymentIntentStatus.CANCELED:
            return intent
        if intent.is_terminal:
            raise PaymentIntentClosedError(intent_id, intent.status)

        await self._gateway.cancel_intent(intent_id)
        await self._close(db, intent_id, PaymentIntentStatus.CANCELED)
        await reopen_cart(self._carts, intent.user_id, intent.release_id, intent_id)
        intent.status = PaymentIntentStatus.CANCELED.value
        return intent

    async def _close(self, db: AsyncSession, intent_id: str, status: PaymentIntentStatus) -> None:
        try:
            changed = await self._repo.transition_intent(
                db, intent_id, PaymentIntentStatus.PENDING.value, status.value
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        if changed:
            logger.info("Payment intent %s marked %s", intent_id, status.value)

    # ------------------------------------------------------------------
    # webhook
    # ------------------------------------------------------------------

    def parse_webhook(self, payload: bytes, signature: str) -> GatewayEvent:
        return self._gateway.parse_webhook(payload, signature)

    async def handle_gateway_event(
        self, db: AsyncSession, event: GatewayEvent
    ) -> PurchaseOutcome | None:
        if event.intent is None:
            logger.info("Ignoring gateway event %s (%s)", event.id, event.event_type)
            return None
        intent = await self._repo.get_intent(db, event.intent.id)
        if intent is None:
            logger.info(
                "Ignoring %s for unknown payment intent %s", event.event_type, event.intent.id
            )
            return None

        if event.event_type == EVENT_SUCCEEDED:
            return await self.confirm_and_reconcile(db, intent.id, gateway_intent=event.intent)
        if event.event_type == EVENT_CANCELED:
            await self._close(db, intent.id, PaymentIntentStatus.CANCELED)
            await reopen_cart(self._carts, intent.user_id, intent.release_id, intent.id)
            return None
        if event.event_type == EVENT_FAILED:
            # The gateway lets the customer retry the same intent; stays pending
            logger.warning("Payment attempt failed: intent=%s release=%s", intent.id, intent.release_id)
            return None
        logger.info("Unhandled gateway event type %s for intent %s", event.event_type, intent.id)
        return None
