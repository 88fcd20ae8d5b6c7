"""Release distribution endpoint — the upgrade step of the release wizard.

GET  /releases/{uuid}/distribution   catalog + purchase state + credit balance
POST /releases/{uuid}/distribution   {"action": ...}
    create_payment_intent  {productTypes}     -> {clientSecret, paymentIntentId}
    confirm_payment        {paymentIntentId}  -> purchase result
    cancel_payment         {paymentIntentId}  -> {success}
    use_credit             {productType}      -> purchase result
    skip                                      -> {distribution}
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.ug_catalog.application.schemas import CatalogResponse
from src.ug_catalog.application.service import CatalogService
from src.ug_common.database import get_db_session
from src.ug_common.response import ApiResponse, success_response
from src.ug_distribution.application.schemas import DistributionActionRequest, SkipResponse
from src.ug_distribution.application.service import ReleaseService
from src.ug_gateway.auth.dependencies import CurrentUser, get_current_user
from src.ug_payment.api.dependencies import get_credit_purchase, get_orchestrator
from src.ug_payment.application.credit_purchase import CreditPurchaseService
from src.ug_payment.application.orchestrator import PaymentOrchestrator
from src.ug_payment.application.schemas import PaymentIntentResponse, PurchaseResultResponse

router = APIRouter(prefix="/releases/{release_uuid}/distribution", tags=["distribution"])

_catalog = CatalogService()
_releases = ReleaseService()


@router.get("")
async def get_distribution(
    release_uuid: str,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    release = await _releases.get_owned_release(db, release_uuid, current_user.user_id)
    result = await _catalog.resolve_catalog(db, release, current_user.partner_id)
    return success_response(CatalogResponse.from_result(result).model_dump(by_alias=True), request)


@router.post("")
async def distribution_action(
    release_uuid: str,
    body: DistributionActionRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    orchestrator: Annotated[PaymentOrchestrator, Depends(get_orchestrator)],
    credit_purchase: Annotated[CreditPurchaseService, Depends(get_credit_purchase)],
    request: Request,
) -> ApiResponse:
    release = await _releases.get_owned_release(db, release_uuid, current_user.user_id)

    if body.action == "create_payment_intent":
        created = await orchestrator.create_intent(db, release, body.product_types, current_user)
        data = PaymentIntentResponse.from_created(created).model_dump(by_alias=True)
    elif body.action == "confirm_payment":
        outcome = await orchestrator.confirm_and_reconcile(
            db, body.require_intent_id(), user=current_user, release_id=release.id
        )
        data = PurchaseResultResponse.from_outcome(outcome).model_dump(by_alias=True)
    elif body.action == "cancel_payment":
        intent = await orchestrator.cancel(db, body.require_intent_id(), current_user)
        data = {"success": True, "paymentIntentId": intent.id, "status": intent.status}
    elif body.action == "use_credit":
        outcome = await credit_purchase.purchase_with_credits(
            db, release, body.credit_product_types(), current_user
        )
        data = PurchaseResultResponse.from_outcome(outcome).model_dump(by_alias=True)
    else:
        distribution = await _releases.skip(db, release)
        data = SkipResponse(distribution=distribution.serialize()).model_dump(by_alias=True)

    return success_response(data, request)
