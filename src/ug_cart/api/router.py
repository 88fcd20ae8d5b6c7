"""ug_cart REST API — session cart per release, all require JWT authentication."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.ug_cart.application.schemas import CartResponse, CheckoutRequest, CheckoutResponse
from src.ug_cart.application.service import CartService
from src.ug_common.database import get_db_session
from src.ug_common.response import ApiResponse, success_response
from src.ug_distribution.application.service import ReleaseService
from src.ug_gateway.auth.dependencies import CurrentUser, get_current_user
from src.ug_payment.api.dependencies import get_credit_purchase, get_orchestrator
from src.ug_payment.application.credit_purchase import CreditPurchaseService
from src.ug_payment.application.orchestrator import PaymentOrchestrator

router = APIRouter(prefix="/releases/{release_uuid}/cart", tags=["cart"])

_service = CartService()
_releases = ReleaseService()


@router.get("")
async def get_cart(
    release_uuid: str,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    release = await _releases.get_owned_release(db, release_uuid, current_user.user_id)
    view = await _service.get_cart(db, release, current_user)
    return success_response(CartResponse.from_view(view).model_dump(), request)


@router.post("/items/{product_type}/toggle")
async def toggle_item(
    release_uuid: str,
    product_type: str,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    release = await _releases.get_owned_release(db, release_uuid, current_user.user_id)
    view = await _service.toggle(db, release, current_user, product_type)
    return success_response(CartResponse.from_view(view).model_dump(), request)


@router.delete("/items/{product_type}")
async def remove_item(
    release_uuid: str,
    product_type: str,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    release = await _releases.get_owned_release(db, release_uuid, current_user.user_id)
    view = await _service.remove(db, release, current_user, product_type)
    return success_response(CartResponse.from_view(view).model_dump(), request)


@router.delete("")
async def clear_cart(
    release_uuid: str,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    release = await _releases.get_owned_release(db, release_uuid, current_user.user_id)
    view = await _service.clear(db, release, current_user)
    return success_response(CartResponse.from_view(view).model_dump(), request)


@router.post("/checkout")
async def checkout(
    release_uuid: str,
    body: CheckoutRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    orchestrator: Annotated[PaymentOrchestrator, Depends(get_orchestrator)],
    credit_purchase: Annotated[CreditPurchaseService, Depends(get_credit_purchase)],
    request: Request,
) -> ApiResponse:
    release = await _releases.get_owned_release(db, release_uuid, current_user.user_id)
    result = await _service.checkout(
        db, release, current_user, orchestrator, credit_purchase, body.use_credits
    )
    return success_response(CheckoutResponse.from_result(result).model_dump(), request)


@router.post("/cancel")
async def cancel_payment(
    release_uuid: str,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    orchestrator: Annotated[PaymentOrchestrator, Depends(get_orchestrator)],
    request: Request,
) -> ApiResponse:
    release = await _releases.get_owned_release(db, release_uuid, current_user.user_id)
    view = await _service.cancel_payment(db, release, current_user, orchestrator)
    return success_response(CartResponse.from_view(view).model_dump(), request)


@router.post("/skip")
async def skip(
    release_uuid: str,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    release = await _releases.get_owned_release(db, release_uuid, current_user.user_id)
    distribution = await _releases.skip(db, release)
    await _service.clear(db, release, current_user)
    return success_response({"distribution": distribution.serialize()}, request)
