"""Gateway webhook endpoint — no JWT, authenticated by the Stripe signature."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.ug_common.database import get_db_session
from src.ug_common.errors import WebhookSignatureError
from src.ug_common.response import ApiResponse, success_response
from src.ug_payment.api.dependencies import get_orchestrator
from src.ug_payment.application.orchestrator import PaymentOrchestrator
from src.ug_payment.application.schemas import PurchaseResultResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("/webhook")
async def gateway_webhook(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    orchestrator: Annotated[PaymentOrchestrator, Depends(get_orchestrator)],
    stripe_signature: Annotated[str | None, Header(alias="Stripe-Signature")] = None,
) -> ApiResponse:
    if not stripe_signature:
        raise WebhookSignatureError()
    payload = await request.body()
    event = orchestrator.parse_webhook(payload, stripe_signature)
    logger.info("Gateway event received: %s (%s)", event.id, event.event_type)

    outcome = await orchestrator.handle_gateway_event(db, event)
    data: dict[str, object] = {"received": True, "eventType": event.event_type}
    if outcome is not None:
        data["purchase"] = PurchaseResultResponse.from_outcome(outcome).model_dump(by_alias=True)
    return success_response(data, request)
