"""ug_credit REST API — read-only balance endpoint, requires JWT authentication."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.ug_common.database import get_db_session
from src.ug_common.response import ApiResponse, success_response
from src.ug_credit.application.schemas import CreditBalanceResponse
from src.ug_credit.application.service import CreditService
from src.ug_gateway.auth.dependencies import CurrentUser, get_current_user

router = APIRouter(prefix="/credits", tags=["credits"])

_service = CreditService()


@router.get("/balance")
async def get_balance(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    company_id: int | None = Query(None, description="Brand scope; omit for user-level only"),
) -> ApiResponse:
    balance = await _service.get_balance(db, current_user.user_id, company_id)
    return success_response(CreditBalanceResponse.from_balance(balance).model_dump(), request)
