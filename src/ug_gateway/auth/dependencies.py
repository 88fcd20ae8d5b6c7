"""FastAPI dependency: get_current_user.

Usage in any protected router:
    from src.ug_gateway.auth.dependencies import CurrentUser, get_current_user

    @router.get("/protected")
    async def protected(user: Annotated[CurrentUser, Depends(get_current_user)]):
        ...
"""

import logging
from dataclasses import dataclass
from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from src.ug_common.errors import ImpersonationNotAllowedError, InvalidTokenError
from src.ug_gateway.auth.jwt_handler import decode_access_token

logger = logging.getLogger(__name__)

# Tokens come from the authoring application's login; tokenUrl is only for Swagger UI
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


@dataclass(frozen=True)
class CurrentUser:
    user_id: int
    partner_id: int | None = None
    email: str | None = None
    name: str | None = None
    impersonated_by: int | None = None
    session_id: str | None = None      # "sid" claim; carts are scoped to it


def _optional_int(value: Any) -> int | None:
    if value in (None, ""):
        return None
    return int(value)


def user_from_claims(payload: dict[str, Any]) -> CurrentUser:
    """Build the effective user from token claims.

    An administrator token may carry ``act_as``; the effective user then
    becomes that user (partner/email taken from the ``act_as_*`` claims).
    """
    try:
        user_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise _CREDENTIALS_EXCEPTION from None

    act_as = payload.get("act_as")
    if act_as in (None, ""):
        return CurrentUser(
            user_id=user_id,
            partner_id=_optional_int(payload.get("partner_id")),
            email=payload.get("email"),
            name=payload.get("name"),
            session_id=payload.get("sid"),
        )

    if not payload.get("is_admin"):
        raise ImpersonationNotAllowedError()
    logger.info("Admin %s acting as user %s", user_id, act_as)
    return CurrentUser(
        user_id=int(act_as),
        partner_id=_optional_int(payload.get("act_as_partner_id")),
        email=payload.get("act_as_email"),
        name=payload.get("act_as_name"),
        impersonated_by=user_id,
        session_id=payload.get("sid"),
    )


async def get_current_user(token: str = Depends(oauth2_scheme)) -> CurrentUser:
    """Extract and validate the JWT Bearer token, return the effective user.

    Raises HTTP 401 if the token is missing, invalid, or expired.
    Raises HTTP 403 (ImpersonationNotAllowedError) if a non-admin sends act_as.
    """
    try:
        payload = decode_access_token(token)
    except InvalidTokenError:
        raise _CREDENTIALS_EXCEPTION from None
    return user_from_claims(payload)
