"""JWT access token verification.

Tokens are issued by the release authoring application; this service only
verifies them with the shared HS256 secret and never mints its own.

Claims read here:
  sub        user id (stringified integer)
  type       must be "access"
  partner_id optional white-label partner the user belongs to
  email/name optional, used for receipts
  is_admin   optional, allows ``act_as``
  act_as     optional user id an administrator is impersonating
"""

from typing import Any

from jose import JWTError, jwt

from config.settings import settings
from src.ug_common.errors import InvalidTokenError

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and validate an access token.

    Raises:
        InvalidTokenError: signature/expiry invalid, or token type is not "access".
    """
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        raise InvalidTokenError() from None

    if payload.get("type") != "access":
        raise InvalidTokenError()

    return payload
