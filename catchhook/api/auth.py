"""
Bearer-token authentication for the management API.

Tokens are issued by the external auth provider; we only verify the HS256
signature and read the owner id from the "sub" claim.
"""
import logging
import uuid

import jwt as pyjwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from catchhook.config import get_settings

logger = logging.getLogger(__name__)
bearer_scheme = HTTPBearer()


def decode_access_token(token: str) -> dict:
    settings = get_settings()
    if not settings.auth_jwt_secret:
        logger.error("AUTH_JWT_SECRET not set - rejecting all management requests")
        raise HTTPException(status_code=401, detail="Authentication not configured")

    options = {}
    kwargs = {}
    if settings.auth_jwt_audience:
        kwargs["audience"] = settings.auth_jwt_audience
    else:
        options["verify_aud"] = False

    try:
        return pyjwt.decode(
            token,
            settings.auth_jwt_secret,
            algorithms=["HS256"],
            options=options,
            **kwargs,
        )
    except pyjwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except pyjwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> uuid.UUID:
    """Dependency returning the authenticated owner's id."""
    payload = decode_access_token(credentials.credentials)

    subject = payload.get("sub")
    if not subject:
        raise HTTPException(status_code=401, detail="Invalid token payload")

    try:
        return uuid.UUID(str(subject))
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid token payload")
