"""
Authentication module: the Auth Gate for every protected route.

The bearer token is read from the fixed token header (``x-auth-token`` by
default) or, alternatively, from ``Authorization: Bearer``. This module is the
only place a request's identity is established; handlers never trust a user id
sent in a request body.
"""
import logging

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.config import Settings, get_settings
from services import token_service
from services.exceptions import InvalidTokenError
from services.records import UserRecord
from services.storage import Stores, get_stores

logger = logging.getLogger(__name__)


# HTTP Bearer token scheme (optional alternative to the fixed header)
security = HTTPBearer(auto_error=False)

NO_TOKEN_DETAIL = "No token, authorization denied"
INVALID_TOKEN_DETAIL = "Token is not valid"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def extract_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None,
    settings: Settings,
) -> str | None:
    """Return the raw token from the fixed header, else the Bearer header."""
    header_token = request.headers.get(settings.auth_header_name, "").strip()
    if header_token:
        return header_token
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return None


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    settings: Settings = Depends(get_settings),
    stores: Stores = Depends(get_stores),
) -> UserRecord:
    """
    Dependency that validates the token and returns the current user.

    - No token: 401 "No token, authorization denied".
    - Bad signature, expired token, or a token for a user that no longer
      resolves: 401 "Token is not valid".
    """
    token = extract_token(request, credentials, settings)
    if token is None:
        raise _unauthorized(NO_TOKEN_DETAIL)

    try:
        user_id = token_service.verify_token(token, settings)
    except InvalidTokenError as e:
        # Reason is logged server-side only; never log the token itself
        logger.warning("Token validation failed: %s", e.reason)
        raise _unauthorized(INVALID_TOKEN_DETAIL)

    user = await stores.users.find_by_id(user_id)
    if user is None:
        logger.warning("Token references unknown user %s", user_id)
        raise _unauthorized(INVALID_TOKEN_DETAIL)

    request.state.user_id = user.id
    return user
