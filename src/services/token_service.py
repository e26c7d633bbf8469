"""
Token Service: issue and verify signed, time-limited bearer tokens.

Tokens are HS256 JWTs carrying the user id in `sub`, plus `iat` and `exp`.
Nothing is persisted server-side; validity is signature + expiry.
"""
from datetime import UTC, datetime, timedelta
from uuid import UUID

import jwt

from core.config import Settings
from services.exceptions import InvalidTokenError
from services.utils import parse_uuid


def issue_token(user_id: UUID, settings: Settings, now: datetime | None = None) -> str:
    """
    Create a signed token for a user.

    Args:
        user_id: The user the token identifies.
        settings: Supplies the secret, algorithm and lifetime.
        now: Issue time override (tests).

    Returns:
        The encoded JWT.
    """
    issued_at = now or datetime.now(UTC)
    payload = {
        "sub": str(user_id),
        "iat": issued_at,
        "exp": issued_at + timedelta(hours=settings.token_lifetime_hours),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str, settings: Settings) -> UUID:
    """
    Verify a token and return the user id it carries.

    Raises:
        InvalidTokenError: If the signature is wrong, the token has expired,
            or the subject claim is missing or malformed.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp", "iat"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise InvalidTokenError("expired") from e
    except jwt.PyJWTError as e:
        raise InvalidTokenError(type(e).__name__) from e

    user_id = parse_uuid(payload["sub"])
    if user_id is None:
        raise InvalidTokenError("malformed sub claim")
    return user_id
