"""Authentication for the API.

Callers present a JWT bearer token whose ``sub`` claim is their email address
and whose optional ``name`` claim is their display name. Tokens are signed with
the secret key from configuration.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from fastapi import Depends, HTTPException, Request, status  # type: ignore[import-untyped]
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer  # type: ignore[import-untyped]
from jose import JWTError, jwt  # type: ignore[import-untyped]

from timecard.api.dependencies import get_config
from timecard.core.config import ConfigManager
from timecard.core.models import User

ALGORITHM = "HS256"

# Missing credentials are reported as 401 by verify_token, not 403 by the scheme
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str = "Unauthorized") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def create_access_token(
    data: dict[str, Any], secret_key: str, expires_delta: Optional[timedelta] = None
) -> str:
    """Create a JWT access token.

    Args:
        data: Claims to encode in the token
        secret_key: Secret key for encoding
        expires_delta: Optional expiration time delta (default 24 hours)

    Returns:
        Encoded JWT token string

    Example:
        >>> token = create_access_token(
        ...     data={"sub": "ada@example.com", "name": "Ada Lovelace"},
        ...     secret_key="your-secret-key",
        ...     expires_delta=timedelta(hours=24)
        ... )
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(hours=24))
    to_encode.update({"exp": expire, "iat": now})

    encoded_jwt: str = jwt.encode(to_encode, secret_key, algorithm=ALGORITHM)
    return encoded_jwt


def verify_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> dict[str, Any]:
    """Verify the bearer token on a request.

    Returns:
        Decoded token payload

    Raises:
        HTTPException: 401 if the token is missing, invalid or expired

    Note:
        When authentication is disabled in config, the configured default
        user is returned without looking at the request.
    """
    config = get_config(request)

    if not config.get("api.authentication.enabled", True):
        return {"sub": config.get("api.authentication.default_user", "anonymous@localhost")}

    if credentials is None:
        raise _unauthorized()

    secret_key = config.get("api.authentication.secret_key")
    if not secret_key:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="API secret key not configured",
        )

    try:
        payload: dict[str, Any] = jwt.decode(
            credentials.credentials, secret_key, algorithms=[ALGORITHM]
        )
        return payload
    except JWTError as e:
        raise _unauthorized(f"Invalid authentication credentials: {str(e)}")


def get_current_user(payload: dict[str, Any] = Depends(verify_token)) -> User:
    """Resolve the caller from a verified token.

    Raises:
        HTTPException: 401 if the token carries no email
    """
    email = payload.get("sub")
    if not email or "@" not in str(email):
        raise _unauthorized()
    return User(email=str(email), name=payload.get("name"))


def create_token_for_user(
    config: ConfigManager,
    email: str,
    name: Optional[str] = None,
    expires_hours: Optional[int] = None,
) -> dict[str, Any]:
    """Create a complete token response for a user.

    Args:
        config: Configuration manager
        email: User email, stored in the ``sub`` claim
        name: Display name, stored in the ``name`` claim
        expires_hours: Expiry override (default from config)

    Returns:
        Dictionary with access_token, token_type, and expires_in
    """
    secret_key = config.ensure_api_secret_key()

    expiry_hours = expires_hours or config.get("api.authentication.token_expiry_hours", 24)

    claims: dict[str, Any] = {"sub": email}
    if name:
        claims["name"] = name

    access_token = create_access_token(
        data=claims, secret_key=secret_key, expires_delta=timedelta(hours=expiry_hours)
    )

    return {
        "access_token": access_token,
        "token_type": "bearer",
        "expires_in": expiry_hours * 3600,
    }
