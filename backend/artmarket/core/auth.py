"""Bearer JWT authentication for FastAPI."""

import jwt as pyjwt
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from artmarket.core.config import get_settings
from artmarket.db.base import get_session_factory
from artmarket.domain.models import Caller
from artmarket.services.user_directory import UserDirectory

_bearer_scheme = HTTPBearer(auto_error=False)


def decode_access_token(token: str) -> str:
    """Verify an access token and return the user id it was issued for.

    Accepts the user id in either the ``userId`` or the ``sub`` claim.
    Raises ``HTTPException(401)`` on any validation failure.
    """
    settings = get_settings()
    try:
        payload = pyjwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"verify_exp": True, "require": ["exp"]},
        )
    except pyjwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except pyjwt.InvalidTokenError as exc:
        raise HTTPException(status_code=401, detail=f"Invalid token: {exc}")

    user_id = payload.get("userId") or payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Token missing user claim")
    return str(user_id)


async def require_auth(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> Caller:
    """FastAPI dependency that resolves the bearer token to an active user.

    Usage::

        @router.get("/protected")
        async def protected(caller: Caller = Depends(require_auth)):
            ...
    """
    if credentials is None:
        raise HTTPException(status_code=401, detail="Access denied. No token provided.")

    user_id = decode_access_token(credentials.credentials)

    user = await UserDirectory(get_session_factory()).resolve_user(user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid token.")
    if not user.is_active:
        raise HTTPException(status_code=401, detail="Account is deactivated.")

    # Set user_id on request state for downstream use (error handlers, audit logging)
    request.state.user_id = str(user.id)

    return user.to_caller()
