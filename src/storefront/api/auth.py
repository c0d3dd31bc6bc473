"""Bearer-token authentication for the Storefront API.

Tokens are issued by the identity service. We only verify the signature
and expiry, then read the user id (``id`` or ``sub``), the admin flag
(``role == "admin"`` or ``isAdmin``) and the email used for notifications.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from storefront.config import get_settings
from storefront.errors import UnauthorizedError
from storefront.identity import AuthContext
from storefront.utils.logging import add_context

# auto_error=False so a missing header reaches our own 401 envelope
bearer_scheme = HTTPBearer(auto_error=False)


def decode_access_token(token: str) -> dict[str, Any]:
    settings = get_settings()
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise UnauthorizedError("Invalid or expired token") from None


def create_access_token(
    user_id: str,
    is_admin: bool = False,
    email: str | None = None,
    expires_in: timedelta = timedelta(hours=1),
) -> str:
    """Issue a token with the claims this API reads (development and tests)."""
    settings = get_settings()
    claims = {
        "id": str(user_id),
        "role": "admin" if is_admin else "user",
        "exp": datetime.now(UTC) + expires_in,
    }
    if email:
        claims["email"] = email
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def auth_context_from_claims(claims: dict[str, Any]) -> AuthContext:
    user_id = claims.get("id") or claims.get("sub")
    if not user_id:
        raise UnauthorizedError("Token does not identify a user")
    is_admin = claims.get("role") == "admin" or bool(claims.get("isAdmin"))
    return AuthContext(user_id=str(user_id), is_admin=is_admin, email=claims.get("email"))


def require_auth(credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme)) -> AuthContext:
    if credentials is None:
        raise UnauthorizedError()
    auth = auth_context_from_claims(decode_access_token(credentials.credentials))
    add_context(user_id=auth.user_id)
    return auth


def require_admin(auth: AuthContext = Depends(require_auth)) -> AuthContext:
    auth.ensure_admin()
    return auth
