"""Authenticated identity as seen by the storefront.

Credentials are issued and verified elsewhere; the HTTP layer decodes the
bearer token into an ``AuthContext`` and every use case receives one.
"""

from dataclasses import dataclass

from storefront.errors import ForbiddenError


@dataclass(frozen=True)
class AuthContext:
    user_id: str
    is_admin: bool = False
    email: str | None = None

    def can_access(self, owner_id) -> bool:
        return self.is_admin or str(owner_id) == str(self.user_id)

    def ensure_admin(self) -> None:
        if not self.is_admin:
            raise ForbiddenError("Administrator access required")
