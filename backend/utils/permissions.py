# backend/utils/permissions.py
from dataclasses import dataclass
from typing import Optional

from utils.errors import AuthError

ROLE_ADMIN = "admin"
ROLE_SALES = "sales"

SALES_ROLES = (ROLE_ADMIN, ROLE_SALES)


# Verified caller identity handed to the core by the authorization layer
@dataclass(frozen=True)
class Identity:
    user_id: Optional[int]
    role: Optional[str] = None


def require_role(identity: Optional[Identity], *allowed_roles: str) -> Identity:
    if identity is None or identity.user_id is None:
        raise AuthError("Authentication required", status_code=401)
    role = (identity.role or "").lower()
    if allowed_roles and role not in allowed_roles:
        raise AuthError(
            "Forbidden",
            context={"role": identity.role, "allowed": list(allowed_roles)},
            status_code=403,
        )
    return identity
