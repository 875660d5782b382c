from typing import Optional, List
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel
from supabase import Client

from core.supabase_client import get_supabase_client
from core.permissions import WILDCARD
from core.role_service import RoleService
from dependencies.rbac import get_role_service


bearer_scheme = HTTPBearer(auto_error=False)


# ============================================================
# Current User Model (backend identity + effective permissions)
# ============================================================
class CurrentUser(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = None

    # Effective codes from the user's role, resolved server-side
    permissions: List[str] = []

    @property
    def is_admin(self) -> bool:
        return WILDCARD in self.permissions


# ============================================================
# AUTH DECODING (Supabase: validates JWT)
# ============================================================
def get_auth_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
):
    """
    Supabase auth user behind the bearer token.
    Resolved before anything touches the role tables, so a missing or
    bad token is always a 401.
    """
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired authentication token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not credentials:
        raise unauthorized

    client: Client = get_supabase_client()
    if not client:
        raise HTTPException(500, "Supabase client not configured")

    try:
        auth_resp = client.auth.get_user(credentials.credentials)
        if not auth_resp or not auth_resp.user:
            raise unauthorized
        auth_user = auth_resp.user
    except Exception:
        raise unauthorized

    if not auth_user.email:
        raise unauthorized

    return auth_user


# ============================================================
# CURRENT USER (identity + permissions from the users table)
# ============================================================
def get_current_user(
    auth_user=Depends(get_auth_user),
    service: RoleService = Depends(get_role_service),
) -> CurrentUser:
    metadata = auth_user.user_metadata or {}

    # Permissions come from the users table, never from metadata
    permissions = service.user_permission_codes(auth_user.id)

    return CurrentUser(
        id=auth_user.id,
        email=auth_user.email,
        full_name=metadata.get("full_name"),
        permissions=sorted(permissions),
    )


# ============================================================
# PERMISSION CHECK (DELEGATES TO permission_helpers)
# ============================================================
def requires_permission(permission: str):
    """
    Thin wrapper so routes can still import from dependencies.auth.
    Real RBAC logic lives in core.permission_helpers.
    """
    from core.permission_helpers import requires_permission as new_checker
    return new_checker(permission)
