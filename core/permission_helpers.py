# core/permission_helpers.py

from typing import Iterable, Optional

from fastapi import Depends

from core.errors import PermissionDenied, RBACError
from core.logging_config import logger
from core.permissions import WILDCARD
from core.roles import resolve_effective_role
from dependencies.auth import get_current_user, CurrentUser


# -----------------------------------------------------
# Permission matching (shared by the gate and the API)
# -----------------------------------------------------
def grants(permissions: Optional[Iterable[str]], code: str) -> bool:
    """
    True when ``permissions`` covers ``code``:
      • exact match
      • "*" grants everything
      • "<module>.*" grants every "<module>." code
    Anything else, including missing data, is a denial.
    """
    if not permissions or not isinstance(code, str) or not code:
        return False

    permissions = frozenset(permissions)
    if WILDCARD in permissions or code in permissions:
        return True

    for granted in permissions:
        if isinstance(granted, str) and granted.endswith(".*") and code.startswith(granted[:-1]):
            return True

    return False


# -----------------------------------------------------
# Client-side gate
# -----------------------------------------------------
class PermissionGate:
    """
    Decides whether the signed-in user may see a nav entry or use an
    action. Fail-closed: until permissions are loaded, with no user, or
    for any code not granted, every check answers False.

    This only hides controls. The API re-checks every mutating call with
    requires_permission(), so a denial here is necessary but not sufficient.
    """

    def __init__(self, user_id: Optional[str] = None, permissions: Optional[Iterable[str]] = None):
        self.user_id = user_id
        self._permissions = None if permissions is None else frozenset(permissions)

    @classmethod
    def for_user(cls, user, loaded_roles) -> "PermissionGate":
        """Gate from already-fetched user and role data."""
        if user is None:
            return cls()
        effective = resolve_effective_role(user, loaded_roles)
        return cls(user.id, effective.permissions)

    @classmethod
    def load(cls, client) -> "PermissionGate":
        """Gate from GET /users/me/permissions. Any failure yields a closed gate."""
        try:
            user_id, permissions = client.my_permissions()
        except RBACError as e:
            logger.warning(f"Permission load failed, gate closed: {e.detail}")
            return cls()
        return cls(user_id, permissions)

    @property
    def loaded(self) -> bool:
        return self.user_id is not None and self._permissions is not None

    @property
    def permissions(self) -> frozenset:
        return self._permissions or frozenset()

    def has_permission(self, code: str) -> bool:
        if not self.loaded:
            return False
        return grants(self._permissions, code)

    def has_any_permission(self, codes: Iterable[str]) -> bool:
        return any(self.has_permission(c) for c in codes)

    def has_all_permissions(self, codes: Iterable[str]) -> bool:
        codes = list(codes)
        return bool(codes) and all(self.has_permission(c) for c in codes)

    def clear(self):
        """Forget the user (logout or role change)."""
        self.user_id = None
        self._permissions = None


# -----------------------------------------------------
# Server-side evaluation
# -----------------------------------------------------
def has_permission(user: CurrentUser, permission: str) -> bool:
    return grants(user.permissions, permission)


def requires_permission(permission: str):
    """
    Usage:
        @router.post("/", dependencies=[Depends(requires_permission("users.manage_roles"))])
    """

    def dependency(current_user: CurrentUser = Depends(get_current_user)):
        if not has_permission(current_user, permission):
            logger.warning(f"User {current_user.id} denied '{permission}'")
            raise PermissionDenied(f"Insufficient permissions: '{permission}' required")
        return current_user

    return dependency
