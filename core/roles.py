# core/roles.py

from typing import Iterable, Optional

from models.rbac import EffectiveRole, Role, UserRecord

NO_ROLE = "No Role"


def _find_role(role_id: Optional[str], loaded_roles: Iterable[Role]) -> Optional[Role]:
    if not role_id:
        return None
    for role in loaded_roles:
        if role.id == role_id:
            return role
    return None


def resolve_effective_role(user: Optional[UserRecord], loaded_roles: Iterable[Role]) -> EffectiveRole:
    """
    Work out which role a user is acting under.

    Precedence, highest first:
      1. ``role_id`` found in the roles already loaded
      2. the ``roles`` object joined onto the user row
      3. the legacy free-text ``role`` label
      4. "No Role"

    Only 1 and 2 carry permissions. A label alone, or a role_id that no
    longer matches a loaded role, yields an empty permission set.

    Works on already-fetched data only: users and roles are loaded by
    separate requests and may arrive in either order.
    """
    if user is None:
        return EffectiveRole(name=NO_ROLE)

    role = _find_role(user.role_id, loaded_roles)
    if role is not None:
        return EffectiveRole(
            name=role.name,
            permissions=role.permission_codes,
            role_id=role.id,
        )

    joined = user.roles
    if joined is not None and joined.name:
        return EffectiveRole(
            name=joined.name,
            permissions=frozenset(p.code for p in joined.permissions),
            role_id=joined.id,
        )

    if user.role and user.role.strip():
        return EffectiveRole(name=user.role)

    return EffectiveRole(name=NO_ROLE)


def role_display_name(user: Optional[UserRecord], loaded_roles: Iterable[Role]) -> str:
    return resolve_effective_role(user, loaded_roles).name
