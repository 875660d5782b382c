# -------------------------
# Enums
# -------------------------
from .enums import (
    PanelState,
    RoleKind,
)

# -------------------------
# RBAC Models
# -------------------------
from .rbac import (
    PermissionNode,
    ModuleDefinition,
    Role,
    RoleCreate,
    RoleUpdate,
    RolePermissionsUpdate,
    JoinedRole,
    UserRecord,
    UserRoleAssign,
    EffectiveRole,
)

__all__ = [
    # enums
    "PanelState",
    "RoleKind",

    # permissions
    "PermissionNode",
    "ModuleDefinition",

    # roles
    "Role",
    "RoleCreate",
    "RoleUpdate",
    "RolePermissionsUpdate",

    # users
    "JoinedRole",
    "UserRecord",
    "UserRoleAssign",
    "EffectiveRole",
]
