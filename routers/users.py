# routers/users.py

from fastapi import APIRouter, Depends

from core.permissions import MANAGE_ROLES, PERMISSION_NODES
from core.role_service import RoleService
from dependencies.auth import CurrentUser, get_current_user, requires_permission
from dependencies.rbac import get_role_service
from models.rbac import UserRoleAssign

router = APIRouter(
    prefix="/users",
    tags=["Users"],
)


# ============================================================
# LIST USERS (with resolved role name)
# ============================================================
@router.get(
    "",
    dependencies=[Depends(requires_permission(PERMISSION_NODES["USERS_VIEW"]))],
)
def list_users(service: RoleService = Depends(get_role_service)):
    users = []
    for user, effective in service.list_users():
        users.append({
            **user.model_dump(),
            "role_name": effective.name,
        })
    return {"users": users}


# ============================================================
# CURRENT USER'S PERMISSIONS
# ============================================================
@router.get("/me/permissions")
def my_permissions(current_user: CurrentUser = Depends(get_current_user)):
    """
    Effective permission codes of the token holder, for client-side
    gating. ``*`` means every permission.
    """
    return {
        "user_id": current_user.id,
        "permissions": current_user.permissions,
        "is_admin": current_user.is_admin,
    }


# ============================================================
# BIND USER TO ROLE
# ============================================================
@router.patch(
    "/{user_id}/role",
    dependencies=[Depends(requires_permission(MANAGE_ROLES))],
)
def assign_user_role(
    user_id: str,
    payload: UserRoleAssign,
    service: RoleService = Depends(get_role_service),
):
    user = service.assign_user_role(user_id, payload.role_id)
    return {"user": user}
