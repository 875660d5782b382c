# routers/permissions.py

from fastapi import APIRouter, Depends

from core.module_groups import group_by_module
from core.role_service import RoleService
from dependencies.auth import get_current_user
from dependencies.rbac import get_role_service

router = APIRouter(
    prefix="/permissions",
    tags=["Permissions"],
)


# -----------------------------------------------------
# GET /permissions
# Full catalog, plus the module grouping used by the role editor
# -----------------------------------------------------
@router.get("", dependencies=[Depends(get_current_user)])
def list_permissions(service: RoleService = Depends(get_role_service)):
    permissions = service.list_permissions()
    grouped, other = group_by_module(permissions)
    return {
        "permissions": permissions,
        "grouped": grouped,
        "other": other,
    }
