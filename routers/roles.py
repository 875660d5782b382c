# routers/roles.py

from fastapi import APIRouter, Depends

from core.permissions import MANAGE_ROLES
from core.role_service import RoleService
from dependencies.auth import get_current_user, requires_permission
from dependencies.rbac import get_role_service
from models.rbac import RoleCreate, RolePermissionsUpdate, RoleUpdate

router = APIRouter(
    prefix="/roles",
    tags=["Roles"],
)


# ============================================================
# LIST ROLES
# ============================================================
@router.get("", dependencies=[Depends(get_current_user)])
def list_roles(service: RoleService = Depends(get_role_service)):
    """
    All roles of the organization with their user count and
    joined permissions.
    """
    return {"roles": service.list_roles()}


# ============================================================
# CREATE ROLE
# ============================================================
@router.post(
    "",
    status_code=201,
    dependencies=[Depends(requires_permission(MANAGE_ROLES))],
)
def create_role(payload: RoleCreate, service: RoleService = Depends(get_role_service)):
    """Create a custom role. ``permission_ids`` may be empty."""
    role = service.create_role(payload.name, payload.description, payload.permission_ids)
    return {"role": role}


# ============================================================
# UPDATE ROLE
# ============================================================
@router.patch(
    "/{role_id}",
    dependencies=[Depends(requires_permission(MANAGE_ROLES))],
)
def update_role(role_id: str, payload: RoleUpdate, service: RoleService = Depends(get_role_service)):
    """
    Update name and/or description.
    System roles accept description changes only.
    """
    role = service.update_role_meta(role_id, payload.name, payload.description)
    return {"role": role}


# ============================================================
# DELETE ROLE
# ============================================================
@router.delete(
    "/{role_id}",
    dependencies=[Depends(requires_permission(MANAGE_ROLES))],
)
def delete_role(role_id: str, service: RoleService = Depends(get_role_service)):
    service.delete_role(role_id)
    return {"success": True}


# ============================================================
# ROLE PERMISSIONS
# ============================================================
@router.get("/{role_id}/permissions", dependencies=[Depends(get_current_user)])
def get_role_permissions(role_id: str, service: RoleService = Depends(get_role_service)):
    return {"permissions": service.get_role(role_id).permissions}


@router.put(
    "/{role_id}/permissions",
    dependencies=[Depends(requires_permission(MANAGE_ROLES))],
)
def set_role_permissions(
    role_id: str,
    payload: RolePermissionsUpdate,
    service: RoleService = Depends(get_role_service),
):
    """Replace the role's grants. An empty list removes every grant."""
    service.set_role_permissions(role_id, payload.permission_ids)
    return {"success": True}
