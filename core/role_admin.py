# core/role_admin.py

"""
Role administration workflow behind the organization "Roles" tab.

    closed ──open_create()──▶ creating ──save()/cancel()──▶ closed
    closed ──open_edit()────▶ editing  ──save()/cancel()──▶ closed

While a panel is open, name/description edits, module expand/collapse
and permission checkboxes only touch the local RoleForm. Nothing is sent
until save() and the displayed role list only changes after a save
succeeds and the list is re-fetched.
"""

from typing import Dict, List, Optional, Sequence, Set, Tuple

from pydantic import BaseModel, Field

from core.errors import NotFound, SystemRoleNameLocked, SystemRoleProtected, ValidationFailed
from core.logging_config import logger
from core.module_groups import MODULE_DEFINITIONS, group_by_module, modules_with_grants
from core.rbac_client import RBACClient
from core.role_service import clean_role_name
from models.enums import PanelState
from models.rbac import ModuleDefinition, PermissionNode, Role


class RoleForm(BaseModel):
    """In-progress edits of the open panel."""
    name: str = ""
    description: str = ""
    permission_ids: Set[str] = Field(default_factory=set)
    expanded_modules: List[str] = Field(default_factory=list)


class RoleAdminWorkflow:
    def __init__(self, client: RBACClient, modules: Sequence[ModuleDefinition] = MODULE_DEFINITIONS):
        self.client = client
        self.modules = modules

        self.state = PanelState.closed
        self.form = RoleForm()
        self.editing_role: Optional[Role] = None

        # Last known good data from the API
        self.roles: List[Role] = []
        self.catalog: List[PermissionNode] = []

    # ============================================================
    # Loading
    # ============================================================
    def refresh(self) -> List[Role]:
        """
        Re-fetch the role list (and the catalog on first load).
        On failure the error propagates and the previous list stays.
        """
        self._ensure_catalog()
        self.roles = self.client.list_roles()
        return self.roles

    def _ensure_catalog(self):
        if not self.catalog:
            self.catalog = self.client.list_permissions()

    def grouped_catalog(self) -> Tuple[Dict[str, List[PermissionNode]], List[PermissionNode]]:
        return group_by_module(self.catalog, self.modules)

    def _role(self, role_id: str) -> Role:
        for role in self.roles:
            if role.id == role_id:
                return role
        raise NotFound(f"Role {role_id} not found")

    # ============================================================
    # Panel transitions
    # ============================================================
    def open_create(self):
        self.editing_role = None
        self.form = RoleForm()
        self.state = PanelState.creating

    def open_edit(self, role_id: str):
        role = self._role(role_id)
        # Module pre-expansion needs the catalog even before the first refresh()
        self._ensure_catalog()
        granted = set(role.permission_ids)

        self.editing_role = role
        self.form = RoleForm(
            name=role.name,
            description=role.description or "",
            permission_ids=granted,
            expanded_modules=modules_with_grants(self.catalog, granted, self.modules),
        )
        self.state = PanelState.editing

    def cancel(self):
        """Discard the panel. Requests already sent still complete."""
        self.editing_role = None
        self.form = RoleForm()
        self.state = PanelState.closed

    # ============================================================
    # Local edits
    # ============================================================
    def _require_open(self):
        if self.state == PanelState.closed:
            raise ValidationFailed("No role panel is open")

    @property
    def name_locked(self) -> bool:
        return self.editing_role is not None and self.editing_role.is_system

    def set_name(self, name: str):
        self._require_open()
        if self.name_locked and name.strip() != self.editing_role.name:
            raise SystemRoleNameLocked(f"System role '{self.editing_role.name}' cannot be renamed")
        self.form.name = name

    def set_description(self, description: str):
        self._require_open()
        self.form.description = description

    def toggle_module(self, module_name: str):
        self._require_open()
        expanded = self.form.expanded_modules
        if module_name in expanded:
            expanded.remove(module_name)
        else:
            expanded.append(module_name)

    def toggle_permission(self, permission_id: str):
        self._require_open()
        granted = self.form.permission_ids
        if permission_id in granted:
            granted.discard(permission_id)
        else:
            granted.add(permission_id)

    def is_expanded(self, module_name: str) -> bool:
        return module_name in self.form.expanded_modules

    def is_granted(self, permission_id: str) -> bool:
        return permission_id in self.form.permission_ids

    # ============================================================
    # Persistence
    # ============================================================
    def save(self) -> List[Role]:
        """
        Persist the open panel, then refresh and close.
        Editing saves the metadata first and only then the grants.
        Any failure leaves the panel open with its edits intact.
        """
        self._require_open()
        name = clean_role_name(self.form.name)
        description = self.form.description.strip()
        permission_ids = sorted(self.form.permission_ids)

        if self.state == PanelState.creating:
            role = self.client.create_role(name, description, permission_ids)
            logger.info(f"Created role {role.name} ({role.id})")
        else:
            role_id = self.editing_role.id
            self.client.update_role(role_id, name=name, description=description)
            self.client.set_role_permissions(role_id, permission_ids)
            logger.info(f"Saved role {name} ({role_id}) with {len(permission_ids)} permissions")

        self.cancel()
        return self.refresh()

    def delete(self, role_id: str) -> List[Role]:
        role = self._role(role_id)
        if role.is_system:
            raise SystemRoleProtected("System roles cannot be deleted")

        self.client.delete_role(role_id)
        return self.refresh()
