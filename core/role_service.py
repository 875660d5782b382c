# core/role_service.py

"""
Role lifecycle and permission grants.

RoleService enforces the RBAC invariants on top of a role store
(core.role_store.SupabaseRoleStore in production):

  • role names are non-empty and unique within the organization
  • system roles cannot be deleted or renamed
  • permission grants are replaced as a whole, an empty set is valid
  • a role still bound to users cannot be deleted

Every successful mutation clears the permission cache. Callers are
expected to re-fetch the role list afterwards.
"""

from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple

from pydantic import ValidationError

from core.cache import cache_clear, cache_delete, cache_get, cache_set
from core.errors import (
    NotFound,
    RBACError,
    RoleInUse,
    RoleNameConflict,
    SystemRoleNameLocked,
    SystemRoleProtected,
    ValidationFailed,
)
from core.logging_config import logger
from core.permissions import WILDCARD, sort_catalog
from core.roles import resolve_effective_role
from core.utils import sanitize, unique_ids
from models.rbac import EffectiveRole, PermissionNode, Role, UserRecord

LEGACY_ADMIN_LABEL = "admin"


def clean_role_name(name: Optional[str]) -> str:
    if name is None or not name.strip():
        raise ValidationFailed("Role name is required")
    return name.strip()


class RoleService:
    def __init__(self, store):
        self.store = store

    # ============================================================
    # Permission catalog
    # ============================================================
    def list_permissions(self) -> List[PermissionNode]:
        """The full catalog in stable order. Malformed rows are logged and skipped."""
        nodes = []
        for row in self.store.list_permissions():
            try:
                nodes.append(PermissionNode.model_validate(row))
            except ValidationError as e:
                logger.warning(f"Skipping malformed permission row {row.get('id')}: {e.errors()[0]['msg']}")
        return sort_catalog(nodes)

    def _check_permission_ids(self, permission_ids: Iterable[str]) -> List[str]:
        ids = unique_ids(permission_ids)
        if not ids:
            return ids

        known = self.store.existing_permission_ids(ids)
        missing = [i for i in ids if i not in known]
        if missing:
            raise NotFound(f"Unknown permission ids: {', '.join(missing)}")
        return ids

    # ============================================================
    # Roles
    # ============================================================
    def list_roles(self) -> List[Role]:
        counts = self.store.user_counts()
        return [
            Role.from_row(row, counts.get(str(row["id"]), 0))
            for row in self.store.list_roles()
        ]

    def get_role(self, role_id: str) -> Role:
        row = self.store.get_role(role_id)
        if not row:
            raise NotFound(f"Role {role_id} not found")
        return Role.from_row(row, self.store.count_role_users(role_id))

    def create_role(
        self,
        name: Optional[str],
        description: Optional[str] = None,
        permission_ids: Iterable[str] = (),
    ) -> Role:
        name = clean_role_name(name)
        ids = self._check_permission_ids(permission_ids)

        if self.store.find_role_by_name(name):
            raise RoleNameConflict(f"Role '{name}' already exists")

        row = self.store.insert_role(
            sanitize({"name": name, "description": description, "is_system": False})
        )
        role_id = str(row["id"])

        if ids:
            try:
                self.store.replace_role_permissions(role_id, ids)
            except RBACError:
                # No half-created role left behind
                self.store.delete_role(role_id)
                raise

        cache_clear()
        logger.info(f"Role created: {name} ({role_id}) with {len(ids)} permissions")
        return self.get_role(role_id)

    def update_role_meta(
        self,
        role_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Role:
        """
        Edit name and/or description. ``None`` leaves a field unchanged.
        System roles keep their name; their description stays editable.
        """
        existing = self.get_role(role_id)
        updates = {}

        if name is not None:
            name = clean_role_name(name)
            if name != existing.name:
                if existing.is_system:
                    logger.warning(f"Refused rename of system role {existing.name} ({role_id})")
                    raise SystemRoleNameLocked(f"System role '{existing.name}' cannot be renamed")
                if self.store.find_role_by_name(name, exclude_id=role_id):
                    raise RoleNameConflict(f"Role '{name}' already exists")
                updates["name"] = name

        if description is not None:
            updates["description"] = description

        if not updates:
            return existing

        updates = sanitize(updates)
        updates["updated_at"] = datetime.now(timezone.utc).isoformat()
        self.store.update_role(role_id, updates)

        cache_clear()
        logger.info(f"Role updated: {role_id} fields={sorted(k for k in updates if k != 'updated_at')}")
        return self.get_role(role_id)

    def set_role_permissions(self, role_id: str, permission_ids: Iterable[str]):
        """Replace the role's grants with exactly ``permission_ids``."""
        self.get_role(role_id)
        ids = self._check_permission_ids(permission_ids)

        self.store.replace_role_permissions(role_id, ids)

        cache_clear()
        logger.info(f"Role {role_id} permissions replaced ({len(ids)} granted)")

    def delete_role(self, role_id: str):
        role = self.get_role(role_id)

        if role.is_system:
            logger.warning(f"Refused delete of system role {role.name} ({role_id})")
            raise SystemRoleProtected(f"System role '{role.name}' cannot be deleted")

        if role.user_count > 0:
            raise RoleInUse(f"Role '{role.name}' is assigned to {role.user_count} user(s)")

        self.store.delete_role(role_id)

        cache_clear()
        logger.info(f"Role deleted: {role.name} ({role_id})")

    # ============================================================
    # Users
    # ============================================================
    def _to_user(self, row: dict) -> Optional[UserRecord]:
        try:
            return UserRecord.model_validate(row)
        except ValidationError as e:
            logger.warning(f"Skipping malformed user row {row.get('id')}: {e.errors()[0]['msg']}")
            return None

    def list_users(self) -> List[Tuple[UserRecord, EffectiveRole]]:
        roles = self.list_roles()
        users = [u for u in (self._to_user(row) for row in self.store.list_users()) if u]
        return [(user, resolve_effective_role(user, roles)) for user in users]

    def get_user(self, user_id: str) -> UserRecord:
        row = self.store.get_user(user_id)
        user = self._to_user(row) if row else None
        if user is None:
            raise NotFound(f"User {user_id} not found")
        return user

    def assign_user_role(self, user_id: str, role_id: Optional[str]) -> UserRecord:
        """Bind a user to a role, or unbind with ``None``."""
        self.get_user(user_id)
        if role_id:
            self.get_role(role_id)

        self.store.update_user_role(user_id, role_id or None)

        cache_delete(user_id)
        return self.get_user(user_id)

    def user_permission_codes(self, user_id: str) -> frozenset:
        """
        Effective permission codes for one user, cached.
        Unknown users and users without a role get an empty set.
        The legacy "admin" label is a master key.
        """
        cached = cache_get(user_id)
        if cached is not None:
            return cached

        row = self.store.get_user(user_id)
        user = self._to_user(row) if row else None

        if user is None:
            codes = frozenset()
        elif (user.role or "").strip().lower() == LEGACY_ADMIN_LABEL:
            codes = frozenset({WILDCARD})
        elif not user.role_id:
            codes = frozenset()
        else:
            codes = frozenset(c.lower() for c in self.store.role_permission_codes(user.role_id))

        cache_set(user_id, codes)
        return codes
