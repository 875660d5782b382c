# models/rbac.py

from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from core.logging_config import logger
from models.enums import RoleKind


# ===============================================================
# PERMISSION CATALOG
# ===============================================================

class PermissionNode(BaseModel):
    """
    One grantable capability, identified by a dotted code
    such as ``projects.edit``. Rows come from the ``permissions`` table.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    code: str
    description: Optional[str] = None
    module: Optional[str] = None
    action: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, v):
        if v is None or str(v).strip() == "":
            raise ValueError("permission id is required")
        return str(v)

    @field_validator("code")
    @classmethod
    def _normalize_code(cls, v: str) -> str:
        code = v.strip().lower()
        module_key, sep, action = code.partition(".")
        if not sep or not module_key or not action or "." in action:
            raise ValueError(f"permission code must look like '<module>.<action>', got {v!r}")
        return code


def valid_grants(items) -> List[PermissionNode]:
    """
    Joined grants, de-duplicated by id. A grant whose catalog row is
    malformed is logged and dropped; the role carrying it is kept.
    """
    if not items:
        return []
    seen = set()
    unique = []
    for item in items:
        # Joins on deleted catalog rows come back as null
        if item is None:
            continue
        if not isinstance(item, PermissionNode):
            try:
                item = PermissionNode.model_validate(item)
            except ValidationError as e:
                logger.warning(f"Dropping malformed grant {item!r}: {e.errors()[0]['msg']}")
                continue
        if item.id in seen:
            continue
        seen.add(item.id)
        unique.append(item)
    return unique


class ModuleDefinition(BaseModel):
    """Display grouping of permission codes, matched by prefix."""
    model_config = ConfigDict(frozen=True)

    module_name: str
    prefixes: tuple[str, ...]


# ===============================================================
# ROLES
# ===============================================================

class RoleBase(BaseModel):
    name: str
    description: Optional[str] = None


class Role(RoleBase):
    """
    A named bundle of permission grants, as returned by GET /roles.
    ``user_count`` is computed by the API and read-only here.
    """
    id: str
    is_system: bool = False
    user_count: int = 0
    permissions: List[PermissionNode] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, v):
        return str(v)

    @field_validator("is_system", mode="before")
    @classmethod
    def _null_is_custom(cls, v):
        # Column defaults to false but older rows may hold NULL
        return bool(v)

    @field_validator("permissions", mode="before")
    @classmethod
    def _dedupe_permissions(cls, v):
        return valid_grants(v)

    @property
    def kind(self) -> RoleKind:
        return RoleKind.system if self.is_system else RoleKind.custom

    @property
    def permission_ids(self) -> set:
        return {p.id for p in self.permissions}

    @property
    def permission_codes(self) -> frozenset:
        return frozenset(p.code for p in self.permissions)

    @classmethod
    def from_row(cls, row: dict, user_count: int = 0) -> "Role":
        """
        Build a Role from a ``roles`` row joined as
        ``role_permissions(permission_id, permissions(*))``.
        """
        data = {k: v for k, v in row.items() if k != "role_permissions"}
        if "permissions" not in data:
            data["permissions"] = [
                rp.get("permissions") for rp in (row.get("role_permissions") or [])
            ]
        data["user_count"] = user_count
        return cls.model_validate(data)


class RoleCreate(RoleBase):
    """Payload for POST /roles."""
    permission_ids: List[str] = Field(default_factory=list)


class RoleUpdate(BaseModel):
    """Payload for PATCH /roles/{id}. All fields optional."""
    name: Optional[str] = None
    description: Optional[str] = None


class RolePermissionsUpdate(BaseModel):
    """Payload for PUT /roles/{id}/permissions (full replacement)."""
    permission_ids: List[str] = Field(default_factory=list)


# ===============================================================
# USERS (referenced, not owned)
# ===============================================================

class JoinedRole(BaseModel):
    """``roles`` object embedded on a user row by a PostgREST join."""
    id: Optional[str] = None
    name: Optional[str] = None
    permissions: List[PermissionNode] = Field(default_factory=list)

    @field_validator("permissions", mode="before")
    @classmethod
    def _drop_bad_grants(cls, v):
        return valid_grants(v)


class UserRecord(BaseModel):
    """
    Mirrors a row of the public ``users`` table.
    ``role`` is the legacy free-text label kept from before roles existed.
    """
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    designation: Optional[str] = None
    role_id: Optional[str] = None
    role: Optional[str] = None
    roles: Optional[JoinedRole] = None

    @field_validator("id", "role_id", mode="before")
    @classmethod
    def _uuid_to_str(cls, v):
        return None if v is None else str(v)

    @field_validator("roles", mode="before")
    @classmethod
    def _single_joined_role(cls, v):
        # PostgREST returns a list when it cannot infer a to-one join
        if isinstance(v, list):
            return v[0] if v else None
        return v


class UserRoleAssign(BaseModel):
    """Payload for PATCH /users/{id}/role. ``None`` unbinds the user."""
    role_id: Optional[str] = None


class EffectiveRole(BaseModel):
    """What a user resolves to: a display name and a permission set."""
    model_config = ConfigDict(frozen=True)

    name: str
    permissions: frozenset = frozenset()
    role_id: Optional[str] = None
