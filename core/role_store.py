# core/role_store.py

"""
Supabase table access for roles, permissions and their grants.

Every method returns plain rows (dicts). Validation and business rules live
in core.role_service; this layer only talks to PostgREST and translates
its failures into the RBAC error taxonomy.
"""

from collections import Counter
from typing import Iterable, List, Optional

from supabase import Client

from core.errors import NotFound, handle_supabase_error
from core.logging_config import logger


ROLE_SELECT = "*, role_permissions(permission_id, permissions(*))"
USER_SELECT = "id, email, full_name, designation, role, role_id, roles(id, name)"


def _escape_like(value: str) -> str:
    # PostgREST reads "*" as "%" and has no escape for it, so it becomes a
    # single-character wildcard; callers confirm the exact match.
    return (
        value.replace("\\", "\\\\")
        .replace("%", "\\%")
        .replace("_", "\\_")
        .replace("*", "_")
    )


class SupabaseRoleStore:
    """Roles of one organization, read and written through Supabase."""

    def __init__(self, client: Client, org_id: str):
        self.client = client
        self.org_id = org_id

    @classmethod
    def for_org(cls, client: Client, org_slug: str) -> "SupabaseRoleStore":
        try:
            rows = (
                client.table("organizations")
                .select("id")
                .eq("slug", org_slug)
                .limit(1)
                .execute()
            ).data
        except Exception as e:
            raise handle_supabase_error(e, "Failed to load organization") from e

        if not rows:
            raise NotFound(f"Organization '{org_slug}' not found")

        return cls(client, str(rows[0]["id"]))

    # ============================================================
    # Permission catalog
    # ============================================================
    def list_permissions(self) -> List[dict]:
        try:
            result = (
                self.client.table("permissions")
                .select("*")
                .order("module")
                .order("action")
                .execute()
            )
        except Exception as e:
            raise handle_supabase_error(e, "Failed to fetch permissions") from e
        return result.data or []

    def existing_permission_ids(self, permission_ids: Iterable[str]) -> set:
        ids = list(permission_ids)
        if not ids:
            return set()
        try:
            result = (
                self.client.table("permissions")
                .select("id")
                .in_("id", ids)
                .execute()
            )
        except Exception as e:
            raise handle_supabase_error(e, "Failed to look up permissions") from e
        return {str(row["id"]) for row in (result.data or [])}

    # ============================================================
    # Roles
    # ============================================================
    def list_roles(self) -> List[dict]:
        try:
            result = (
                self.client.table("roles")
                .select(ROLE_SELECT)
                .eq("org_id", self.org_id)
                .order("name")
                .execute()
            )
        except Exception as e:
            raise handle_supabase_error(e, "Failed to fetch roles") from e
        return result.data or []

    def get_role(self, role_id: str) -> Optional[dict]:
        try:
            rows = (
                self.client.table("roles")
                .select(ROLE_SELECT)
                .eq("org_id", self.org_id)
                .eq("id", role_id)
                .limit(1)
                .execute()
            ).data
        except Exception as e:
            raise handle_supabase_error(e, "Failed to fetch role") from e
        return rows[0] if rows else None

    def find_role_by_name(self, name: str, exclude_id: Optional[str] = None) -> Optional[dict]:
        """Case-insensitive exact-name lookup within the organization."""
        try:
            query = (
                self.client.table("roles")
                .select("id, name")
                .eq("org_id", self.org_id)
                .ilike("name", _escape_like(name))
            )
            if exclude_id:
                query = query.neq("id", exclude_id)
            rows = query.execute().data
        except Exception as e:
            raise handle_supabase_error(e, "Failed to check role name") from e

        wanted = name.lower()
        for row in rows or []:
            if (row.get("name") or "").lower() == wanted:
                return row
        return None

    def insert_role(self, data: dict) -> dict:
        try:
            result = (
                self.client.table("roles")
                .insert({**data, "org_id": self.org_id})
                .execute()
            )
        except Exception as e:
            raise handle_supabase_error(e, "Failed to create role") from e
        if not result.data:
            raise handle_supabase_error(Exception("insert returned no rows"), "Failed to create role")
        return result.data[0]

    def update_role(self, role_id: str, data: dict) -> dict:
        try:
            result = (
                self.client.table("roles")
                .update(data)
                .eq("org_id", self.org_id)
                .eq("id", role_id)
                .execute()
            )
        except Exception as e:
            raise handle_supabase_error(e, "Failed to update role") from e
        if not result.data:
            raise NotFound(f"Role {role_id} not found")
        return result.data[0]

    def delete_role(self, role_id: str):
        try:
            (
                self.client.table("roles")
                .delete()
                .eq("org_id", self.org_id)
                .eq("id", role_id)
                .execute()
            )
        except Exception as e:
            raise handle_supabase_error(e, "Failed to delete role") from e

    def replace_role_permissions(self, role_id: str, permission_ids: List[str]):
        """
        Swap the whole grant set in one transaction.
        See migrations/001_rbac_schema.sql for replace_role_permissions().
        """
        try:
            (
                self.client.rpc(
                    "replace_role_permissions",
                    {"p_role_id": role_id, "p_permission_ids": list(permission_ids)},
                )
                .execute()
            )
        except Exception as e:
            raise handle_supabase_error(e, "Failed to update role permissions") from e

    def role_permission_codes(self, role_id: str) -> List[str]:
        try:
            result = (
                self.client.table("role_permissions")
                .select("permissions(code)")
                .eq("role_id", role_id)
                .execute()
            )
        except Exception as e:
            raise handle_supabase_error(e, "Failed to fetch role permissions") from e

        codes = []
        for row in result.data or []:
            perm = row.get("permissions") or {}
            if perm.get("code"):
                codes.append(perm["code"])
        return codes

    # ============================================================
    # Users
    # ============================================================
    def user_counts(self) -> dict:
        """role_id → number of users bound to it."""
        try:
            result = (
                self.client.table("users")
                .select("role_id")
                .not_.is_("role_id", "null")
                .execute()
            )
        except Exception as e:
            raise handle_supabase_error(e, "Failed to count role users") from e
        return dict(Counter(str(row["role_id"]) for row in (result.data or []) if row.get("role_id")))

    def count_role_users(self, role_id: str) -> int:
        try:
            result = (
                self.client.table("users")
                .select("id")
                .eq("role_id", role_id)
                .execute()
            )
        except Exception as e:
            raise handle_supabase_error(e, "Failed to count role users") from e
        return len(result.data or [])

    def list_users(self) -> List[dict]:
        try:
            result = (
                self.client.table("users")
                .select(USER_SELECT)
                .order("full_name")
                .execute()
            )
        except Exception as e:
            raise handle_supabase_error(e, "Failed to fetch users") from e
        return result.data or []

    def get_user(self, user_id: str) -> Optional[dict]:
        try:
            rows = (
                self.client.table("users")
                .select(USER_SELECT)
                .eq("id", user_id)
                .limit(1)
                .execute()
            ).data
        except Exception as e:
            raise handle_supabase_error(e, "Failed to fetch user") from e
        return rows[0] if rows else None

    def update_user_role(self, user_id: str, role_id: Optional[str]) -> dict:
        try:
            result = (
                self.client.table("users")
                .update({"role_id": role_id})
                .eq("id", user_id)
                .execute()
            )
        except Exception as e:
            raise handle_supabase_error(e, "Failed to update user role") from e
        if not result.data:
            raise NotFound(f"User {user_id} not found")
        logger.info(f"User {user_id} bound to role {role_id}")
        return result.data[0]
