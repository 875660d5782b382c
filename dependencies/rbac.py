# dependencies/rbac.py

from fastapi import Depends

from core.config import settings
from core.errors import RBACError
from core.role_service import RoleService
from core.role_store import SupabaseRoleStore
from core.supabase_client import get_supabase_client


def get_role_store() -> SupabaseRoleStore:
    """Role store for the configured organization (ORG_SLUG)."""
    client = get_supabase_client()
    if not client:
        raise RBACError("Supabase client not configured")
    return SupabaseRoleStore.for_org(client, settings.ORG_SLUG)


def get_role_service(store=Depends(get_role_store)) -> RoleService:
    return RoleService(store)
