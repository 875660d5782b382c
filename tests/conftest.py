# tests/conftest.py

"""
Pytest configuration and shared fixtures for testing.
"""

import copy
import itertools

import pytest
from fastapi.testclient import TestClient
from typing import Generator
from unittest.mock import Mock

from main import create_app
from core.cache import cache_clear
from core.rbac_client import RBACClient
from core.role_service import RoleService
from dependencies.auth import CurrentUser, get_current_user
from dependencies.rbac import get_role_store


CATALOG = [
    {"id": "p-view", "code": "projects.view", "module": "projects", "action": "view", "description": "View projects"},
    {"id": "p-edit", "code": "projects.edit", "module": "projects", "action": "edit", "description": "Edit project details"},
    {"id": "oe-approve", "code": "office_expenses.approve", "module": "office_expenses", "action": "approve", "description": "Approve office expenses"},
    {"id": "snag-view", "code": "snags.view", "module": "snags", "action": "view", "description": "View snags"},
    {"id": "u-view", "code": "users.view", "module": "users", "action": "view", "description": "View users"},
    {"id": "u-roles", "code": "users.manage_roles", "module": "users", "action": "manage_roles", "description": "Manage roles"},
    {"id": "rep-export", "code": "reports.export", "module": "reports", "action": "export", "description": "Export reports"},
]


class InMemoryRoleStore:
    """
    Stand-in for SupabaseRoleStore that keeps rows in dicts and
    records every write in ``self.writes``.
    """

    def __init__(self):
        self._ids = itertools.count(1)
        self.permissions = {p["id"]: dict(p) for p in CATALOG}
        self.roles = {}
        self.grants = {}
        self.users = {}
        self.writes = []

    # --- seeding helpers -------------------------------------------------
    def add_role(self, role_id, name, permission_ids=(), is_system=False, description=None):
        self.roles[role_id] = {
            "id": role_id,
            "name": name,
            "description": description,
            "is_system": is_system,
        }
        self.grants[role_id] = set(permission_ids)

    def add_user(self, user_id, role_id=None, role=None, full_name=None):
        self.users[user_id] = {
            "id": user_id,
            "email": f"{user_id}@example.com",
            "full_name": full_name or user_id,
            "designation": None,
            "role": role,
            "role_id": role_id,
        }

    def _role_row(self, role_id):
        row = copy.deepcopy(self.roles[role_id])
        row["role_permissions"] = [
            {"permission_id": pid, "permissions": dict(self.permissions[pid])}
            for pid in sorted(self.grants.get(role_id, set()))
        ]
        return row

    def _user_row(self, user_id):
        row = dict(self.users[user_id])
        role = self.roles.get(row["role_id"]) if row["role_id"] else None
        row["roles"] = {"id": role["id"], "name": role["name"]} if role else None
        return row

    # --- catalog ---------------------------------------------------------
    def list_permissions(self):
        return [dict(p) for p in self.permissions.values()]

    def existing_permission_ids(self, permission_ids):
        return {pid for pid in permission_ids if pid in self.permissions}

    # --- roles -----------------------------------------------------------
    def list_roles(self):
        return [self._role_row(rid) for rid in sorted(self.roles, key=lambda r: self.roles[r]["name"])]

    def get_role(self, role_id):
        return self._role_row(role_id) if role_id in self.roles else None

    def find_role_by_name(self, name, exclude_id=None):
        for role in self.roles.values():
            if role["name"].lower() == name.lower() and role["id"] != exclude_id:
                return {"id": role["id"], "name": role["name"]}
        return None

    def insert_role(self, data):
        role_id = f"role-{next(self._ids)}"
        self.writes.append(("insert_role", role_id))
        self.roles[role_id] = {"id": role_id, "description": None, "is_system": False, **data}
        self.grants[role_id] = set()
        return dict(self.roles[role_id])

    def update_role(self, role_id, data):
        self.writes.append(("update_role", role_id))
        self.roles[role_id].update(data)
        return dict(self.roles[role_id])

    def delete_role(self, role_id):
        self.writes.append(("delete_role", role_id))
        self.roles.pop(role_id, None)
        self.grants.pop(role_id, None)

    def replace_role_permissions(self, role_id, permission_ids):
        self.writes.append(("replace_role_permissions", role_id))
        self.grants[role_id] = set(permission_ids)

    def role_permission_codes(self, role_id):
        return [self.permissions[pid]["code"] for pid in self.grants.get(role_id, set())]

    # --- users -----------------------------------------------------------
    def user_counts(self):
        counts = {}
        for user in self.users.values():
            if user["role_id"]:
                counts[user["role_id"]] = counts.get(user["role_id"], 0) + 1
        return counts

    def count_role_users(self, role_id):
        return self.user_counts().get(role_id, 0)

    def list_users(self):
        return [self._user_row(uid) for uid in sorted(self.users)]

    def get_user(self, user_id):
        return self._user_row(user_id) if user_id in self.users else None

    def update_user_role(self, user_id, role_id):
        self.writes.append(("update_user_role", user_id))
        self.users[user_id]["role_id"] = role_id
        return dict(self.users[user_id])


@pytest.fixture
def store() -> InMemoryRoleStore:
    """Catalog of seven permissions, the two system roles and a few users."""
    s = InMemoryRoleStore()
    s.add_role("role-admin", "Admin", [p["id"] for p in CATALOG], is_system=True, description="Full system access")
    s.add_role("role-employee", "Employee", ["p-view", "snag-view"], is_system=True, description="Standard employee access")
    s.add_user("admin-user-id", role_id="role-admin", role="admin")
    s.add_user("employee-user-id", role_id="role-employee", role="employee")
    s.add_user("legacy-user-id", role="employee")
    return s


@pytest.fixture
def service(store) -> RoleService:
    return RoleService(store)


@pytest.fixture
def admin_user():
    return CurrentUser(
        id="admin-user-id",
        email="admin@example.com",
        full_name="Site Admin",
        permissions=["*"],
    )


@pytest.fixture
def employee_user():
    return CurrentUser(
        id="employee-user-id",
        email="employee@example.com",
        permissions=["projects.view", "snags.view"],
    )


@pytest.fixture(scope="function")
def app(store, admin_user):
    """Test application wired to the in-memory store, signed in as admin."""
    application = create_app()
    application.dependency_overrides[get_role_store] = lambda: store
    application.dependency_overrides[get_current_user] = lambda: admin_user
    yield application
    application.dependency_overrides = {}


@pytest.fixture
def sign_in(app):
    """Switch the signed-in user: sign_in(user) or sign_in(None) for anonymous."""
    from fastapi import HTTPException

    def _sign_in(user):
        if user is None:
            def anonymous():
                raise HTTPException(status_code=401, detail="Invalid or expired authentication token")
            app.dependency_overrides[get_current_user] = anonymous
        else:
            app.dependency_overrides[get_current_user] = lambda: user
    return _sign_in


@pytest.fixture(scope="function")
def client(app) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI application."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def rbac_client(client) -> RBACClient:
    """RBACClient talking to the test application in-process."""
    return RBACClient(base_url="http://testserver", token="test-token", session=client)


@pytest.fixture
def mock_supabase_client():
    """Create a mock Supabase client."""
    mock_client = Mock()
    mock_table = Mock()
    mock_client.table.return_value = mock_table
    return mock_client


@pytest.fixture(autouse=True)
def reset_cache():
    """Reset the permission cache before each test."""
    cache_clear()
    yield
    cache_clear()
