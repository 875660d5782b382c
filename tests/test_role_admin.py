# tests/test_role_admin.py

"""
Tests for the role administration workflow.
"""

import pytest
from unittest.mock import Mock

from core.errors import (
    NetworkFailure,
    NotFound,
    SystemRoleNameLocked,
    SystemRoleProtected,
    ValidationFailed,
)
from core.role_admin import RoleAdminWorkflow
from models.enums import PanelState
from models.rbac import PermissionNode, Role


@pytest.fixture
def workflow(rbac_client):
    wf = RoleAdminWorkflow(rbac_client)
    wf.refresh()
    return wf


def offline_workflow(roles=None):
    """Workflow over a Mock client, preloaded with ``roles``."""
    client = Mock()
    client.list_permissions.return_value = [PermissionNode(id="p-view", code="projects.view")]
    client.list_roles.return_value = roles or [Role(id="r1", name="Designer")]
    wf = RoleAdminWorkflow(client)
    wf.refresh()
    return wf, client


# ============================================================
# Loading
# ============================================================
def test_refresh_loads_catalog_and_roles(workflow):
    assert workflow.state == PanelState.closed
    assert {r.name for r in workflow.roles} == {"Admin", "Employee"}
    assert len(workflow.catalog) == 7

    grouped, other = workflow.grouped_catalog()
    assert "Project Management" in grouped
    assert [n.code for n in other] == ["reports.export"]


def test_failed_refresh_keeps_last_known_roles():
    wf, client = offline_workflow()
    client.list_roles.side_effect = NetworkFailure("connection refused")

    with pytest.raises(NetworkFailure):
        wf.refresh()

    assert [r.name for r in wf.roles] == ["Designer"]


def test_catalog_is_fetched_once():
    wf, client = offline_workflow()
    wf.refresh()
    assert client.list_permissions.call_count == 1
    assert client.list_roles.call_count == 2


# ============================================================
# Panels
# ============================================================
def test_open_create_starts_blank(workflow):
    workflow.open_create()
    workflow.set_name("Draft")
    workflow.toggle_permission("p-view")
    workflow.cancel()

    workflow.open_create()

    assert workflow.state == PanelState.creating
    assert workflow.form.name == ""
    assert workflow.form.permission_ids == set()
    assert workflow.form.expanded_modules == []


def test_open_edit_prefills_and_expands_granted_modules(workflow):
    workflow.open_edit("role-employee")

    assert workflow.state == PanelState.editing
    assert workflow.form.name == "Employee"
    assert workflow.form.permission_ids == {"p-view", "snag-view"}
    assert workflow.form.expanded_modules == ["Project Management", "Snag & Audit"]
    assert workflow.is_expanded("Payroll") is False


def test_open_edit_unknown_role(workflow):
    with pytest.raises(NotFound):
        workflow.open_edit("missing")
    assert workflow.state == PanelState.closed


def test_cancel_sends_nothing(workflow, store):
    workflow.open_edit("role-employee")
    workflow.toggle_permission("oe-approve")
    workflow.set_description("changed")

    workflow.cancel()

    assert workflow.state == PanelState.closed
    assert store.writes == []
    assert store.grants["role-employee"] == {"p-view", "snag-view"}


def test_edits_require_an_open_panel(workflow):
    with pytest.raises(ValidationFailed):
        workflow.toggle_permission("p-view")
    with pytest.raises(ValidationFailed):
        workflow.save()


# ============================================================
# Local edits
# ============================================================
def test_toggles_stay_local_until_save(workflow, store):
    workflow.open_edit("role-employee")

    workflow.toggle_module("Payroll")
    workflow.toggle_module("Project Management")
    workflow.toggle_permission("oe-approve")
    workflow.toggle_permission("p-view")

    assert workflow.is_expanded("Payroll") is True
    assert workflow.is_expanded("Project Management") is False
    assert workflow.is_granted("oe-approve") is True
    assert workflow.is_granted("p-view") is False
    assert store.writes == []

    roles = {r.id: r for r in workflow.roles}
    assert roles["role-employee"].permission_ids == {"p-view", "snag-view"}


def test_system_role_name_is_locked_in_the_form(workflow):
    workflow.open_edit("role-admin")

    assert workflow.name_locked is True
    with pytest.raises(SystemRoleNameLocked):
        workflow.set_name("Owner")

    workflow.set_name("Admin")
    workflow.set_description("Everything")
    assert workflow.form.description == "Everything"


# ============================================================
# Save
# ============================================================
def test_save_new_role(workflow, store):
    workflow.open_create()
    workflow.set_name("  Site Lead ")
    workflow.set_description("Runs the site")
    workflow.toggle_permission("p-view")
    workflow.toggle_permission("oe-approve")

    roles = workflow.save()

    assert workflow.state == PanelState.closed
    created = {r.name: r for r in roles}["Site Lead"]
    assert created.permission_ids == {"p-view", "oe-approve"}
    assert created.description == "Runs the site"


def test_save_existing_role(workflow, store):
    workflow.open_edit("role-employee")
    workflow.toggle_permission("snag-view")
    workflow.toggle_permission("oe-approve")

    workflow.save()

    assert store.grants["role-employee"] == {"p-view", "oe-approve"}
    employee = {r.id: r for r in workflow.roles}["role-employee"]
    assert employee.permission_ids == {"p-view", "oe-approve"}


def test_save_with_all_grants_removed(workflow, store):
    workflow.open_edit("role-employee")
    workflow.toggle_permission("p-view")
    workflow.toggle_permission("snag-view")

    workflow.save()

    assert store.grants["role-employee"] == set()


def test_save_with_empty_name_sends_nothing(workflow, store):
    workflow.open_create()
    workflow.set_name("   ")
    workflow.toggle_permission("p-view")

    with pytest.raises(ValidationFailed):
        workflow.save()

    assert store.writes == []
    assert workflow.state == PanelState.creating
    assert workflow.is_granted("p-view") is True


def test_failed_save_keeps_panel_and_role_list():
    wf, client = offline_workflow()
    client.create_role.side_effect = NetworkFailure("connection refused")

    wf.open_create()
    wf.set_name("Accounts")
    wf.toggle_permission("p-view")

    with pytest.raises(NetworkFailure):
        wf.save()

    assert wf.state == PanelState.creating
    assert wf.form.name == "Accounts"
    assert wf.is_granted("p-view") is True
    assert [r.name for r in wf.roles] == ["Designer"]


def test_edit_saves_metadata_before_grants():
    wf, client = offline_workflow()
    client.update_role.side_effect = NetworkFailure("connection refused")

    wf.open_edit("r1")
    wf.toggle_permission("p-view")

    with pytest.raises(NetworkFailure):
        wf.save()

    client.set_role_permissions.assert_not_called()
    assert wf.state == PanelState.editing


# ============================================================
# Delete
# ============================================================
def test_delete_custom_role(workflow):
    workflow.open_create()
    workflow.set_name("Temp")
    workflow.save()
    temp = {r.name: r for r in workflow.roles}["Temp"]

    roles = workflow.delete(temp.id)

    assert "Temp" not in {r.name for r in roles}


def test_delete_system_role_is_refused_locally(workflow, store):
    with pytest.raises(SystemRoleProtected):
        workflow.delete("role-admin")
    assert store.writes == []


def test_delete_failure_keeps_role_list():
    wf, client = offline_workflow()
    client.delete_role.side_effect = NetworkFailure("connection refused")

    with pytest.raises(NetworkFailure):
        wf.delete("r1")

    assert [r.name for r in wf.roles] == ["Designer"]


def test_open_edit_before_refresh_loads_catalog():
    client = Mock()
    client.list_permissions.return_value = [
        PermissionNode(id="p-view", code="projects.view"),
        PermissionNode(id="snag-view", code="snags.view"),
    ]
    wf = RoleAdminWorkflow(client)
    wf.roles = [Role(id="r1", name="Supervisor", permissions=[PermissionNode(id="snag-view", code="snags.view")])]

    wf.open_edit("r1")

    client.list_permissions.assert_called_once()
    assert wf.form.expanded_modules == ["Snag & Audit"]
