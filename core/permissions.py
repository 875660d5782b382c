# ============================================
# PERMISSION CATALOG
# ============================================
# Every permission node the dashboard knows about. The ``permissions``
# table is seeded from this list (migrations/002_seed_rbac.sql); changes
# here ship with a deployment and bump CATALOG_VERSION.
from typing import Iterable, List

from models.rbac import PermissionNode

CATALOG_VERSION = 3

PERMISSION_NODES = {

    # =====================================================
    # PROJECTS
    # =====================================================
    "PROJECTS_VIEW": "projects.view",
    "PROJECTS_CREATE": "projects.create",
    "PROJECTS_EDIT": "projects.edit",
    "PROJECTS_DELETE": "projects.delete",
    "PROJECTS_ASSIGN": "projects.assign",
    "PROJECTS_VIEW_BUDGET": "projects.view_budget",

    # =====================================================
    # DESIGNS
    # =====================================================
    "DESIGNS_VIEW": "designs.view",
    "DESIGNS_UPLOAD": "designs.upload",
    "DESIGNS_DELETE": "designs.delete",
    "DESIGNS_APPROVE": "designs.approve",
    "DESIGNS_FREEZE": "designs.freeze",
    "DESIGNS_COMMENT": "designs.comment",

    # =====================================================
    # BOQ
    # =====================================================
    "BOQ_VIEW": "boq.view",
    "BOQ_CREATE": "boq.create",
    "BOQ_EDIT": "boq.edit",
    "BOQ_DELETE": "boq.delete",
    "BOQ_IMPORT": "boq.import",

    # =====================================================
    # PROPOSALS FOR CLIENT
    # =====================================================
    "PROPOSALS_VIEW": "proposals.view",
    "PROPOSALS_CREATE": "proposals.create",
    "PROPOSALS_SEND": "proposals.send",
    "PROPOSALS_APPROVE": "proposals.approve",
    "PROPOSALS_REJECT": "proposals.reject",
    "PROPOSALS_DELETE": "proposals.delete",

    # =====================================================
    # ORDERS, INVOICES, PAYMENTS, SUPPLIERS
    # =====================================================
    "ORDERS_VIEW": "orders.view",
    "ORDERS_CREATE": "orders.create",
    "ORDERS_EDIT": "orders.edit",
    "ORDERS_DELETE": "orders.delete",

    "INVOICES_VIEW": "invoices.view",
    "INVOICES_CREATE": "invoices.create",
    "INVOICES_EDIT": "invoices.edit",
    "INVOICES_APPROVE": "invoices.approve",
    "INVOICES_DELETE": "invoices.delete",

    "PAYMENTS_VIEW": "payments.view",
    "PAYMENTS_CREATE": "payments.create",
    "PAYMENTS_EDIT": "payments.edit",
    "PAYMENTS_DELETE": "payments.delete",

    "SUPPLIERS_VIEW": "suppliers.view",
    "SUPPLIERS_CREATE": "suppliers.create",

    "FINANCE_VIEW": "finance.view",

    # =====================================================
    # INVENTORY (shown as expenses in the dashboard)
    # =====================================================
    "INVENTORY_VIEW": "inventory.view",
    "INVENTORY_ADD": "inventory.add",
    "INVENTORY_APPROVE": "inventory.approve",
    "INVENTORY_APPROVE_BILL": "inventory.approve_bill",
    "INVENTORY_REJECT_BILL": "inventory.reject_bill",
    "INVENTORY_RESUBMIT_BILL": "inventory.resubmit_bill",

    # =====================================================
    # OFFICE EXPENSES
    # =====================================================
    "OFFICE_EXPENSES_VIEW": "office_expenses.view",
    "OFFICE_EXPENSES_CREATE": "office_expenses.create",
    "OFFICE_EXPENSES_APPROVE": "office_expenses.approve",
    "OFFICE_EXPENSES_DELETE": "office_expenses.delete",

    # =====================================================
    # WORK PROGRESS: updates & daily site logs
    # =====================================================
    "UPDATES_VIEW": "updates.view",
    "UPDATES_CREATE": "updates.create",

    "SITE_LOGS_VIEW": "site_logs.view",
    "SITE_LOGS_CREATE": "site_logs.create",
    "SITE_LOGS_EDIT": "site_logs.edit",
    "SITE_LOGS_DELETE": "site_logs.delete",

    # =====================================================
    # SNAGS
    # =====================================================
    "SNAGS_VIEW": "snags.view",
    "SNAGS_CREATE": "snags.create",
    "SNAGS_RESOLVE": "snags.resolve",
    "SNAGS_VERIFY": "snags.verify",

    # =====================================================
    # TASKS
    # =====================================================
    "TASKS_VIEW": "tasks.view",
    "TASKS_CREATE": "tasks.create",
    "TASKS_EDIT": "tasks.edit",
    "TASKS_BULK": "tasks.bulk",

    # =====================================================
    # ATTENDANCE, LEAVES, PAYROLL
    # =====================================================
    "ATTENDANCE_VIEW": "attendance.view",
    "ATTENDANCE_LOG": "attendance.log",
    "LEAVES_VIEW": "leaves.view",
    "LEAVES_APPLY": "leaves.apply",
    "LEAVES_APPROVE": "leaves.approve",
    "PAYROLL_VIEW": "payroll.view",
    "PAYROLL_MANAGE": "payroll.manage",
    "PAYROLL_CONFIG": "payroll.config",

    # =====================================================
    # USER MANAGEMENT
    # =====================================================
    "USERS_VIEW": "users.view",
    "USERS_CREATE": "users.create",
    "USERS_EDIT": "users.edit",
    "USERS_DELETE": "users.delete",
    "USERS_MANAGE_ROLES": "users.manage_roles",

    # =====================================================
    # ORGANIZATION SETTINGS
    # =====================================================
    "SETTINGS_VIEW": "settings.view",
    "SETTINGS_EDIT": "settings.edit",
    "SETTINGS_WORKFLOWS": "settings.workflows",
}

# Required to create, edit or delete roles and to rebind users
MANAGE_ROLES = PERMISSION_NODES["USERS_MANAGE_ROLES"]

# Grants everything; held by the legacy "admin" label
WILDCARD = "*"


# ============================================
# SEEDED SYSTEM ROLES
# ============================================
SYSTEM_ROLE_PERMISSIONS = {

    # Full system access
    "Admin": list(PERMISSION_NODES.values()),

    # Standard employee access
    "Employee": [
        "projects.view", "projects.create", "projects.edit",
        "boq.view", "boq.edit",
        "orders.view", "orders.create", "invoices.create",
        "inventory.view", "inventory.add",
        "office_expenses.view", "office_expenses.create",
        "designs.view", "designs.upload",
        "snags.view", "snags.create", "snags.resolve",
        "site_logs.view", "site_logs.create",
        "tasks.view", "attendance.log", "leaves.apply",
        "users.view",
    ],
}


def sort_catalog(nodes: Iterable[PermissionNode]) -> List[PermissionNode]:
    """Stable catalog order: module, then action, then code."""
    return sorted(
        nodes,
        key=lambda n: (n.module or n.code.split(".", 1)[0], n.action or "", n.code),
    )
