# core/module_groups.py

"""
Groups permission nodes into the modules shown in the role editor.

A node belongs to the first module, in declaration order, that has a
prefix matching its code. Nodes that match nothing land in "Other" and
are always returned.
"""

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from models.rbac import ModuleDefinition, PermissionNode

OTHER_MODULE = "Other"


def _module(name: str, *prefixes: str) -> ModuleDefinition:
    return ModuleDefinition(module_name=name, prefixes=prefixes)


# Singular and plural forms are both listed; older rows used "project.*"
MODULE_DEFINITIONS: Tuple[ModuleDefinition, ...] = (
    _module("Project Management", "project.", "projects."),
    _module("Design", "design.", "designs."),
    _module("BOQ", "boq."),
    _module("Proposals for Client", "proposal.", "proposals."),
    _module("Orders & Payments", "order.", "orders.", "invoice.", "invoices.",
            "payment.", "payments.", "supplier.", "suppliers.", "finance."),
    _module("Inventory", "inventory."),
    _module("Office Expenses", "office_expense.", "office_expenses."),
    _module("Site Updates", "update.", "updates.", "site_log.", "site_logs."),
    _module("Snag & Audit", "snag.", "snags."),
    _module("Tasks", "task.", "tasks."),
    _module("Attendance & Leave", "attendance.", "leave.", "leaves."),
    _module("Payroll", "payroll."),
    _module("User Management", "user.", "users."),
    _module("Settings", "setting.", "settings."),
)


def module_for_code(
    code: str,
    modules: Sequence[ModuleDefinition] = MODULE_DEFINITIONS,
) -> Optional[str]:
    """Return the first module whose prefixes match ``code``, or None."""
    for module in modules:
        for prefix in module.prefixes:
            if code.startswith(prefix):
                return module.module_name
    return None


def group_by_module(
    nodes: Iterable[PermissionNode],
    modules: Sequence[ModuleDefinition] = MODULE_DEFINITIONS,
) -> Tuple[Dict[str, List[PermissionNode]], List[PermissionNode]]:
    """
    Partition ``nodes`` into ``(grouped, other)``.

    ``grouped`` keys follow the order of ``modules`` and only modules with
    at least one node appear. Nodes inside a group, and in ``other``, are
    ordered by code so the same input always renders the same way.
    """
    buckets: Dict[str, List[PermissionNode]] = {m.module_name: [] for m in modules}
    other: List[PermissionNode] = []

    for node in set(nodes):
        name = module_for_code(node.code, modules)
        if name is None:
            other.append(node)
        else:
            buckets[name].append(node)

    grouped = {
        name: sorted(members, key=lambda n: (n.code, n.id))
        for name, members in buckets.items()
        if members
    }
    other.sort(key=lambda n: (n.code, n.id))
    return grouped, other


def modules_with_grants(
    nodes: Iterable[PermissionNode],
    granted_ids: Iterable[str],
    modules: Sequence[ModuleDefinition] = MODULE_DEFINITIONS,
) -> List[str]:
    """Module names (declared order, "Other" last) holding at least one granted node."""
    granted = set(granted_ids)
    grouped, other = group_by_module(nodes, modules)

    names = [
        name for name, members in grouped.items()
        if any(n.id in granted for n in members)
    ]
    if any(n.id in granted for n in other):
        names.append(OTHER_MODULE)
    return names
