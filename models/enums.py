from enum import Enum


class BaseStrEnum(str, Enum):
    """
    Base enum that serializes cleanly to a string
    and provides a .list() method for UI dropdowns.
    """

    def __str__(self):
        return str(self.value)

    @classmethod
    def list(cls):
        return [item.value for item in cls]


# -----------------------------------------------------
# ROLE ADMIN PANEL STATE
# -----------------------------------------------------
class PanelState(BaseStrEnum):
    """Which side panel the role administration screen shows."""

    closed = "closed"
    creating = "creating"
    editing = "editing"


# -----------------------------------------------------
# ROLE KIND
# -----------------------------------------------------
class RoleKind(BaseStrEnum):
    """Badge shown next to a role in the role list."""

    system = "System"
    custom = "Custom"
