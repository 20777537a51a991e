from enum import Enum
from typing import Optional, Set


class Capability(str, Enum):
    """What a car member may do (fine-grained access control)"""

    VIEW_CHECKLIST = "view:checklist"
    EDIT_CHECKLIST = "edit:checklist"
    EDIT_MAINTENANCE = "edit:maintenance"
    VIEW_REPORT = "view:report"
    USE_AI = "use:ai"

    # Management
    MANAGE_PERMISSIONS = "manage:permissions"
    MANAGE_INVITATIONS = "manage:invitations"
    MANAGE_SHARE_LINKS = "manage:share_links"


class Role(str, Enum):
    """Per-car roles. owner ⊇ contributor ⊇ viewer; the rest are descriptive editor roles."""
    OWNER = "owner"
    CONTRIBUTOR = "contributor"
    VIEWER = "viewer"
    HOLDER = "holder"
    BUYER = "buyer"
    INSPECTOR = "inspector"
    MECHANIC = "mechanic"
    OTHER = "other"


# Roles an invitation may carry
INVITABLE_ROLES = frozenset({Role.CONTRIBUTOR, Role.VIEWER})

_VIEW: Set[Capability] = {
    Capability.VIEW_CHECKLIST,
    Capability.VIEW_REPORT,
    Capability.USE_AI,
}

_EDIT: Set[Capability] = _VIEW | {
    Capability.EDIT_CHECKLIST,
    Capability.EDIT_MAINTENANCE,
}

# Permission matrix - what each role can do
ROLE_CAPABILITIES: dict[Role, Set[Capability]] = {
    Role.OWNER: set(Capability),  # All capabilities
    Role.CONTRIBUTOR: _EDIT,
    Role.VIEWER: _VIEW,
    Role.HOLDER: _EDIT,
    Role.BUYER: _EDIT,
    Role.INSPECTOR: _EDIT,
    Role.MECHANIC: _EDIT,
    Role.OTHER: _EDIT,
}


def has_capability(role: Optional[Role], capability: Capability) -> bool:
    if role is None:
        return False
    return capability in ROLE_CAPABILITIES[Role(role)]


def can_view(role: Optional[Role]) -> bool:
    return role is not None


def can_edit(role: Optional[Role]) -> bool:
    return role is not None and Role(role) != Role.VIEWER


def can_manage(role: Optional[Role]) -> bool:
    return role is not None and Role(role) == Role.OWNER
