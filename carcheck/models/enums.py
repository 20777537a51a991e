from enum import Enum


class ChecklistStatus(str, Enum):
    OK = "ok"
    WARNING = "warning"
    ISSUE = "issue"
    UNSET = "unset"


class SharePermission(str, Enum):
    VIEW = "view"
    EDIT = "edit"


class SubscriptionTier(str, Enum):
    FREE = "free"
    PREMIUM = "premium"
    PRO = "pro"


def enum_values(enum_cls) -> list[str]:
    """Persist enum members by value rather than by name."""
    return [member.value for member in enum_cls]
