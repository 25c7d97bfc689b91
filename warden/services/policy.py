"""Authorization policy: who may view, update or delete which user records."""

from dataclasses import dataclass
from enum import Enum

from warden.core.errors import UnauthorizedError
from warden.models.role import ADMIN_ROLE


class Action(str, Enum):
    """Actions guarded by the policy."""

    VIEW_USERS = "view-users"
    UPDATE_USER = "update-user"
    DELETE_USER = "delete-user"


@dataclass(frozen=True)
class Principal:
    """The authenticated identity and role attached to one request. Never persisted."""

    id: int
    email: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


def _admin_only(actor: Principal, _target_user_id: int | None) -> bool:
    return actor.is_admin


def _self_or_admin(actor: Principal, target_user_id: int | None) -> bool:
    if actor.is_admin:
        return True
    return target_user_id is not None and actor.id == target_user_id


# Rule table; an action missing here is denied.
RULES = {
    Action.VIEW_USERS: _admin_only,
    Action.UPDATE_USER: _self_or_admin,
    Action.DELETE_USER: _self_or_admin,
}

DENIED_MESSAGES = {
    Action.VIEW_USERS: "Admin access required.",
    Action.UPDATE_USER: "Unauthorized. You can only update your own profile.",
    Action.DELETE_USER: "Unauthorized. You can only delete your own account.",
}


def can_perform(actor: Principal, action: Action, target_user_id: int | None = None) -> bool:
    """Pure decision: True if actor may perform action on target_user_id. Default deny."""
    rule = RULES.get(action)
    if rule is None:
        return False
    return rule(actor, target_user_id)


def require(actor: Principal, action: Action, target_user_id: int | None = None) -> None:
    """Raise UnauthorizedError unless can_perform allows the action."""
    if not can_perform(actor, action, target_user_id):
        raise UnauthorizedError(DENIED_MESSAGES.get(action, "Unauthorized."))
