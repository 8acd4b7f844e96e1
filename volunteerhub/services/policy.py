"""
# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# Created Date: Mon Oct 13 2025
# SPDX-License-Identifier: MIT
"""

import enum
from typing import Dict, FrozenSet, Iterable, Optional

from volunteerhub.db.models import Role, User
from volunteerhub.errors import Forbidden, Unauthenticated


class Operation(str, enum.Enum):
    SUBMIT_EVENT = "submit_event"
    DECIDE_EVENT = "decide_event"
    DELETE_EVENT = "delete_event"
    VIEW_OWN_EVENTS = "view_own_events"
    REGISTER_FOR_EVENT = "register_for_event"
    CANCEL_REGISTRATION = "cancel_registration"
    RATE_PARTICIPATION = "rate_participation"
    VIEW_OWN_REGISTRATIONS = "view_own_registrations"
    DECIDE_REGISTRATION = "decide_registration"
    COMPLETE_REGISTRATION = "complete_registration"
    VIEW_EVENT_REGISTRATIONS = "view_event_registrations"
    USE_CHANNEL = "use_channel"
    MANAGE_PUSH_SUBSCRIPTIONS = "manage_push_subscriptions"
    VIEW_DASHBOARD = "view_dashboard"
    UPDATE_PROFILE = "update_profile"


ANY_ROLE: FrozenSet[Role] = frozenset()
STAFF = frozenset({Role.ORGANIZER, Role.ADMIN})

CAPABILITIES: Dict[Operation, FrozenSet[Role]] = {
    Operation.SUBMIT_EVENT: STAFF,
    Operation.DECIDE_EVENT: frozenset({Role.ADMIN}),
    Operation.DELETE_EVENT: frozenset({Role.ADMIN}),
    Operation.VIEW_OWN_EVENTS: STAFF,
    Operation.REGISTER_FOR_EVENT: frozenset({Role.VOLUNTEER}),
    Operation.CANCEL_REGISTRATION: frozenset({Role.VOLUNTEER}),
    Operation.RATE_PARTICIPATION: frozenset({Role.VOLUNTEER}),
    Operation.VIEW_OWN_REGISTRATIONS: frozenset({Role.VOLUNTEER}),
    Operation.DECIDE_REGISTRATION: STAFF,
    Operation.COMPLETE_REGISTRATION: STAFF,
    Operation.VIEW_EVENT_REGISTRATIONS: STAFF,
    Operation.USE_CHANNEL: ANY_ROLE,
    Operation.MANAGE_PUSH_SUBSCRIPTIONS: ANY_ROLE,
    Operation.VIEW_DASHBOARD: ANY_ROLE,
    Operation.UPDATE_PROFILE: ANY_ROLE,
}


def check_capability_table(capabilities: Dict[Operation, FrozenSet[Role]]):
    missing = set(Operation) - set(capabilities)
    if missing:
        names = ", ".join(sorted(op.value for op in missing))
        raise RuntimeError(f"Capability table is missing operations: {names}")


# Every operation must be listed, so adding one without a rule fails at import.
check_capability_table(CAPABILITIES)


def allowed(role: Role, required_roles: Iterable[Role]) -> bool:
    """
    Pure role check. An empty requirement means any authenticated identity.
    """
    required = frozenset(required_roles)
    if not required:
        return True
    return Role(role) in required


def authorize(user: Optional[User], operation: Operation) -> User:
    """
    Gate an operation before it touches any state.
    """
    require_identity(user)
    required = CAPABILITIES[operation]
    if not allowed(user.role, required):
        roles = ", ".join(sorted(role.value for role in required))
        raise Forbidden(f"This action is only available to: {roles}")
    return user


def is_event_manager(user: User, event) -> bool:
    """
    Ownership rule shared by registration decisions: the event's organizer
    or any admin.
    """
    return user.role == Role.ADMIN or event.organizer_id == user.id


def require_identity(user: Optional[User]) -> User:
    if user is None:
        raise Unauthenticated("Please log in to continue")
    return user
