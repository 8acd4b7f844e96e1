"""
# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# Created Date: Mon Oct 13 2025
# SPDX-License-Identifier: MIT
"""

from typing import List, Optional


class DomainError(Exception):
    """
    Base class for every error the core operations raise.

    `kind` is the broad category callers branch on, `code` the specific
    condition, `status_code` the HTTP status the API layer renders it with.
    """

    kind = "error"
    code = "error"
    status_code = 500
    default_message = "Unexpected error"

    def __init__(self, message: Optional[str] = None, details: Optional[List[str]] = None):
        self.message = message or self.default_message
        self.details = list(details or [])
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationFailed(DomainError):
    kind = code = "validation_failed"
    status_code = 400
    default_message = "Invalid input data"


class Unauthenticated(DomainError):
    kind = code = "unauthenticated"
    status_code = 401
    default_message = "Could not validate credentials"


class Forbidden(DomainError):
    kind = code = "forbidden"
    status_code = 403
    default_message = "You do not have permission to perform this action"


class NotFound(DomainError):
    kind = code = "not_found"
    status_code = 404
    default_message = "Resource not found"


class IdentityNotFound(DomainError):
    kind = code = "identity_not_found"
    status_code = 404
    default_message = "User not found, please log in again"


class Conflict(DomainError):
    kind = code = "conflict"
    status_code = 409
    default_message = "The request conflicts with the current state"


class AlreadyDecided(Conflict):
    code = "already_decided"
    default_message = "This item has already been processed"


class AlreadyRegistered(Conflict):
    code = "already_registered"
    default_message = "You have already registered for this event"


class AlreadyRated(Conflict):
    code = "already_rated"
    default_message = "This participation has already been rated"


class NotRatable(Conflict):
    code = "not_ratable"
    default_message = "Only completed participations can be rated"


class NotYetEligible(Conflict):
    code = "not_yet_eligible"
    default_message = "Participation can only be completed after the event has ended"


class EventNotOpen(Conflict):
    code = "event_not_open"
    default_message = "Registration is only open for approved events"


class CapacityExceeded(Conflict):
    code = "capacity_exceeded"
    default_message = "The event has reached its capacity"


class NoEligibleEvents(Conflict):
    code = "no_eligible_events"
    default_message = "None of the given events is pending approval"


class EmailAlreadyRegistered(Conflict):
    code = "email_already_registered"
    default_message = "Email already registered"


class DependencyFailure(DomainError):
    kind = code = "dependency_failure"
    status_code = 503
    default_message = "A backing service failed, please try again later"
