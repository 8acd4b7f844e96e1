"""
# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# Created Date: Tue Oct 14 2025
# SPDX-License-Identifier: MIT
"""

import enum
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from volunteerhub.crud import crud_subscription, crud_user
from volunteerhub.db import models
from volunteerhub.services.email_service import EmailService
from volunteerhub.services.push_service import DeliveryResult, PushService

logger = logging.getLogger(__name__)

BADGE_ICON = "/icons/badge.png"


class NotificationKind(str, enum.Enum):
    EVENT_APPROVAL_REQUIRED = "EVENT_APPROVAL_REQUIRED"
    EVENT_STATUS_CHANGE = "EVENT_STATUS_CHANGE"
    NEW_REGISTRATION = "NEW_REGISTRATION"
    REGISTRATION_STATUS_CHANGE = "REGISTRATION_STATUS_CHANGE"
    TEST = "TEST"


@dataclass
class NotifyResult:
    delivered: int = 0
    attempted: int = 0


def enqueue(
    db: Session,
    kind: NotificationKind,
    target_user_ids: Iterable[int],
    payload: dict,
    urgency: str = "normal",
) -> Optional[models.NotificationIntent]:
    """
    Appends a notification intent to the outbox inside the caller's
    transaction. The caller commits; dispatch happens afterwards.
    """
    targets = list(dict.fromkeys(target_user_ids))
    if not targets:
        logger.info("No recipients for %s notification, skipping", kind.value)
        return None
    intent = models.NotificationIntent(
        kind=kind.value,
        target_user_ids=targets,
        payload=payload,
        urgency=urgency,
        status=models.IntentStatus.PENDING,
        attempts=0,
    )
    db.add(intent)
    return intent


def enqueue_new_event(db: Session, event: models.Event, organizer: models.User):
    payload = {
        "title": "New event awaiting approval",
        "body": f'{organizer.full_name} created the event "{event.title}"',
        "icon": "/icons/event-notification.png",
        "badge": BADGE_ICON,
        "data": {
            "type": NotificationKind.EVENT_APPROVAL_REQUIRED.value,
            "eventId": event.id,
            "url": f"/admin/events/pending/{event.id}",
        },
        "actions": [
            {"action": "approve", "title": "Approve"},
            {"action": "view", "title": "View details"},
        ],
    }
    admin_ids = crud_user.get_admin_ids(db)
    return enqueue(db, NotificationKind.EVENT_APPROVAL_REQUIRED, admin_ids, payload, urgency="high")


def enqueue_event_status(db: Session, event: models.Event, status: models.EventStatus):
    if status == models.EventStatus.APPROVED:
        title = "Event approved"
        body = f'Your event "{event.title}" has been approved and published'
        actions = [
            {"action": "view_event", "title": "View event"},
            {"action": "manage", "title": "Manage"},
        ]
    else:
        title = "Event rejected"
        body = f'Your event "{event.title}" was not approved'
        actions = [
            {"action": "view_reason", "title": "View reason"},
            {"action": "create_new", "title": "Create a new event"},
        ]
    payload = {
        "title": title,
        "body": body,
        "icon": "/icons/event-status-notification.png",
        "badge": BADGE_ICON,
        "data": {
            "type": NotificationKind.EVENT_STATUS_CHANGE.value,
            "eventId": event.id,
            "status": status.value,
            "url": f"/organizer/events/{event.id}",
        },
        "actions": actions,
    }
    return enqueue(db, NotificationKind.EVENT_STATUS_CHANGE, [event.organizer_id], payload, urgency="high")


def enqueue_new_registration(db: Session, event: models.Event, volunteer: models.User):
    payload = {
        "title": "New registration",
        "body": f'{volunteer.full_name} registered for the event "{event.title}"',
        "icon": "/icons/registration-notification.png",
        "badge": BADGE_ICON,
        "data": {
            "type": NotificationKind.NEW_REGISTRATION.value,
            "eventId": event.id,
            "volunteerId": volunteer.id,
            "url": f"/organizer/events/{event.id}/registrations",
        },
        "actions": [
            {"action": "approve", "title": "Approve"},
            {"action": "view", "title": "View registrations"},
        ],
    }
    return enqueue(db, NotificationKind.NEW_REGISTRATION, [event.organizer_id], payload)


def enqueue_registration_status(
    db: Session, participant: models.EventParticipant, event: models.Event, status: models.ParticipantStatus
):
    if status == models.ParticipantStatus.APPROVED:
        title = "Registration approved"
        body = f'You have been approved to take part in "{event.title}"'
        actions = [
            {"action": "view_event", "title": "View event"},
            {"action": "view_channel", "title": "Join the discussion"},
        ]
    else:
        title = "Registration rejected"
        body = f'Your registration for "{event.title}" was rejected'
        actions = [
            {"action": "view_reason", "title": "View reason"},
            {"action": "find_other", "title": "Find other events"},
        ]
    payload = {
        "title": title,
        "body": body,
        "icon": "/icons/status-notification.png",
        "badge": BADGE_ICON,
        "data": {
            "type": NotificationKind.REGISTRATION_STATUS_CHANGE.value,
            "eventId": event.id,
            "participantId": participant.id,
            "status": status.value,
            "url": f"/volunteer/events/{event.id}",
        },
        "actions": actions,
    }
    return enqueue(db, NotificationKind.REGISTRATION_STATUS_CHANGE, [participant.volunteer_id], payload)


class NotificationService:
    """
    Best-effort fan-out of a payload to every push subscription of every
    target, with an optional email mirror. Delivery problems are logged and
    never raised to the caller.
    """

    def __init__(
        self,
        db: Session,
        push_service: Optional[PushService] = None,
        email_service: Optional[EmailService] = None,
    ):
        self.db = db
        self.push_service = push_service or PushService()
        self.email_service = email_service or EmailService()

    async def notify(self, target_user_ids: List[int], payload: dict, urgency: str = "normal") -> NotifyResult:
        result = NotifyResult()
        push_enabled = self.push_service.is_configured
        if not push_enabled:
            logger.warning("VAPID keys are not configured, push delivery is disabled")

        for user_id in dict.fromkeys(target_user_ids):
            try:
                if push_enabled:
                    await run_in_threadpool(self._push_to_user, user_id, payload, urgency, result)
                if self.email_service.enabled:
                    user = await run_in_threadpool(crud_user.get_user, self.db, user_id)
                    if user:
                        await self.email_service.send_notification_email(user, payload)
            except SQLAlchemyError:
                self.db.rollback()
                logger.exception("Error notifying user %s", user_id)

        logger.info("Sent %s/%s push notifications", result.delivered, result.attempted)
        return result

    def _push_to_user(self, user_id: int, payload: dict, urgency: str, result: NotifyResult):
        subscriptions = crud_subscription.get_subscriptions_for_user(self.db, user_id)
        if not subscriptions:
            logger.info("No push subscriptions found for user %s", user_id)
            return
        for subscription in subscriptions:
            result.attempted += 1
            outcome = self.push_service.send(subscription, payload, urgency=urgency)
            if outcome == DeliveryResult.DELIVERED:
                result.delivered += 1
            elif outcome == DeliveryResult.PERMANENT_FAILURE:
                logger.info("Removing invalid push subscription %s for user %s", subscription.id, user_id)
                crud_subscription.delete_subscription(self.db, subscription.id)
