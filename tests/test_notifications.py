"""
# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# Created Date: Tue Oct 14 2025
# SPDX-License-Identifier: MIT
"""

import asyncio
import time
from unittest.mock import AsyncMock, MagicMock

import pytest
from pywebpush import WebPushException
from requests.exceptions import ConnectionError as RequestsConnectionError
from sqlalchemy.orm import Session

from volunteerhub.config import settings
from volunteerhub.crud import crud_subscription
from volunteerhub.db import models
from volunteerhub.errors import NotFound
from volunteerhub.events import notification_handlers
from volunteerhub.schemas import schemas
from volunteerhub.services import notification_service
from volunteerhub.services.notification_service import NotificationKind, NotificationService
from volunteerhub.services.push_service import DeliveryResult, PushService
from tests.test_helpers import create_event

PAYLOAD = {"title": "Hello", "body": "World", "data": {"type": "TEST", "url": "/"}}


class FakePushService:
    """
    Answers with a fixed outcome per endpoint and records what was sent.
    """

    def __init__(self, outcomes=None, configured=True):
        self.outcomes = outcomes or {}
        self.is_configured = configured
        self.sent = []

    def send(self, subscription, payload, urgency="normal"):
        self.sent.append((subscription.endpoint, payload, urgency))
        return self.outcomes.get(subscription.endpoint, DeliveryResult.DELIVERED)


class DisabledEmailService:
    enabled = False


def add_subscription(db: Session, user, endpoint: str) -> models.PushSubscription:
    return crud_subscription.subscribe(
        db,
        user,
        schemas.PushSubscriptionCreate(endpoint=endpoint, keys={"p256dh": "p256dh-key", "auth": "auth-key"}),
    )


# --- Outbox ---

def test_enqueue_deduplicates_targets(db_session: Session):
    intent = notification_service.enqueue(db_session, NotificationKind.TEST, [3, 1, 3], PAYLOAD)
    db_session.commit()

    assert intent.target_user_ids == [3, 1]
    assert intent.status == models.IntentStatus.PENDING
    assert intent.attempts == 0


def test_enqueue_without_targets_adds_nothing(db_session: Session):
    assert notification_service.enqueue(db_session, NotificationKind.TEST, [], PAYLOAD) is None
    db_session.commit()
    assert db_session.query(models.NotificationIntent).count() == 0


def test_new_event_notification_targets_every_admin(db_session: Session, admin, organizer):
    second_admin = models.User(
        email="second.admin@example.com", password="x", role=models.Role.ADMIN, first_name="B", last_name="C"
    )
    db_session.add(second_admin)
    db_session.commit()
    event = create_event(db_session, organizer)

    intent = notification_service.enqueue_new_event(db_session, event, organizer)

    assert sorted(intent.target_user_ids) == sorted([admin.id, second_admin.id])
    assert intent.urgency == "high"
    assert intent.payload["data"] == {
        "type": "EVENT_APPROVAL_REQUIRED",
        "eventId": event.id,
        "url": f"/admin/events/pending/{event.id}",
    }
    assert organizer.full_name in intent.payload["body"]


def test_event_status_notification_targets_organizer(db_session: Session, organizer):
    event = create_event(db_session, organizer, status=models.EventStatus.REJECTED)

    intent = notification_service.enqueue_event_status(db_session, event, models.EventStatus.REJECTED)

    assert intent.target_user_ids == [organizer.id]
    assert intent.payload["title"] == "Event rejected"
    assert intent.payload["data"]["status"] == "REJECTED"


# --- Fan-out ---

@pytest.mark.asyncio
async def test_notify_fans_out_to_every_subscription(db_session: Session, volunteer, organizer):
    add_subscription(db_session, volunteer, "https://push.example.com/a")
    add_subscription(db_session, volunteer, "https://push.example.com/b")
    add_subscription(db_session, organizer, "https://push.example.com/c")
    push = FakePushService()
    service = NotificationService(db_session, push_service=push, email_service=DisabledEmailService())

    result = await service.notify([volunteer.id, organizer.id, volunteer.id], PAYLOAD, urgency="high")

    assert result == notification_service.NotifyResult(delivered=3, attempted=3)
    assert [endpoint for endpoint, _, _ in push.sent] == [
        "https://push.example.com/a",
        "https://push.example.com/b",
        "https://push.example.com/c",
    ]
    assert all(urgency == "high" for _, _, urgency in push.sent)


@pytest.mark.asyncio
async def test_permanent_failure_removes_subscription(db_session: Session, volunteer):
    add_subscription(db_session, volunteer, "https://push.example.com/gone")
    add_subscription(db_session, volunteer, "https://push.example.com/flaky")
    add_subscription(db_session, volunteer, "https://push.example.com/ok")
    push = FakePushService(
        outcomes={
            "https://push.example.com/gone": DeliveryResult.PERMANENT_FAILURE,
            "https://push.example.com/flaky": DeliveryResult.TRANSIENT_FAILURE,
        }
    )
    service = NotificationService(db_session, push_service=push, email_service=DisabledEmailService())

    result = await service.notify([volunteer.id], PAYLOAD)

    assert result == notification_service.NotifyResult(delivered=1, attempted=3)
    remaining = [s.endpoint for s in crud_subscription.get_subscriptions_for_user(db_session, volunteer.id)]
    assert remaining == ["https://push.example.com/flaky", "https://push.example.com/ok"]


@pytest.mark.asyncio
async def test_notify_without_push_configuration(db_session: Session, volunteer, caplog):
    add_subscription(db_session, volunteer, "https://push.example.com/a")
    push = FakePushService(configured=False)
    service = NotificationService(db_session, push_service=push, email_service=DisabledEmailService())

    result = await service.notify([volunteer.id], PAYLOAD)

    assert result.attempted == 0
    assert push.sent == []
    assert "push delivery is disabled" in caplog.text


@pytest.mark.asyncio
async def test_notify_mirrors_to_email(db_session: Session, volunteer):
    email = MagicMock(enabled=True)
    email.send_notification_email = AsyncMock()
    service = NotificationService(db_session, push_service=FakePushService(), email_service=email)

    await service.notify([volunteer.id, 999], PAYLOAD)

    email.send_notification_email.assert_awaited_once()
    assert email.send_notification_email.await_args.args[0].id == volunteer.id


@pytest.mark.asyncio
async def test_push_delivery_runs_off_the_event_loop(db_session: Session, volunteer):
    add_subscription(db_session, volunteer, "https://push.example.com/slow")

    class SlowPushService(FakePushService):
        def send(self, subscription, payload, urgency="normal"):
            time.sleep(0.3)
            return super().send(subscription, payload, urgency)

    service = NotificationService(db_session, push_service=SlowPushService(), email_service=DisabledEmailService())
    ticks = 0

    async def ticker():
        nonlocal ticks
        while True:
            await asyncio.sleep(0.01)
            ticks += 1

    task = asyncio.create_task(ticker())
    result = await service.notify([volunteer.id], PAYLOAD)
    task.cancel()

    assert result.delivered == 1
    assert ticks >= 5


# --- Dispatcher ---

@pytest.mark.asyncio
async def test_dispatch_marks_intents_sent(db_session: Session, volunteer, mocker):
    add_subscription(db_session, volunteer, "https://push.example.com/a")
    notification_service.enqueue(db_session, NotificationKind.TEST, [volunteer.id], PAYLOAD)
    db_session.commit()
    push = FakePushService()
    mocker.patch.object(notification_handlers, "get_db", return_value=iter([db_session]))
    mocker.patch("volunteerhub.services.notification_service.PushService", return_value=push)
    mocker.patch("volunteerhub.services.notification_service.EmailService", return_value=DisabledEmailService())

    sent = await notification_handlers.dispatch_pending_notifications()

    assert sent == 1
    intent = db_session.query(models.NotificationIntent).one()
    assert intent.status == models.IntentStatus.SENT
    assert intent.attempts == 1
    assert intent.dispatched_at is not None
    assert len(push.sent) == 1


@pytest.mark.asyncio
async def test_dispatch_failure_keeps_intent_pending_until_attempts_run_out(db_session: Session, mocker):
    intent = notification_service.enqueue(db_session, NotificationKind.TEST, [1], PAYLOAD)
    intent.attempts = settings.notification_max_attempts - 2
    db_session.commit()
    service = MagicMock()
    service.notify = AsyncMock(side_effect=RuntimeError("push gateway down"))

    assert await notification_handlers.dispatch_intent(db_session, service, intent) is False
    db_session.refresh(intent)
    assert intent.status == models.IntentStatus.PENDING
    assert intent.last_error == "push gateway down"

    assert await notification_handlers.dispatch_intent(db_session, service, intent) is False
    db_session.refresh(intent)
    assert intent.status == models.IntentStatus.FAILED
    assert intent.attempts == settings.notification_max_attempts


@pytest.mark.asyncio
async def test_intent_claimed_elsewhere_is_skipped(db_session: Session):
    intent = notification_service.enqueue(db_session, NotificationKind.TEST, [1], PAYLOAD)
    db_session.commit()
    stale = models.NotificationIntent(id=intent.id, attempts=0)
    intent.attempts = 1
    db_session.commit()
    service = MagicMock()
    service.notify = AsyncMock()

    assert await notification_handlers.dispatch_intent(db_session, service, stale) is False
    service.notify.assert_not_awaited()


@pytest.mark.asyncio
async def test_dispatch_never_raises(db_session: Session, mocker, caplog):
    broken = MagicMock()
    broken.query.side_effect = RuntimeError("database unavailable")
    mocker.patch.object(notification_handlers, "get_db", return_value=iter([broken]))

    assert await notification_handlers.dispatch_pending_notifications() == 0
    assert "notification dispatch aborted" in caplog.text
    broken.close.assert_called_once()


def test_schedule_dispatch():
    background_tasks = MagicMock()
    notification_handlers.schedule_dispatch(background_tasks)
    background_tasks.add_task.assert_called_once_with(notification_handlers.dispatch_pending_notifications)
    notification_handlers.schedule_dispatch(None)


# --- Push delivery ---

def make_subscription():
    return models.PushSubscription(
        id=1, user_id=1, endpoint="https://push.example.com/a", p256dh_key="p256dh-key", auth_key="auth-key"
    )


def test_push_send_delivers(mocker):
    webpush = mocker.patch("volunteerhub.services.push_service.webpush")

    result = PushService().send(make_subscription(), PAYLOAD, urgency="high")

    assert result == DeliveryResult.DELIVERED
    kwargs = webpush.call_args.kwargs
    assert kwargs["subscription_info"]["keys"] == {"p256dh": "p256dh-key", "auth": "auth-key"}
    assert kwargs["headers"] == {"Urgency": "high"}
    assert kwargs["ttl"] == settings.push_ttl_seconds


@pytest.mark.parametrize(
    "status_code, expected",
    [
        (410, DeliveryResult.PERMANENT_FAILURE),
        (404, DeliveryResult.PERMANENT_FAILURE),
        (500, DeliveryResult.TRANSIENT_FAILURE),
        (None, DeliveryResult.TRANSIENT_FAILURE),
    ],
)
def test_push_send_classifies_failures(mocker, status_code, expected):
    response = MagicMock(status_code=status_code) if status_code else None
    mocker.patch(
        "volunteerhub.services.push_service.webpush",
        side_effect=WebPushException("Push failed", response=response),
    )
    assert PushService().send(make_subscription(), PAYLOAD) == expected


def test_push_send_network_error_is_transient(mocker):
    mocker.patch("volunteerhub.services.push_service.webpush", side_effect=RequestsConnectionError("timeout"))
    assert PushService().send(make_subscription(), PAYLOAD) == DeliveryResult.TRANSIENT_FAILURE


# --- Subscriptions ---

def test_subscribe_refreshes_keys_for_known_endpoint(db_session: Session, volunteer):
    first = add_subscription(db_session, volunteer, "https://push.example.com/a")
    again = crud_subscription.subscribe(
        db_session,
        volunteer,
        schemas.PushSubscriptionCreate(endpoint="https://push.example.com/a", keys={"p256dh": "new", "auth": "new"}),
    )

    assert again.id == first.id
    assert again.p256dh_key == "new"
    assert crud_subscription.has_subscriptions(db_session, volunteer.id) is True


def test_unsubscribe(db_session: Session, volunteer, other_volunteer):
    add_subscription(db_session, volunteer, "https://push.example.com/a")

    with pytest.raises(NotFound):
        crud_subscription.unsubscribe(db_session, other_volunteer, "https://push.example.com/a")
    assert crud_subscription.unsubscribe(db_session, volunteer, "https://push.example.com/a") is True
    assert crud_subscription.has_subscriptions(db_session, volunteer.id) is False
