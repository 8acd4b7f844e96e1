# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# SPDX-License-Identifier: MIT
#

import asyncio
import logging
from unittest.mock import MagicMock

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from volunteerhub.app import app, lifespan
from volunteerhub.config import settings
from volunteerhub.crud import crud_subscription
from volunteerhub.db import models
from volunteerhub.errors import NotFound
from volunteerhub.events import notification_handlers
from volunteerhub.schemas import schemas
from volunteerhub.services import notification_service
from volunteerhub.services.notification_service import NotificationKind
from volunteerhub.services.push_service import DeliveryResult
from tests.test_helpers import create_user


def test_app_lifespan_logs_startup_and_shutdown(caplog):
    """Test startup and shutdown messages of the application lifespan"""
    caplog.set_level(logging.INFO, logger="volunteerhub.app")

    async def run_lifespan():
        async with lifespan(app):
            pass

    asyncio.run(run_lifespan())

    assert "VolunteerHub API starting up. Database migrations are managed by Alembic." in caplog.text
    assert "VolunteerHub API shutting down." in caplog.text


def test_health_check(client: TestClient):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_domain_errors_render_kind_code_message_details(client: TestClient, mocker):
    error = NotFound("Event not found", details=["event_id: 42"])
    mocker.patch("volunteerhub.crud.crud_event.get_event_for_viewer", side_effect=error)

    response = client.get("/api/v1/events/42")

    assert response.status_code == 404
    assert response.json() == {
        "kind": "not_found",
        "code": "not_found",
        "message": "Event not found",
        "details": ["event_id: 42"],
    }


def test_request_validation_errors_use_the_same_shape(client: TestClient):
    response = client.get("/api/v1/events", params={"limit": 0})

    assert response.status_code == 400
    body = response.json()
    assert body["kind"] == "validation_failed"
    assert body["code"] == "validation_failed"
    assert len(body["details"]) == 1
    assert body["details"][0].startswith("query.limit:")


def test_cors_allows_configured_origin(client: TestClient):
    response = client.options(
        "/health",
        headers={"Origin": "http://localhost:3000", "Access-Control-Request-Method": "GET"},
    )
    assert response.headers.get("access-control-allow-origin") == "http://localhost:3000"
    assert response.headers.get("access-control-allow-credentials") == "true"


def test_lifespan_dispatches_intents_left_pending(db_session: Session, mocker):
    user = create_user(db_session, "stranded@example.com")
    crud_subscription.subscribe(
        db_session,
        user,
        schemas.PushSubscriptionCreate(endpoint="https://push.example.com/a", keys={"p256dh": "key", "auth": "auth"}),
    )
    notification_service.enqueue(db_session, NotificationKind.TEST, [user.id], {"title": "Queued before restart"})
    db_session.commit()
    push = MagicMock(is_configured=True)
    push.send.return_value = DeliveryResult.DELIVERED
    mocker.patch.object(settings, "dispatch_on_startup", True)
    mocker.patch.object(notification_handlers, "get_db", return_value=iter([db_session]))
    mocker.patch("volunteerhub.services.notification_service.PushService", return_value=push)

    async def run_lifespan():
        async with lifespan(app):
            pass

    asyncio.run(run_lifespan())

    intent = db_session.query(models.NotificationIntent).one()
    assert intent.status == models.IntentStatus.SENT
    push.send.assert_called_once()
