"""
# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# Created Date: Tue Oct 14 2025
# SPDX-License-Identifier: MIT
"""

from fastapi.testclient import TestClient

from volunteerhub.config import settings
from tests.test_helpers import auth_headers

SUBSCRIPTION = {
    "endpoint": "https://fcm.googleapis.com/fcm/send/abc123",
    "keys": {"p256dh": "BNcRdreALRFXTkOOUHK1EtK2wtaz5Ry4YfYCA_0QTpQtUbVlUls0VJXg7A8u", "auth": "tBHItJI5svbpez7KI4CCXg"},
}


def test_vapid_key_not_configured(client: TestClient):
    response = client.get("/api/v1/notifications/vapid-public-key")

    assert response.status_code == 503
    assert response.json()["kind"] == "dependency_failure"


def test_vapid_key(client: TestClient, mocker):
    mocker.patch.object(settings, "vapid_public_key", "BPublicKey")

    response = client.get("/api/v1/notifications/vapid-public-key")

    assert response.status_code == 200
    assert response.json() == {"public_key": "BPublicKey"}


def test_subscription_lifecycle(client: TestClient, volunteer):
    headers = auth_headers(volunteer)

    status = client.get("/api/v1/notifications/subscription-status", headers=headers)
    assert status.json() == {"has_valid_subscriptions": False}

    created = client.post("/api/v1/notifications/subscribe", json=SUBSCRIPTION, headers=headers)
    assert created.status_code == 201
    assert created.json()["endpoint"] == SUBSCRIPTION["endpoint"]

    status = client.get("/api/v1/notifications/subscription-status", headers=headers)
    assert status.json() == {"has_valid_subscriptions": True}

    removed = client.request(
        "DELETE", "/api/v1/notifications/unsubscribe", json={"endpoint": SUBSCRIPTION["endpoint"]}, headers=headers
    )
    assert removed.status_code == 200

    again = client.request(
        "DELETE", "/api/v1/notifications/unsubscribe", json={"endpoint": SUBSCRIPTION["endpoint"]}, headers=headers
    )
    assert again.status_code == 404


def test_subscribe_requires_http_endpoint(client: TestClient, volunteer):
    response = client.post(
        "/api/v1/notifications/subscribe",
        json={**SUBSCRIPTION, "endpoint": "not-a-url"},
        headers=auth_headers(volunteer),
    )
    assert response.status_code == 400


def test_subscribe_requires_login(client: TestClient):
    assert client.post("/api/v1/notifications/subscribe", json=SUBSCRIPTION).status_code == 401


def test_send_test_notification(client: TestClient, volunteer, mocker):
    send = mocker.patch("volunteerhub.services.push_service.webpush")
    mocker.patch.object(settings, "vapid_public_key", "BPublicKey")
    mocker.patch.object(settings, "vapid_private_key", "private-key")
    headers = auth_headers(volunteer)
    client.post("/api/v1/notifications/subscribe", json=SUBSCRIPTION, headers=headers)

    response = client.post("/api/v1/notifications/test", json={"title": "Ping"}, headers=headers)

    assert response.status_code == 200
    assert response.json() == {"delivered": 1, "attempted": 1}
    assert '"title": "Ping"' in send.call_args.kwargs["data"]


def test_send_test_notification_without_push(client: TestClient, volunteer):
    response = client.post("/api/v1/notifications/test", json={}, headers=auth_headers(volunteer))

    assert response.status_code == 200
    assert response.json() == {"delivered": 0, "attempted": 0}
