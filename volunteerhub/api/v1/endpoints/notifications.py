"""
# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# Created Date: Tue Oct 14 2025
# SPDX-License-Identifier: MIT
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from volunteerhub.config import settings
from volunteerhub.crud import crud_subscription
from volunteerhub.db.database import get_db
from volunteerhub.db.models import User
from volunteerhub.dependencies import get_current_user
from volunteerhub.errors import DependencyFailure
from volunteerhub.schemas import schemas
from volunteerhub.services.notification_service import BADGE_ICON, NotificationKind, NotificationService

router = APIRouter(
    prefix="/notifications",
    tags=["Notifications"],
    responses={404: {"description": "Not found"}},
)


@router.get("/vapid-public-key")
def read_vapid_public_key():
    if not settings.vapid_public_key:
        raise DependencyFailure("Push notifications are not configured")
    return {"public_key": settings.vapid_public_key}


@router.post("/subscribe", response_model=schemas.PushSubscription, status_code=status.HTTP_201_CREATED)
def subscribe(
    subscription: schemas.PushSubscriptionCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Registers (or refreshes) a browser push subscription for the current user.
    """
    return crud_subscription.subscribe(db, current_user, subscription)


@router.delete("/unsubscribe")
def unsubscribe(
    subscription: schemas.PushUnsubscribe,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    crud_subscription.unsubscribe(db, current_user, subscription.endpoint)
    return {"message": "Unsubscribed successfully"}


@router.get("/subscription-status", response_model=schemas.SubscriptionStatus)
def read_subscription_status(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return {"has_valid_subscriptions": crud_subscription.has_subscriptions(db, current_user.id)}


@router.post("/test", response_model=schemas.NotifyResult)
async def send_test_notification(
    notification: schemas.NotificationTestRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Sends a notification to the caller's own devices right away.
    """
    payload = {
        "title": notification.title,
        "body": notification.body,
        "icon": "/icons/test-notification.png",
        "badge": BADGE_ICON,
        "data": {"type": NotificationKind.TEST.value, "url": "/dashboard"},
    }
    result = await NotificationService(db).notify([current_user.id], payload)
    return {"delivered": result.delivered, "attempted": result.attempted}
