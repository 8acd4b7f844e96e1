"""
# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# Created Date: Tue Oct 14 2025
# SPDX-License-Identifier: MIT
"""

from typing import List

from sqlalchemy.orm import Session

from volunteerhub.db import models
from volunteerhub.errors import NotFound
from volunteerhub.schemas import schemas
from volunteerhub.services.policy import Operation, authorize


def get_subscriptions_for_user(db: Session, user_id: int) -> List[models.PushSubscription]:
    return (
        db.query(models.PushSubscription)
        .filter(models.PushSubscription.user_id == user_id)
        .order_by(models.PushSubscription.id)
        .all()
    )


def subscribe(db: Session, user: models.User, subscription: schemas.PushSubscriptionCreate):
    """
    Stores a delivery endpoint for the user, refreshing the keys when the
    endpoint is already known.
    """
    authorize(user, Operation.MANAGE_PUSH_SUBSCRIPTIONS)
    db_subscription = (
        db.query(models.PushSubscription)
        .filter(
            models.PushSubscription.user_id == user.id,
            models.PushSubscription.endpoint == subscription.endpoint,
        )
        .first()
    )
    if db_subscription:
        db_subscription.p256dh_key = subscription.keys.p256dh
        db_subscription.auth_key = subscription.keys.auth
    else:
        db_subscription = models.PushSubscription(
            user_id=user.id,
            endpoint=subscription.endpoint,
            p256dh_key=subscription.keys.p256dh,
            auth_key=subscription.keys.auth,
        )
        db.add(db_subscription)
    db.commit()
    db.refresh(db_subscription)
    return db_subscription


def unsubscribe(db: Session, user: models.User, endpoint: str) -> bool:
    authorize(user, Operation.MANAGE_PUSH_SUBSCRIPTIONS)
    deleted = (
        db.query(models.PushSubscription)
        .filter(models.PushSubscription.user_id == user.id, models.PushSubscription.endpoint == endpoint)
        .delete(synchronize_session=False)
    )
    db.commit()
    if not deleted:
        raise NotFound("No subscription found for this endpoint")
    return True


def delete_subscription(db: Session, subscription_id: int) -> bool:
    deleted = (
        db.query(models.PushSubscription)
        .filter(models.PushSubscription.id == subscription_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return bool(deleted)


def has_subscriptions(db: Session, user_id: int) -> bool:
    return db.query(models.PushSubscription.id).filter(models.PushSubscription.user_id == user_id).first() is not None
