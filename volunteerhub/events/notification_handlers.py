"""
# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# Created Date: Tue Oct 14 2025
# SPDX-License-Identifier: MIT
"""

import logging
from typing import Optional

from fastapi import BackgroundTasks
from starlette.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from volunteerhub.config import settings
from volunteerhub.db import models
from volunteerhub.db.database import get_db
from volunteerhub.services.notification_service import NotificationService
from volunteerhub.utils.timeutils import utcnow

logger = logging.getLogger(__name__)


def schedule_dispatch(background_tasks: Optional[BackgroundTasks]):
    """
    Queues an outbox drain to run once the response has been sent.
    """
    if background_tasks is not None:
        background_tasks.add_task(dispatch_pending_notifications)


def _claim(db: Session, intent: models.NotificationIntent) -> bool:
    claimed = (
        db.query(models.NotificationIntent)
        .filter(
            models.NotificationIntent.id == intent.id,
            models.NotificationIntent.status == models.IntentStatus.PENDING,
            models.NotificationIntent.attempts == intent.attempts,
        )
        .update({"attempts": intent.attempts + 1}, synchronize_session=False)
    )
    db.commit()
    return bool(claimed)


def _pending_intents(db: Session, batch_size: int):
    return (
        db.query(models.NotificationIntent)
        .filter(models.NotificationIntent.status == models.IntentStatus.PENDING)
        .order_by(models.NotificationIntent.created_at, models.NotificationIntent.id)
        .limit(batch_size)
        .all()
    )


async def dispatch_intent(db: Session, service: NotificationService, intent: models.NotificationIntent) -> bool:
    if not await run_in_threadpool(_claim, db, intent):
        return False
    await run_in_threadpool(db.refresh, intent)
    try:
        result = await service.notify(intent.target_user_ids, intent.payload, urgency=intent.urgency)
        intent.status = models.IntentStatus.SENT
        intent.dispatched_at = utcnow()
        intent.last_error = None
        logger.info(
            "Dispatched %s notification %s (%s/%s delivered)",
            intent.kind, intent.id, result.delivered, result.attempted,
        )
    except Exception as e:
        logger.exception("Failed to dispatch notification %s", intent.id)
        intent.last_error = str(e)[:1000]
        if intent.attempts >= settings.notification_max_attempts:
            intent.status = models.IntentStatus.FAILED
    await run_in_threadpool(db.commit)
    return intent.status == models.IntentStatus.SENT


async def dispatch_pending_notifications(batch_size: int = 100) -> int:
    """
    Drains pending notification intents, oldest first.
    This function is designed to run as a background task and never raises.
    """
    db: Session = next(get_db())
    sent = 0
    try:
        intents = await run_in_threadpool(_pending_intents, db, batch_size)
        if not intents:
            return 0
        service = NotificationService(db)
        for intent in intents:
            if await dispatch_intent(db, service, intent):
                sent += 1
    except Exception:
        db.rollback()
        logger.exception("Background Task Error: notification dispatch aborted")
    finally:
        db.close()
    return sent
