# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# SPDX-License-Identifier: MIT
#

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import BackgroundTasks
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, aliased

from volunteerhub.crud.crud_event import get_event, validate_reason
from volunteerhub.db import models
from volunteerhub.db.database import commit_or_fail
from volunteerhub.errors import (
    AlreadyDecided,
    AlreadyRated,
    AlreadyRegistered,
    CapacityExceeded,
    Conflict,
    DependencyFailure,
    DomainError,
    EventNotOpen,
    Forbidden,
    NotFound,
    NotRatable,
    NotYetEligible,
    ValidationFailed,
)
from volunteerhub.events.notification_handlers import schedule_dispatch
from volunteerhub.services import notification_service
from volunteerhub.services.policy import Operation, authorize, is_event_manager
from volunteerhub.utils.timeutils import as_utc, utcnow

logger = logging.getLogger(__name__)

FEEDBACK_MAX_LENGTH = 1000
CANCELLABLE_STATUSES = (models.ParticipantStatus.PENDING, models.ParticipantStatus.APPROVED)


def _now(now: Optional[datetime]) -> datetime:
    return as_utc(now) if now is not None else utcnow()


def get_registration(db: Session, registration_id: int):
    return db.query(models.EventParticipant).filter(models.EventParticipant.id == registration_id).first()


def get_registration_for(db: Session, event_id: int, volunteer_id: int):
    return (
        db.query(models.EventParticipant)
        .filter(
            models.EventParticipant.event_id == event_id,
            models.EventParticipant.volunteer_id == volunteer_id,
        )
        .first()
    )


def count_approved(db: Session, event_id: int) -> int:
    return (
        db.query(func.count(models.EventParticipant.id))
        .filter(
            models.EventParticipant.event_id == event_id,
            models.EventParticipant.status == models.ParticipantStatus.APPROVED,
        )
        .scalar()
    )


def _load_managed(db: Session, actor: models.User, registration_id: int) -> models.EventParticipant:
    db_registration = get_registration(db, registration_id)
    if db_registration is None:
        raise NotFound("Registration not found")
    if not is_event_manager(actor, db_registration.event):
        raise Forbidden("Only the event organizer can manage its registrations")
    return db_registration


def register(
    db: Session,
    volunteer: models.User,
    event_id: int,
    background_tasks: Optional[BackgroundTasks] = None,
    now: Optional[datetime] = None,
) -> models.EventParticipant:
    """
    Creates a PENDING registration for an approved, still running event.
    The event row is locked while the approved headcount is read.
    """
    authorize(volunteer, Operation.REGISTER_FOR_EVENT)
    now = _now(now)
    try:
        db_event = (
            db.query(models.Event).filter(models.Event.id == event_id).with_for_update().first()
        )
        if db_event is None:
            raise NotFound("Event not found")
        if db_event.status != models.EventStatus.APPROVED or now > as_utc(db_event.end_date):
            raise EventNotOpen()
        if get_registration_for(db, event_id, volunteer.id) is not None:
            raise AlreadyRegistered()
        if db_event.capacity is not None and count_approved(db, event_id) >= db_event.capacity:
            raise CapacityExceeded()

        db_registration = models.EventParticipant(
            event_id=event_id,
            volunteer_id=volunteer.id,
            status=models.ParticipantStatus.PENDING,
            registered_at=now,
        )
        db.add(db_registration)
        db.flush()
        notification_service.enqueue_new_registration(db, db_event, volunteer)
    except DomainError:
        db.rollback()
        raise
    except IntegrityError:
        db.rollback()
        raise AlreadyRegistered()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to register user %s for event %s: %s", volunteer.id, event_id, e)
        raise DependencyFailure("Could not save the registration, please try again later")

    commit_or_fail(db)
    db.refresh(db_registration)
    schedule_dispatch(background_tasks)
    logger.info("User %s registered for event %s", volunteer.id, event_id)
    return db_registration


def decide_registration(
    db: Session,
    actor: models.User,
    registration_id: int,
    action: str,
    reason: Optional[str] = None,
    background_tasks: Optional[BackgroundTasks] = None,
    now: Optional[datetime] = None,
) -> models.EventParticipant:
    """
    Approves or rejects a pending registration.

    Approval locks the event row first so approvals for the same event run
    one at a time, then re-checks the capacity inside the UPDATE that flips
    the status.
    """
    authorize(actor, Operation.DECIDE_REGISTRATION)
    db_registration = _load_managed(db, actor, registration_id)
    if db_registration.status != models.ParticipantStatus.PENDING:
        raise AlreadyDecided("This registration has already been processed")
    if action == "reject":
        reason = validate_reason(reason)

    now = _now(now)
    try:
        db_event = (
            db.query(models.Event)
            .filter(models.Event.id == db_registration.event_id)
            .with_for_update()
            .one()
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to lock event for registration %s: %s", registration_id, e)
        raise DependencyFailure("Could not save the decision, please try again later")

    if action == "approve":
        new_status = models.ParticipantStatus.APPROVED
        values = {"status": new_status, "decided_at": now}
    else:
        new_status = models.ParticipantStatus.REJECTED
        values = {"status": new_status, "decided_at": now, "rejection_reason": reason}

    query = db.query(models.EventParticipant).filter(
        models.EventParticipant.id == registration_id,
        models.EventParticipant.status == models.ParticipantStatus.PENDING,
    )
    if new_status == models.ParticipantStatus.APPROVED and db_event.capacity is not None:
        approved = aliased(models.EventParticipant)
        approved_count = (
            db.query(func.count(approved.id))
            .filter(approved.event_id == db_event.id, approved.status == models.ParticipantStatus.APPROVED)
            .scalar_subquery()
        )
        query = query.filter(approved_count < db_event.capacity)

    try:
        updated = query.update(values, synchronize_session=False)
        if updated:
            notification_service.enqueue_registration_status(db, db_registration, db_event, new_status)
            db.flush()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to decide registration %s: %s", registration_id, e)
        raise DependencyFailure("Could not save the decision, please try again later")

    if not updated:
        db.rollback()
        current = (
            db.query(models.EventParticipant.status)
            .filter(models.EventParticipant.id == registration_id)
            .scalar()
        )
        if current != models.ParticipantStatus.PENDING:
            raise AlreadyDecided("This registration has already been processed")
        raise CapacityExceeded()

    commit_or_fail(db)
    db.refresh(db_registration)
    schedule_dispatch(background_tasks)
    logger.info("Registration %s %s by user %s", registration_id, new_status.value, actor.id)
    return db_registration


def complete_registration(
    db: Session, actor: models.User, registration_id: int, now: Optional[datetime] = None
) -> models.EventParticipant:
    authorize(actor, Operation.COMPLETE_REGISTRATION)
    db_registration = _load_managed(db, actor, registration_id)
    now = _now(now)
    if db_registration.status != models.ParticipantStatus.APPROVED:
        raise NotYetEligible("Only approved participations can be completed")
    if now <= as_utc(db_registration.event.end_date):
        raise NotYetEligible()

    updated = (
        db.query(models.EventParticipant)
        .filter(
            models.EventParticipant.id == registration_id,
            models.EventParticipant.status == models.ParticipantStatus.APPROVED,
        )
        .update({"status": models.ParticipantStatus.COMPLETED, "completed_at": now}, synchronize_session=False)
    )
    if not updated:
        db.rollback()
        raise NotYetEligible("Only approved participations can be completed")
    commit_or_fail(db)
    db.refresh(db_registration)
    logger.info("Registration %s completed", registration_id)
    return db_registration


def rate_registration(
    db: Session,
    volunteer: models.User,
    registration_id: int,
    rating: int,
    feedback: Optional[str] = None,
    now: Optional[datetime] = None,
) -> models.EventParticipant:
    """
    Records the volunteer's rating of a completed participation. A rating
    can be given once and is never overwritten.
    """
    authorize(volunteer, Operation.RATE_PARTICIPATION)
    db_registration = get_registration(db, registration_id)
    if db_registration is None:
        raise NotFound("Registration not found")
    if db_registration.volunteer_id != volunteer.id:
        raise Forbidden("You can only rate your own participation")

    errors = []
    if not isinstance(rating, int) or isinstance(rating, bool) or not 1 <= rating <= 5:
        errors.append("rating: must be an integer between 1 and 5")
    if feedback is not None and len(feedback) > FEEDBACK_MAX_LENGTH:
        errors.append(f"feedback: must be at most {FEEDBACK_MAX_LENGTH} characters")
    if errors:
        raise ValidationFailed("Invalid rating", details=errors)

    if db_registration.status != models.ParticipantStatus.COMPLETED:
        raise NotRatable()
    if db_registration.rating is not None:
        raise AlreadyRated()

    updated = (
        db.query(models.EventParticipant)
        .filter(
            models.EventParticipant.id == registration_id,
            models.EventParticipant.status == models.ParticipantStatus.COMPLETED,
            models.EventParticipant.rating.is_(None),
        )
        .update({"rating": rating, "feedback": feedback, "rated_at": _now(now)}, synchronize_session=False)
    )
    if not updated:
        db.rollback()
        raise AlreadyRated()
    commit_or_fail(db)
    db.refresh(db_registration)
    return db_registration


def cancel_registration(
    db: Session, volunteer: models.User, registration_id: int, now: Optional[datetime] = None
) -> bool:
    """
    Withdraws a pending or approved registration before the event starts.
    """
    authorize(volunteer, Operation.CANCEL_REGISTRATION)
    db_registration = get_registration(db, registration_id)
    if db_registration is None:
        raise NotFound("Registration not found")
    if db_registration.volunteer_id != volunteer.id:
        raise Forbidden("You can only cancel your own registration")
    if db_registration.status not in CANCELLABLE_STATUSES or _now(now) >= as_utc(db_registration.event.start_date):
        raise Conflict("This registration can no longer be cancelled")

    deleted = (
        db.query(models.EventParticipant)
        .filter(
            models.EventParticipant.id == registration_id,
            models.EventParticipant.status.in_(CANCELLABLE_STATUSES),
        )
        .delete(synchronize_session=False)
    )
    if not deleted:
        db.rollback()
        raise Conflict("This registration can no longer be cancelled")
    commit_or_fail(db)
    logger.info("Registration %s cancelled by user %s", registration_id, volunteer.id)
    return True


def list_registrations_for_event(
    db: Session,
    actor: models.User,
    event_id: int,
    status: Optional[models.ParticipantStatus] = None,
) -> List[models.EventParticipant]:
    authorize(actor, Operation.VIEW_EVENT_REGISTRATIONS)
    db_event = get_event(db, event_id)
    if db_event is None:
        raise NotFound("Event not found")
    if not is_event_manager(actor, db_event):
        raise Forbidden("Only the event organizer can view its registrations")
    query = db.query(models.EventParticipant).filter(models.EventParticipant.event_id == event_id)
    if status is not None:
        query = query.filter(models.EventParticipant.status == status)
    return query.order_by(models.EventParticipant.registered_at.asc(), models.EventParticipant.id.asc()).all()


def list_registrations_for_volunteer(
    db: Session,
    volunteer: models.User,
    status: Optional[models.ParticipantStatus] = None,
) -> List[models.EventParticipant]:
    authorize(volunteer, Operation.VIEW_OWN_REGISTRATIONS)
    query = db.query(models.EventParticipant).filter(models.EventParticipant.volunteer_id == volunteer.id)
    if status is not None:
        query = query.filter(models.EventParticipant.status == status)
    return query.order_by(models.EventParticipant.registered_at.desc(), models.EventParticipant.id.desc()).all()
