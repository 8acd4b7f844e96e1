# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# SPDX-License-Identifier: MIT
#

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from fastapi import BackgroundTasks
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from volunteerhub.db import models
from volunteerhub.db.database import commit_or_fail
from volunteerhub.errors import AlreadyDecided, DependencyFailure, NoEligibleEvents, NotFound, ValidationFailed
from volunteerhub.events.notification_handlers import schedule_dispatch
from volunteerhub.schemas import schemas
from volunteerhub.services import notification_service
from volunteerhub.services.policy import Operation, authorize, is_event_manager, require_identity
from volunteerhub.utils.timeutils import as_utc, utcnow

logger = logging.getLogger(__name__)

EVENT_CATEGORIES = [category.value for category in models.EventCategory]

TITLE_LENGTH = (5, 200)
DESCRIPTION_LENGTH = (20, 2000)
LOCATION_LENGTH = (5, 500)
CAPACITY_RANGE = (1, 10000)
REASON_LENGTH = (10, 500)

HISTORY_STATUSES = (models.EventStatus.APPROVED, models.EventStatus.REJECTED)


def _check_length(errors: List[str], field: str, value: Optional[str], bounds):
    low, high = bounds
    length = len((value or "").strip())
    if length < low or length > high:
        errors.append(f"{field}: must be between {low} and {high} characters")


def validate_event_draft(draft: schemas.EventCreate, now: Optional[datetime] = None) -> List[str]:
    """
    Returns every violated constraint of an event draft, empty when valid.
    """
    now = as_utc(now) if now is not None else utcnow()
    errors: List[str] = []
    _check_length(errors, "title", draft.title, TITLE_LENGTH)
    _check_length(errors, "description", draft.description, DESCRIPTION_LENGTH)
    _check_length(errors, "location", draft.location, LOCATION_LENGTH)

    if draft.category not in EVENT_CATEGORIES:
        errors.append(f"category: must be one of {', '.join(EVENT_CATEGORIES)}")

    start = as_utc(draft.start_date)
    end = as_utc(draft.end_date)
    if start <= now:
        errors.append("start_date: must be in the future")
    if end < start:
        errors.append("end_date: must not be before start_date")

    if draft.capacity is not None:
        low, high = CAPACITY_RANGE
        if draft.capacity < low or draft.capacity > high:
            errors.append(f"capacity: must be between {low} and {high}")
    return errors


def validate_reason(reason: Optional[str]) -> str:
    """
    A rejection needs a reason; its length is checked after trimming and the
    text is kept as given.
    """
    errors: List[str] = []
    _check_length(errors, "reason", reason, REASON_LENGTH)
    if errors:
        raise ValidationFailed("A rejection reason is required", details=errors)
    return reason


def effective_status(event: models.Event, now: Optional[datetime] = None) -> models.EventStatus:
    return event.effective_status_at(now)


def get_event(db: Session, event_id: int):
    return db.query(models.Event).filter(models.Event.id == event_id).first()


def get_event_for_viewer(db: Session, viewer: Optional[models.User], event_id: int) -> models.Event:
    """
    Approved events are public. Pending and rejected ones are only visible
    to their organizer and to admins.
    """
    db_event = get_event(db, event_id)
    if db_event is None:
        raise NotFound("Event not found")
    if db_event.status != models.EventStatus.APPROVED:
        if viewer is None or not is_event_manager(viewer, db_event):
            raise NotFound("Event not found")
    return db_event


def submit_event(
    db: Session,
    organizer: models.User,
    draft: schemas.EventCreate,
    background_tasks: Optional[BackgroundTasks] = None,
    now: Optional[datetime] = None,
) -> models.Event:
    authorize(organizer, Operation.SUBMIT_EVENT)
    errors = validate_event_draft(draft, now=now)
    if errors:
        raise ValidationFailed("Invalid event data", details=errors)

    db_event = models.Event(
        title=draft.title.strip(),
        description=draft.description.strip(),
        location=draft.location.strip(),
        start_date=as_utc(draft.start_date),
        end_date=as_utc(draft.end_date),
        capacity=draft.capacity,
        category=models.EventCategory(draft.category),
        status=models.EventStatus.PENDING,
        organizer_id=organizer.id,
    )
    try:
        db.add(db_event)
        db.flush()
        notification_service.enqueue_new_event(db, db_event, organizer)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to create event: %s", e)
        raise DependencyFailure("Could not save the event, please try again later")
    commit_or_fail(db)
    db.refresh(db_event)

    schedule_dispatch(background_tasks)
    logger.info("Event %s submitted by user %s", db_event.id, organizer.id)
    return db_event


def _decision_values(admin: models.User, action: str, reason: Optional[str], now: datetime) -> dict:
    values = {"approved_by": admin.id, "decided_at": now, "updated_at": now}
    if action == "approve":
        values.update(status=models.EventStatus.APPROVED, approved_at=now)
    else:
        values.update(status=models.EventStatus.REJECTED, rejection_reason=reason)
    return values


def decide_event(
    db: Session,
    admin: models.User,
    event_id: int,
    action: str,
    reason: Optional[str] = None,
    background_tasks: Optional[BackgroundTasks] = None,
    now: Optional[datetime] = None,
) -> models.Event:
    """
    Approves or rejects a pending event. The status flip, the channel of an
    approved event and the organizer notification intent commit together or
    not at all. Decisions are not idempotent: deciding twice is a conflict.
    """
    require_identity(admin)
    db_event = get_event(db, event_id)
    if db_event is None:
        raise NotFound("Event not found")
    if db_event.status != models.EventStatus.PENDING:
        raise AlreadyDecided("This event has already been processed")
    authorize(admin, Operation.DECIDE_EVENT)
    if action == "reject":
        reason = validate_reason(reason)

    now = as_utc(now) if now is not None else utcnow()
    new_status = models.EventStatus.APPROVED if action == "approve" else models.EventStatus.REJECTED
    try:
        updated = (
            db.query(models.Event)
            .filter(models.Event.id == event_id, models.Event.status == models.EventStatus.PENDING)
            .update(_decision_values(admin, action, reason, now), synchronize_session=False)
        )
        if updated == 1:
            if new_status == models.EventStatus.APPROVED:
                db.add(models.CommunicationChannel(event_id=event_id))
            notification_service.enqueue_event_status(db, db_event, new_status)
            db.flush()
    except IntegrityError:
        db.rollback()
        raise AlreadyDecided("This event has already been processed")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to decide event %s: %s", event_id, e)
        raise DependencyFailure("Could not save the decision, please try again later")
    if updated != 1:
        db.rollback()
        raise AlreadyDecided("This event has already been processed")

    commit_or_fail(db)
    db.refresh(db_event)
    schedule_dispatch(background_tasks)
    logger.info("Event %s %s by admin %s", event_id, new_status.value, admin.id)
    return db_event


def decide_events_bulk(
    db: Session,
    admin: models.User,
    event_ids: Iterable[int],
    action: str,
    reason: Optional[str] = None,
    background_tasks: Optional[BackgroundTasks] = None,
    now: Optional[datetime] = None,
) -> schemas.BulkDecisionResult:
    """
    Applies one decision to every listed event that is still pending. Ids
    that are unknown or already decided are dropped without an error; the
    remaining batch commits as a whole.
    """
    authorize(admin, Operation.DECIDE_EVENT)
    if action == "reject":
        reason = validate_reason(reason)

    requested = list(dict.fromkeys(event_ids))
    eligible = (
        db.query(models.Event)
        .filter(models.Event.id.in_(requested), models.Event.status == models.EventStatus.PENDING)
        .order_by(models.Event.id)
        .all()
    )
    if not eligible:
        raise NoEligibleEvents()

    eligible_ids = [db_event.id for db_event in eligible]
    now = as_utc(now) if now is not None else utcnow()
    new_status = models.EventStatus.APPROVED if action == "approve" else models.EventStatus.REJECTED
    try:
        updated = (
            db.query(models.Event)
            .filter(models.Event.id.in_(eligible_ids), models.Event.status == models.EventStatus.PENDING)
            .update(_decision_values(admin, action, reason, now), synchronize_session=False)
        )
        if updated == len(eligible_ids):
            for db_event in eligible:
                if new_status == models.EventStatus.APPROVED:
                    db.add(models.CommunicationChannel(event_id=db_event.id))
                notification_service.enqueue_event_status(db, db_event, new_status)
            db.flush()
    except IntegrityError:
        db.rollback()
        raise AlreadyDecided("Some of these events were processed concurrently")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to bulk decide events %s: %s", eligible_ids, e)
        raise DependencyFailure("Could not save the decisions, please try again later")
    if updated != len(eligible_ids):
        db.rollback()
        raise AlreadyDecided("Some of these events were processed concurrently")

    commit_or_fail(db)
    schedule_dispatch(background_tasks)
    logger.info("Bulk %s of %s events by admin %s", action, len(eligible_ids), admin.id)
    return schemas.BulkDecisionResult(processed_count=len(eligible_ids), processed_ids=eligible_ids)


def list_events(
    db: Session,
    status: Optional[models.EventStatus] = None,
    skip: int = 0,
    limit: int = 100,
    now: Optional[datetime] = None,
) -> List[models.Event]:
    """
    Review listing. The pending queue is served oldest first; decided events
    newest-decided first.
    """
    query = db.query(models.Event)
    if status == models.EventStatus.PENDING:
        query = query.filter(models.Event.status == models.EventStatus.PENDING).order_by(
            models.Event.created_at.asc(), models.Event.id.asc()
        )
        return query.offset(skip).limit(limit).all()

    if status is None:
        query = query.filter(models.Event.status.in_(HISTORY_STATUSES))
    elif status == models.EventStatus.COMPLETED:
        now = as_utc(now) if now is not None else utcnow()
        query = query.filter(models.Event.status == models.EventStatus.APPROVED, models.Event.end_date < now)
    else:
        query = query.filter(models.Event.status == status)
    query = query.order_by(models.Event.decided_at.desc(), models.Event.id.desc())
    return query.offset(skip).limit(limit).all()


def _approved_counts(db: Session):
    return (
        db.query(
            models.EventParticipant.event_id,
            func.count(models.EventParticipant.id).label("participant_count"),
        )
        .filter(models.EventParticipant.status == models.ParticipantStatus.APPROVED)
        .group_by(models.EventParticipant.event_id)
        .subquery()
    )


def _with_counts(db: Session):
    counts = _approved_counts(db)
    return db.query(models.Event, func.coalesce(counts.c.participant_count, 0)).outerjoin(
        counts, counts.c.event_id == models.Event.id
    )


def _summaries(rows) -> List[schemas.EventSummary]:
    return [
        schemas.EventSummary.model_validate(db_event).model_copy(update={"participant_count": count})
        for db_event, count in rows
    ]


def discover_events(
    db: Session,
    search: Optional[str] = None,
    category: Optional[str] = None,
    location: Optional[str] = None,
    start_from: Optional[datetime] = None,
    start_to: Optional[datetime] = None,
    skip: int = 0,
    limit: int = 20,
    now: Optional[datetime] = None,
) -> List[schemas.EventSummary]:
    """
    Public listing of approved events that have not ended yet, soonest first.
    """
    now = as_utc(now) if now is not None else utcnow()
    query = _with_counts(db).filter(
        models.Event.status == models.EventStatus.APPROVED, models.Event.end_date > now
    )
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(models.Event.title.ilike(pattern), models.Event.description.ilike(pattern)))
    if category:
        if category not in EVENT_CATEGORIES:
            raise ValidationFailed("Invalid filter", details=[f"category: unknown category {category}"])
        query = query.filter(models.Event.category == models.EventCategory(category))
    if location:
        query = query.filter(models.Event.location.ilike(f"%{location.strip()}%"))
    if start_from:
        query = query.filter(models.Event.start_date >= as_utc(start_from))
    if start_to:
        query = query.filter(models.Event.start_date <= as_utc(start_to))

    rows = query.order_by(models.Event.start_date.asc(), models.Event.id.asc()).offset(skip).limit(limit).all()
    return _summaries(rows)


def list_events_by_organizer(
    db: Session,
    organizer: models.User,
    status: Optional[models.EventStatus] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[schemas.EventSummary]:
    authorize(organizer, Operation.VIEW_OWN_EVENTS)
    query = _with_counts(db).filter(models.Event.organizer_id == organizer.id)
    if status is not None:
        query = query.filter(models.Event.status == status)
    rows = query.order_by(models.Event.created_at.desc(), models.Event.id.desc()).offset(skip).limit(limit).all()
    return _summaries(rows)


def delete_event(db: Session, admin: models.User, event_id: int) -> bool:
    """
    Removes an event together with its channel, registrations and channel
    content.
    """
    authorize(admin, Operation.DELETE_EVENT)
    db_event = get_event(db, event_id)
    if db_event is None:
        raise NotFound("Event not found")
    db.delete(db_event)
    commit_or_fail(db)
    logger.info("Event %s deleted by admin %s", event_id, admin.id)
    return True
