# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# SPDX-License-Identifier: MIT
#

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session

from volunteerhub.crud import crud_channel, crud_event, crud_registration
from volunteerhub.db.database import get_db
from volunteerhub.db.models import EventStatus, ParticipantStatus, User
from volunteerhub.dependencies import (
    get_current_staff,
    get_current_user,
    get_current_volunteer,
    get_optional_user,
)
from volunteerhub.schemas import schemas

router = APIRouter(
    tags=["Events"],
    responses={404: {"description": "Not found"}},
)


@router.get("/events/categories", response_model=schemas.CategoryList)
def read_categories():
    return {"categories": crud_event.EVENT_CATEGORIES}


@router.get("/events", response_model=List[schemas.EventSummary])
def discover_events(
    db: Session = Depends(get_db),
    search: Optional[str] = None,
    category: Optional[str] = None,
    location: Optional[str] = None,
    start_from: Optional[datetime] = None,
    start_to: Optional[datetime] = None,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=100),
):
    """
    Lists approved events that have not ended yet, soonest first.
    """
    return crud_event.discover_events(
        db,
        search=search,
        category=category,
        location=location,
        start_from=start_from,
        start_to=start_to,
        skip=skip,
        limit=limit,
    )


@router.get("/events/mine", response_model=List[schemas.EventSummary])
def read_my_events(
    event_status: Optional[EventStatus] = Query(default=None, alias="status"),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=100),
    current_user: User = Depends(get_current_staff),
    db: Session = Depends(get_db),
):
    return crud_event.list_events_by_organizer(db, current_user, status=event_status, skip=skip, limit=limit)


@router.post("/events", response_model=schemas.Event, status_code=status.HTTP_201_CREATED)
def submit_event(
    event: schemas.EventCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_staff),
    db: Session = Depends(get_db),
):
    """
    Submits a new event for admin approval.
    """
    return crud_event.submit_event(db, current_user, event, background_tasks=background_tasks)


@router.get("/events/{event_id}", response_model=schemas.Event)
def read_event(
    event_id: int,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    return crud_event.get_event_for_viewer(db, current_user, event_id)


@router.post(
    "/events/{event_id}/register", response_model=schemas.Registration, status_code=status.HTTP_201_CREATED
)
def register_for_event(
    event_id: int,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_volunteer),
    db: Session = Depends(get_db),
):
    return crud_registration.register(db, current_user, event_id, background_tasks=background_tasks)


@router.get("/events/{event_id}/registrations", response_model=List[schemas.Registration])
def read_event_registrations(
    event_id: int,
    registration_status: Optional[ParticipantStatus] = Query(default=None, alias="status"),
    current_user: User = Depends(get_current_staff),
    db: Session = Depends(get_db),
):
    """
    Registrations of one event, for its organizer and admins.
    """
    return crud_registration.list_registrations_for_event(db, current_user, event_id, status=registration_status)


@router.get("/events/{event_id}/channel", response_model=schemas.Channel)
def read_event_channel(
    event_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return crud_channel.get_event_channel(db, current_user, event_id)


@router.get("/registrations/mine", response_model=List[schemas.Registration])
def read_my_registrations(
    registration_status: Optional[ParticipantStatus] = Query(default=None, alias="status"),
    current_user: User = Depends(get_current_volunteer),
    db: Session = Depends(get_db),
):
    return crud_registration.list_registrations_for_volunteer(db, current_user, status=registration_status)


@router.put("/registrations/{registration_id}/decision", response_model=schemas.Registration)
def decide_registration(
    registration_id: int,
    decision: schemas.RegistrationDecision,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_staff),
    db: Session = Depends(get_db),
):
    """
    Approves or rejects a volunteer's registration. Rejections need a reason.
    """
    return crud_registration.decide_registration(
        db,
        current_user,
        registration_id,
        decision.action,
        reason=decision.reason,
        background_tasks=background_tasks,
    )


@router.put("/registrations/{registration_id}/complete", response_model=schemas.Registration)
def complete_registration(
    registration_id: int,
    current_user: User = Depends(get_current_staff),
    db: Session = Depends(get_db),
):
    return crud_registration.complete_registration(db, current_user, registration_id)


@router.post("/registrations/{registration_id}/rating", response_model=schemas.Registration)
def rate_registration(
    registration_id: int,
    rating: schemas.RatingCreate,
    current_user: User = Depends(get_current_volunteer),
    db: Session = Depends(get_db),
):
    return crud_registration.rate_registration(
        db, current_user, registration_id, rating.rating, feedback=rating.feedback
    )


@router.delete("/registrations/{registration_id}")
def cancel_registration(
    registration_id: int,
    current_user: User = Depends(get_current_volunteer),
    db: Session = Depends(get_db),
):
    crud_registration.cancel_registration(db, current_user, registration_id)
    return {"message": "Registration cancelled successfully"}
