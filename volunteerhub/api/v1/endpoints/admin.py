# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# SPDX-License-Identifier: MIT
#

from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from volunteerhub.crud import crud_event
from volunteerhub.db.database import get_db
from volunteerhub.db.models import EventStatus, User
from volunteerhub.dependencies import get_current_admin, get_current_user
from volunteerhub.schemas import schemas

router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    responses={404: {"description": "Not found"}},
)


@router.get("/events", response_model=List[schemas.Event])
def read_events_for_review(
    event_status: Optional[EventStatus] = Query(default=None, alias="status"),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=100),
    current_user: User = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    """
    Review queue (status=PENDING, oldest first) or decision history.
    """
    return crud_event.list_events(db, status=event_status, skip=skip, limit=limit)


@router.post("/events/bulk-decision", response_model=schemas.BulkDecisionResult)
def decide_events_bulk(
    decision: schemas.BulkEventDecision,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    """
    Applies one decision to several events. Ids that are not pending are skipped.
    """
    return crud_event.decide_events_bulk(
        db,
        current_user,
        decision.event_ids,
        decision.action,
        reason=decision.reason,
        background_tasks=background_tasks,
    )


@router.post("/events/{event_id}/decision", response_model=schemas.Event)
def decide_event(
    event_id: int,
    decision: schemas.EventDecision,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    # The role check happens inside decide_event, after the already-decided check.
    return crud_event.decide_event(
        db,
        current_user,
        event_id,
        decision.action,
        reason=decision.reason,
        background_tasks=background_tasks,
    )


@router.delete("/events/{event_id}")
def delete_event(
    event_id: int,
    current_user: User = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    crud_event.delete_event(db, current_user, event_id)
    return {"message": "Event deleted successfully"}
