"""
# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# Created Date: Thu Oct 16 2025
# SPDX-License-Identifier: MIT
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, func
from sqlalchemy.orm import Session

from volunteerhub.db import models
from volunteerhub.schemas import schemas
from volunteerhub.services.policy import Operation, authorize
from volunteerhub.utils.timeutils import as_utc, utcnow

logger = logging.getLogger(__name__)

WIDGET_SIZE = 5
TRENDING_WINDOW = timedelta(days=7)

QUICK_ACTIONS = {
    models.Role.VOLUNTEER: ["Find events", "View participation history", "Update profile"],
    models.Role.ORGANIZER: ["Create a new event", "Manage registrations", "View reports"],
    models.Role.ADMIN: ["Review events", "Manage users", "View statistics"],
}


def _event_card(event: models.Event, **extra) -> Dict[str, Any]:
    card = {
        "id": event.id,
        "title": event.title,
        "start_date": as_utc(event.start_date),
        "end_date": as_utc(event.end_date),
        "location": event.location,
    }
    card.update(extra)
    return card


class DashboardService:
    """
    Builds the role-specific landing page data for the signed in user.
    """

    def __init__(self, db: Session, now: Optional[datetime] = None):
        self.db = db
        self.now = as_utc(now) if now is not None else utcnow()

    def get_dashboard(self, user: models.User) -> schemas.Dashboard:
        authorize(user, Operation.VIEW_DASHBOARD)
        if user.role == models.Role.VOLUNTEER:
            role_specific = self.get_volunteer_stats(user.id)
        elif user.role == models.Role.ORGANIZER:
            role_specific = self.get_organizer_stats(user.id)
        else:
            role_specific = self.get_admin_stats()

        return schemas.Dashboard(
            user=schemas.User.model_validate(user),
            quick_actions=QUICK_ACTIONS[user.role],
            upcoming_events=self.get_upcoming_events(user),
            recent_activity=self.get_recent_activity(user),
            trending_events=self.get_trending_events(),
            role_specific=role_specific,
        )

    def get_upcoming_events(self, user: models.User) -> List[Dict[str, Any]]:
        if user.role == models.Role.VOLUNTEER:
            events = (
                self.db.query(models.Event)
                .join(models.EventParticipant, models.EventParticipant.event_id == models.Event.id)
                .filter(
                    models.EventParticipant.volunteer_id == user.id,
                    models.EventParticipant.status == models.ParticipantStatus.APPROVED,
                    models.Event.status == models.EventStatus.APPROVED,
                    models.Event.start_date >= self.now,
                )
                .order_by(models.Event.start_date.asc())
                .limit(WIDGET_SIZE)
                .all()
            )
            return [_event_card(event) for event in events]

        if user.role == models.Role.ORGANIZER:
            events = (
                self.db.query(models.Event)
                .filter(
                    models.Event.organizer_id == user.id,
                    models.Event.status.in_([models.EventStatus.APPROVED, models.EventStatus.PENDING]),
                    models.Event.start_date >= self.now,
                )
                .order_by(models.Event.start_date.asc())
                .limit(WIDGET_SIZE)
                .all()
            )
            return [_event_card(event, status=event.status.value) for event in events]

        events = (
            self.db.query(models.Event)
            .filter(models.Event.status == models.EventStatus.APPROVED, models.Event.start_date >= self.now)
            .order_by(models.Event.start_date.asc())
            .limit(WIDGET_SIZE)
            .all()
        )
        return [_event_card(event, organizer=event.organizer.full_name) for event in events]

    def get_recent_activity(self, user: models.User) -> List[Dict[str, Any]]:
        # Only registrations are tracked as activity for now.
        if user.role != models.Role.VOLUNTEER:
            return []
        registrations = (
            self.db.query(models.EventParticipant)
            .filter(models.EventParticipant.volunteer_id == user.id)
            .order_by(models.EventParticipant.registered_at.desc())
            .limit(WIDGET_SIZE)
            .all()
        )
        return [
            {
                "type": "registration",
                "message": f"Registered for event: {registration.event.title}",
                "date": as_utc(registration.registered_at),
                "status": registration.status.value,
            }
            for registration in registrations
        ]

    def get_trending_events(self) -> List[Dict[str, Any]]:
        """
        Upcoming approved events ranked by registrations in the last week.
        """
        since = self.now - TRENDING_WINDOW
        recent = func.count(models.EventParticipant.id).label("recent_registrations")
        rows = (
            self.db.query(models.Event, recent)
            .outerjoin(
                models.EventParticipant,
                and_(
                    models.EventParticipant.event_id == models.Event.id,
                    models.EventParticipant.registered_at >= since,
                ),
            )
            .filter(models.Event.status == models.EventStatus.APPROVED, models.Event.start_date >= self.now)
            .group_by(models.Event.id)
            .order_by(recent.desc(), models.Event.start_date.asc())
            .limit(WIDGET_SIZE)
            .all()
        )
        return [_event_card(event, recent_registrations=count) for event, count in rows]

    def _count_participations(self, user_id: int, *criteria) -> int:
        return (
            self.db.query(func.count(models.EventParticipant.id))
            .join(models.Event, models.Event.id == models.EventParticipant.event_id)
            .filter(
                models.EventParticipant.volunteer_id == user_id,
                models.EventParticipant.status.in_(
                    [models.ParticipantStatus.APPROVED, models.ParticipantStatus.COMPLETED]
                ),
                *criteria,
            )
            .scalar()
        )

    def get_volunteer_stats(self, user_id: int) -> Dict[str, Any]:
        return {
            "participation_stats": {
                "total_events": self._count_participations(user_id),
                "completed_events": self._count_participations(user_id, models.Event.end_date < self.now),
                "upcoming_events": self._count_participations(user_id, models.Event.start_date >= self.now),
            }
        }

    def get_organizer_stats(self, user_id: int) -> Dict[str, Any]:
        own = self.db.query(models.Event).filter(models.Event.organizer_id == user_id)
        return {
            "event_stats": {
                "total_events": own.count(),
                "pending_approval": own.filter(models.Event.status == models.EventStatus.PENDING).count(),
                "active_events": own.filter(
                    models.Event.status == models.EventStatus.APPROVED, models.Event.start_date >= self.now
                ).count(),
            }
        }

    def get_admin_stats(self) -> Dict[str, Any]:
        return {
            "system_stats": {
                "total_users": self.db.query(models.User).count(),
                "pending_events": self.db.query(models.Event)
                .filter(models.Event.status == models.EventStatus.PENDING)
                .count(),
                "total_events": self.db.query(models.Event).count(),
            }
        }
