# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# SPDX-License-Identifier: MIT
#

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from volunteerhub.db.database import Base
from volunteerhub.utils.timeutils import as_utc, utcnow


class Role(str, enum.Enum):
    VOLUNTEER = "VOLUNTEER"
    ORGANIZER = "ORGANIZER"
    ADMIN = "ADMIN"


class EventStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    COMPLETED = "COMPLETED"


class ParticipantStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    COMPLETED = "COMPLETED"


class EventCategory(str, enum.Enum):
    ENVIRONMENT = "Môi trường"
    EDUCATION = "Giáo dục"
    HEALTH = "Y tế"
    COMMUNITY = "Cộng đồng"
    CHARITY = "Từ thiện"
    DISASTER_RELIEF = "Cứu trợ thiên tai"


class IntentStatus(str, enum.Enum):
    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"


def _enum_values(enum_class):
    return [member.value for member in enum_class]


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)
    role = Column(Enum(Role, name="user_role"), nullable=False, default=Role.VOLUNTEER)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    phone = Column(String(20), nullable=True)
    location = Column(String(255), nullable=True)
    bio = Column(Text, nullable=True)
    avatar = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    organized_events = relationship(
        "Event", back_populates="organizer", foreign_keys="Event.organizer_id"
    )
    participations = relationship("EventParticipant", back_populates="volunteer", passive_deletes=True)
    push_subscriptions = relationship(
        "PushSubscription", back_populates="user", cascade="all, delete-orphan"
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Event(Base):
    __tablename__ = "events"
    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="ck_events_end_after_start"),
        CheckConstraint("capacity IS NULL OR capacity > 0", name="ck_events_capacity_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    location = Column(String(500), nullable=False)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    capacity = Column(Integer, nullable=True)
    category = Column(
        Enum(EventCategory, name="event_category", values_callable=_enum_values), nullable=False
    )
    status = Column(
        Enum(EventStatus, name="event_status"), nullable=False, default=EventStatus.PENDING, index=True
    )
    organizer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    approved_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    decided_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    organizer = relationship("User", back_populates="organized_events", foreign_keys=[organizer_id])
    approver = relationship("User", foreign_keys=[approved_by])
    participants = relationship(
        "EventParticipant", back_populates="event", cascade="all, delete-orphan", passive_deletes=True
    )
    channel = relationship(
        "CommunicationChannel",
        back_populates="event",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def effective_status_at(self, now: Optional[datetime] = None) -> EventStatus:
        """
        The observed status: an APPROVED event whose end time has passed is
        COMPLETED. The stored status is never rewritten for this.
        """
        now = as_utc(now) if now is not None else utcnow()
        if self.status == EventStatus.APPROVED and now > as_utc(self.end_date):
            return EventStatus.COMPLETED
        return self.status

    @property
    def effective_status(self) -> EventStatus:
        return self.effective_status_at()


class EventParticipant(Base):
    __tablename__ = "event_participants"
    __table_args__ = (
        UniqueConstraint("event_id", "volunteer_id", name="uq_event_participants_event_volunteer"),
        CheckConstraint("rating IS NULL OR (rating >= 1 AND rating <= 5)", name="ck_event_participants_rating"),
    )

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    volunteer_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(
        Enum(ParticipantStatus, name="participant_status"),
        nullable=False,
        default=ParticipantStatus.PENDING,
        index=True,
    )
    registered_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    decided_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    rating = Column(Integer, nullable=True)
    feedback = Column(Text, nullable=True)
    rated_at = Column(DateTime(timezone=True), nullable=True)

    event = relationship("Event", back_populates="participants")
    volunteer = relationship("User", back_populates="participations")


class CommunicationChannel(Base):
    __tablename__ = "communication_channels"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(
        Integer, ForeignKey("events.id", ondelete="CASCADE"), unique=True, nullable=False, index=True
    )
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    event = relationship("Event", back_populates="channel")
    posts = relationship(
        "ChannelPost", back_populates="channel", cascade="all, delete-orphan", passive_deletes=True
    )


class ChannelPost(Base):
    __tablename__ = "channel_posts"

    id = Column(Integer, primary_key=True, index=True)
    channel_id = Column(
        Integer, ForeignKey("communication_channels.id", ondelete="CASCADE"), nullable=False, index=True
    )
    author_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content = Column(String(2000), nullable=False)
    image_url = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    channel = relationship("CommunicationChannel", back_populates="posts")
    author = relationship("User")
    comments = relationship(
        "PostComment",
        back_populates="post",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="PostComment.created_at",
    )
    likes = relationship("PostLike", back_populates="post", cascade="all, delete-orphan", passive_deletes=True)


class PostComment(Base):
    __tablename__ = "post_comments"

    id = Column(Integer, primary_key=True, index=True)
    post_id = Column(Integer, ForeignKey("channel_posts.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content = Column(String(500), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    post = relationship("ChannelPost", back_populates="comments")
    author = relationship("User")


class PostLike(Base):
    __tablename__ = "post_likes"
    __table_args__ = (UniqueConstraint("post_id", "user_id", name="uq_post_likes_post_user"),)

    id = Column(Integer, primary_key=True, index=True)
    post_id = Column(Integer, ForeignKey("channel_posts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    post = relationship("ChannelPost", back_populates="likes")


class PushSubscription(Base):
    __tablename__ = "push_subscriptions"
    __table_args__ = (UniqueConstraint("user_id", "endpoint", name="uq_push_subscriptions_user_endpoint"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    endpoint = Column(String(1000), nullable=False)
    p256dh_key = Column(String(255), nullable=False)
    auth_key = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    user = relationship("User", back_populates="push_subscriptions")


class NotificationIntent(Base):
    __tablename__ = "notification_intents"

    id = Column(Integer, primary_key=True, index=True)
    kind = Column(String(50), nullable=False)
    target_user_ids = Column(JSON, nullable=False)
    payload = Column(JSON, nullable=False)
    urgency = Column(String(10), nullable=False, default="normal")
    status = Column(
        Enum(IntentStatus, name="intent_status"), nullable=False, default=IntentStatus.PENDING, index=True
    )
    attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    dispatched_at = Column(DateTime(timezone=True), nullable=True)
