# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# SPDX-License-Identifier: MIT
#

import re
from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from volunteerhub.db.models import EventCategory, EventStatus, ParticipantStatus, Role

PASSWORD_PATTERNS = (r"[a-z]", r"[A-Z]", r"[0-9]", r"[!@#$%^&*]")

DecisionAction = Literal["approve", "reject"]


def _check_password_complexity(value: str) -> str:
    if not all(re.search(pattern, value) for pattern in PASSWORD_PATTERNS):
        raise ValueError(
            "Password must contain a lowercase letter, an uppercase letter, a digit and a special character"
        )
    return value


class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class RefreshRequest(BaseModel):
    refresh_token: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserBase(BaseModel):
    email: EmailStr
    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)
    phone: Optional[str] = Field(default=None, pattern=r"^(0|\+84)(3|5|7|8|9)[0-9]{8}$")
    location: Optional[str] = Field(default=None, max_length=255)


class UserCreate(UserBase):
    password: str = Field(min_length=8)

    @field_validator("password")
    @classmethod
    def password_complexity(cls, value: str) -> str:
        return _check_password_complexity(value)


class UserUpdate(BaseModel):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    phone: Optional[str] = Field(default=None, pattern=r"^(0|\+84)(3|5|7|8|9)[0-9]{8}$")
    location: Optional[str] = Field(default=None, max_length=255)
    bio: Optional[str] = Field(default=None, max_length=1000)
    avatar: Optional[str] = Field(default=None, max_length=500)

    @field_validator("first_name", "last_name")
    @classmethod
    def name_not_null(cls, value: Optional[str]) -> str:
        if value is None:
            raise ValueError("may be omitted but not set to null")
        return value


class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(min_length=8)

    @field_validator("new_password")
    @classmethod
    def password_complexity(cls, value: str) -> str:
        return _check_password_complexity(value)


class UserPublic(BaseModel):
    id: int
    first_name: str
    last_name: str

    model_config = ConfigDict(from_attributes=True)


class User(UserPublic):
    email: EmailStr
    role: Role
    phone: Optional[str] = None
    location: Optional[str] = None
    bio: Optional[str] = None
    avatar: Optional[str] = None
    created_at: datetime


class AuthResponse(Token):
    user: User


class EventCreate(BaseModel):
    # Bounds are checked by crud_event so that every violation is reported together.
    title: str
    description: str
    location: str
    start_date: datetime
    end_date: datetime
    capacity: Optional[int] = None
    category: str


class Event(BaseModel):
    id: int
    title: str
    description: str
    location: str
    start_date: datetime
    end_date: datetime
    capacity: Optional[int] = None
    category: EventCategory
    status: EventStatus
    effective_status: EventStatus
    organizer_id: int
    organizer: UserPublic
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    decided_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EventSummary(Event):
    participant_count: int = 0


class EventDecision(BaseModel):
    action: DecisionAction
    reason: Optional[str] = None


class BulkEventDecision(EventDecision):
    event_ids: List[int] = Field(min_length=1)


class BulkDecisionResult(BaseModel):
    processed_count: int
    processed_ids: List[int]


class CategoryList(BaseModel):
    categories: List[str]


class Registration(BaseModel):
    id: int
    event_id: int
    volunteer_id: int
    volunteer: UserPublic
    status: ParticipantStatus
    registered_at: datetime
    decided_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    completed_at: Optional[datetime] = None
    rating: Optional[int] = None
    feedback: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class RegistrationDecision(EventDecision):
    pass


class RatingCreate(BaseModel):
    rating: int
    feedback: Optional[str] = None


class ChannelPermissions(BaseModel):
    read: bool
    post: bool
    comment: bool
    moderate: bool


class Channel(BaseModel):
    id: int
    event_id: int
    event_title: str
    created_at: datetime
    permissions: ChannelPermissions


class PostCreate(BaseModel):
    content: str
    image_url: Optional[str] = None


class CommentCreate(BaseModel):
    content: str


class Comment(BaseModel):
    id: int
    post_id: int
    content: str
    author: UserPublic
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class Post(BaseModel):
    id: int
    channel_id: int
    content: str
    image_url: Optional[str] = None
    author: UserPublic
    created_at: datetime
    updated_at: datetime
    likes_count: int = 0
    is_liked: bool = False
    comments_count: int = 0
    comments: List[Comment] = []


class LikeResult(BaseModel):
    action: Literal["liked", "unliked"]
    likes_count: int
    is_liked: bool


class PushKeys(BaseModel):
    p256dh: str
    auth: str


class PushSubscriptionCreate(BaseModel):
    endpoint: str = Field(pattern=r"^https?://")
    keys: PushKeys


class PushUnsubscribe(BaseModel):
    endpoint: str


class PushSubscription(BaseModel):
    id: int
    endpoint: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SubscriptionStatus(BaseModel):
    has_valid_subscriptions: bool


class NotificationTestRequest(BaseModel):
    title: str = "Test Notification"
    body: str = "This is a test notification"


class NotifyResult(BaseModel):
    delivered: int
    attempted: int


class Dashboard(BaseModel):
    user: User
    quick_actions: List[str]
    upcoming_events: List[Dict]
    recent_activity: List[Dict]
    trending_events: List[Dict]
    role_specific: Dict
