# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# SPDX-License-Identifier: MIT
#

import logging
import re
from dataclasses import asdict, dataclass
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from volunteerhub.db import models
from volunteerhub.db.database import commit_or_fail
from volunteerhub.errors import Forbidden, NotFound, ValidationFailed
from volunteerhub.schemas import schemas
from volunteerhub.services.policy import Operation, authorize
from volunteerhub.services.realtime import publisher, room_for_event

logger = logging.getLogger(__name__)

POST_MAX_LENGTH = 2000
COMMENT_MAX_LENGTH = 500
IMAGE_URL_PATTERN = re.compile(r"^https?://", re.IGNORECASE)


@dataclass(frozen=True)
class ChannelAccess:
    read: bool = False
    post: bool = False
    comment: bool = False
    moderate: bool = False

    def as_permissions(self) -> schemas.ChannelPermissions:
        return schemas.ChannelPermissions(**asdict(self))


NO_ACCESS = ChannelAccess()


def get_channel_access(db: Session, user: Optional[models.User], event: Optional[models.Event]) -> ChannelAccess:
    """
    Derives the caller's channel permissions from committed state. Members
    are the organizer and volunteers with an APPROVED registration, and
    only while the event is APPROVED. Never cached.
    """
    if user is None or event is None:
        return NO_ACCESS
    is_organizer = event.organizer_id == user.id
    is_member = is_organizer
    if not is_member:
        is_member = (
            db.query(models.EventParticipant.id)
            .filter(
                models.EventParticipant.event_id == event.id,
                models.EventParticipant.volunteer_id == user.id,
                models.EventParticipant.status == models.ParticipantStatus.APPROVED,
            )
            .first()
            is not None
        )
    member = event.status == models.EventStatus.APPROVED and is_member
    return ChannelAccess(read=member, post=member, comment=member, moderate=is_organizer)


def _channel_gate(db: Session, user: models.User, channel_id: int) -> Tuple[models.CommunicationChannel, ChannelAccess]:
    authorize(user, Operation.USE_CHANNEL)
    channel = db.query(models.CommunicationChannel).filter(models.CommunicationChannel.id == channel_id).first()
    if channel is None:
        raise NotFound("Channel not found")
    access = get_channel_access(db, user, channel.event)
    if not access.read:
        raise Forbidden("You do not have access to this channel")
    return channel, access


def _post_gate(db: Session, user: models.User, post_id: int) -> Tuple[models.ChannelPost, ChannelAccess]:
    authorize(user, Operation.USE_CHANNEL)
    db_post = db.query(models.ChannelPost).filter(models.ChannelPost.id == post_id).first()
    if db_post is None:
        raise NotFound("Post not found")
    access = get_channel_access(db, user, db_post.channel.event)
    if not access.read:
        raise Forbidden("You do not have access to this channel")
    return db_post, access


def _serialize_post(db_post: models.ChannelPost, user_id: int) -> schemas.Post:
    return schemas.Post(
        id=db_post.id,
        channel_id=db_post.channel_id,
        content=db_post.content,
        image_url=db_post.image_url,
        author=schemas.UserPublic.model_validate(db_post.author),
        created_at=db_post.created_at,
        updated_at=db_post.updated_at,
        likes_count=len(db_post.likes),
        is_liked=any(like.user_id == user_id for like in db_post.likes),
        comments_count=len(db_post.comments),
        comments=[schemas.Comment.model_validate(comment) for comment in db_post.comments],
    )


def _check_content(field: str, content: Optional[str], max_length: int) -> str:
    content = (content or "").strip()
    if not content or len(content) > max_length:
        raise ValidationFailed("Invalid content", details=[f"{field}: must be between 1 and {max_length} characters"])
    return content


def get_event_channel(db: Session, user: models.User, event_id: int) -> schemas.Channel:
    authorize(user, Operation.USE_CHANNEL)
    db_event = db.query(models.Event).filter(models.Event.id == event_id).first()
    if db_event is None:
        raise NotFound("Event not found")
    access = get_channel_access(db, user, db_event)
    if not access.read:
        raise Forbidden("You do not have access to this channel")
    if db_event.channel is None:
        raise NotFound("Channel not found")
    return schemas.Channel(
        id=db_event.channel.id,
        event_id=db_event.id,
        event_title=db_event.title,
        created_at=db_event.channel.created_at,
        permissions=access.as_permissions(),
    )


def list_posts(db: Session, user: models.User, channel_id: int, skip: int = 0, limit: int = 20) -> List[schemas.Post]:
    _channel_gate(db, user, channel_id)
    posts = (
        db.query(models.ChannelPost)
        .filter(models.ChannelPost.channel_id == channel_id)
        .order_by(models.ChannelPost.created_at.desc(), models.ChannelPost.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )
    return [_serialize_post(db_post, user.id) for db_post in posts]


def create_post(db: Session, user: models.User, channel_id: int, post: schemas.PostCreate) -> schemas.Post:
    channel, access = _channel_gate(db, user, channel_id)
    if not access.post:
        raise Forbidden("You cannot post in this channel")
    errors = []
    content = (post.content or "").strip()
    if not content or len(content) > POST_MAX_LENGTH:
        errors.append(f"content: must be between 1 and {POST_MAX_LENGTH} characters")
    if post.image_url and not IMAGE_URL_PATTERN.match(post.image_url):
        errors.append("image_url: must be an http(s) URL")
    if errors:
        raise ValidationFailed("Invalid post", details=errors)

    db_post = models.ChannelPost(
        channel_id=channel.id, author_id=user.id, content=content, image_url=post.image_url or None
    )
    db.add(db_post)
    commit_or_fail(db)
    db.refresh(db_post)

    result = _serialize_post(db_post, user.id)
    publisher.publish(room_for_event(channel.event_id), "new-post", result.model_dump(mode="json"))
    logger.info("User %s posted %s in channel %s", user.id, db_post.id, channel.id)
    return result


def add_comment(db: Session, user: models.User, post_id: int, comment: schemas.CommentCreate) -> schemas.Comment:
    db_post, access = _post_gate(db, user, post_id)
    if not access.comment:
        raise Forbidden("You cannot comment in this channel")
    content = _check_content("content", comment.content, COMMENT_MAX_LENGTH)

    db_comment = models.PostComment(post_id=db_post.id, author_id=user.id, content=content)
    db.add(db_comment)
    commit_or_fail(db)
    db.refresh(db_comment)

    result = schemas.Comment.model_validate(db_comment)
    publisher.publish(
        room_for_event(db_post.channel.event_id),
        "new-comment",
        {"postId": db_post.id, "comment": result.model_dump(mode="json")},
    )
    return result


def toggle_like(db: Session, user: models.User, post_id: int) -> schemas.LikeResult:
    db_post, _ = _post_gate(db, user, post_id)
    existing = (
        db.query(models.PostLike)
        .filter(models.PostLike.post_id == post_id, models.PostLike.user_id == user.id)
        .first()
    )
    if existing:
        db.delete(existing)
        action = "unliked"
    else:
        db.add(models.PostLike(post_id=post_id, user_id=user.id))
        action = "liked"
    try:
        db.flush()
    except IntegrityError:
        # a concurrent request already liked the post
        db.rollback()
    else:
        commit_or_fail(db)
    likes_count = db.query(models.PostLike).filter(models.PostLike.post_id == post_id).count()
    is_liked = action == "liked"

    publisher.publish(
        room_for_event(db_post.channel.event_id),
        "post-liked",
        {"postId": post_id, "userId": user.id, "action": action, "likesCount": likes_count},
    )
    return schemas.LikeResult(action=action, likes_count=likes_count, is_liked=is_liked)


def delete_post(db: Session, user: models.User, post_id: int) -> bool:
    """
    Authors may delete their own posts, the organizer may delete any post
    of the channel.
    """
    db_post, access = _post_gate(db, user, post_id)
    if db_post.author_id != user.id and not access.moderate:
        raise Forbidden("You can only delete your own posts")
    event_id = db_post.channel.event_id
    db.delete(db_post)
    commit_or_fail(db)
    publisher.publish(room_for_event(event_id), "post-deleted", {"postId": post_id})
    logger.info("Post %s deleted by user %s", post_id, user.id)
    return True
