# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# SPDX-License-Identifier: MIT
#

from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from volunteerhub.crud import crud_channel
from volunteerhub.db.database import get_db
from volunteerhub.db.models import User
from volunteerhub.dependencies import get_current_user
from volunteerhub.schemas import schemas

router = APIRouter(
    tags=["Channels"],
    responses={404: {"description": "Not found"}},
)


@router.get("/channels/{channel_id}/posts", response_model=List[schemas.Post])
def read_posts(
    channel_id: int,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Posts of an event channel, newest first, each with its comments.
    """
    return crud_channel.list_posts(db, current_user, channel_id, skip=skip, limit=limit)


@router.post("/channels/{channel_id}/posts", response_model=schemas.Post, status_code=status.HTTP_201_CREATED)
def create_post(
    channel_id: int,
    post: schemas.PostCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return crud_channel.create_post(db, current_user, channel_id, post)


@router.post("/posts/{post_id}/comments", response_model=schemas.Comment, status_code=status.HTTP_201_CREATED)
def add_comment(
    post_id: int,
    comment: schemas.CommentCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return crud_channel.add_comment(db, current_user, post_id, comment)


@router.post("/posts/{post_id}/like", response_model=schemas.LikeResult)
def toggle_like(
    post_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return crud_channel.toggle_like(db, current_user, post_id)


@router.delete("/posts/{post_id}")
def delete_post(
    post_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    crud_channel.delete_post(db, current_user, post_id)
    return {"message": "Post deleted successfully"}
