"""
# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# Created Date: Tue Jul 08 2025
# SPDX-License-Identifier: MIT
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Request, Response, status
from sqlalchemy.orm import Session

from volunteerhub.crud import crud_user
from volunteerhub.db import models
from volunteerhub.db.database import get_db
from volunteerhub.dependencies import REFRESH_COOKIE, clear_auth_cookies, get_current_user, set_auth_cookies
from volunteerhub.schemas import schemas
from volunteerhub.services import credential_service
from volunteerhub.services.policy import Operation, authorize

router = APIRouter(
    tags=["Authentication"],
    responses={404: {"description": "Not found"}},
)


def _auth_response(response: Response, user: models.User) -> schemas.AuthResponse:
    tokens = credential_service.issue_tokens(user)
    set_auth_cookies(response, tokens)
    return schemas.AuthResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        token_type=tokens.token_type,
        user=schemas.User.model_validate(user),
    )


@router.post("/auth/register", response_model=schemas.AuthResponse, status_code=status.HTTP_201_CREATED)
def register_user(user: schemas.UserCreate, response: Response, db: Session = Depends(get_db)):
    """
    Registers a new user. Self-service accounts are always volunteers.
    """
    db_user = crud_user.create_user(db, user)
    return _auth_response(response, db_user)


@router.post("/auth/login", response_model=schemas.AuthResponse)
def login(credentials: schemas.LoginRequest, response: Response, db: Session = Depends(get_db)):
    """
    Authenticates a user and returns an access/refresh token pair.
    """
    user = credential_service.authenticate(db, credentials.email, credentials.password)
    return _auth_response(response, user)


@router.post("/auth/refresh", response_model=schemas.Token)
def refresh_tokens(
    request: Request,
    response: Response,
    body: Optional[schemas.RefreshRequest] = Body(default=None),
    db: Session = Depends(get_db),
):
    refresh_token = (body.refresh_token if body else None) or request.cookies.get(REFRESH_COOKIE)
    _, tokens = credential_service.refresh(db, refresh_token)
    set_auth_cookies(response, tokens)
    return schemas.Token(
        access_token=tokens.access_token, refresh_token=tokens.refresh_token, token_type=tokens.token_type
    )


@router.post("/auth/logout")
def logout(response: Response):
    clear_auth_cookies(response)
    return {"message": "Logged out successfully"}


@router.get("/auth/me", response_model=schemas.User)
def read_me(current_user: models.User = Depends(get_current_user)):
    """
    Retrieves the current authenticated user's profile.
    """
    return current_user


@router.put("/users/me", response_model=schemas.User)
def update_me(
    changes: schemas.UserUpdate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    authorize(current_user, Operation.UPDATE_PROFILE)
    return crud_user.update_profile(db, current_user, changes)


@router.put("/users/me/password")
def change_password(
    passwords: schemas.PasswordChange,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    authorize(current_user, Operation.UPDATE_PROFILE)
    crud_user.change_password(db, current_user, passwords.current_password, passwords.new_password)
    return {"message": "Password changed successfully"}
