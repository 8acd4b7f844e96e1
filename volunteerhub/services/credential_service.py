"""
# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# Created Date: Mon Oct 13 2025
# SPDX-License-Identifier: MIT
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from jose import ExpiredSignatureError, JWTError
from sqlalchemy.orm import Session

from volunteerhub.crud import crud_user
from volunteerhub.db.models import User
from volunteerhub.errors import IdentityNotFound, Unauthenticated
from volunteerhub.utils.security import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_refresh_token,
    verify_password,
)

logger = logging.getLogger(__name__)


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


@dataclass
class ResolvedIdentity:
    user: User
    renewed: Optional[TokenPair] = None


def issue_tokens(user: User) -> TokenPair:
    """
    Mints an access/refresh pair bound to the user's id and role.
    """
    return TokenPair(
        access_token=create_access_token({"sub": str(user.id), "role": user.role.value}),
        refresh_token=create_refresh_token({"sub": str(user.id)}),
    )


def authenticate(db: Session, email: str, password: str) -> User:
    user = crud_user.get_user_by_email(db, email=email)
    if not user or not verify_password(password, user.password):
        raise Unauthenticated("Incorrect email or password")
    return user


def _user_id_from_claims(claims: dict, expected_type: str) -> int:
    if claims.get("type") != expected_type:
        raise Unauthenticated("Invalid token type")
    subject = claims.get("sub")
    try:
        return int(subject)
    except (TypeError, ValueError):
        raise Unauthenticated("Invalid token subject")


def _load_user(db: Session, user_id: int) -> User:
    user = crud_user.get_user(db, user_id)
    if user is None:
        raise IdentityNotFound()
    return user


def refresh(db: Session, refresh_token: Optional[str]) -> Tuple[User, TokenPair]:
    """
    Exchanges a valid refresh token for a fresh access and refresh token.
    """
    if not refresh_token:
        raise Unauthenticated("No refresh token, please log in again")
    try:
        claims = decode_refresh_token(refresh_token)
    except JWTError:
        raise Unauthenticated("Session expired, please log in again")
    user = _load_user(db, _user_id_from_claims(claims, REFRESH_TOKEN_TYPE))
    return user, issue_tokens(user)


def resolve_identity(
    db: Session, access_token: Optional[str], refresh_token: Optional[str] = None
) -> ResolvedIdentity:
    """
    Resolves the caller from its credentials. An expired access token is
    renewed silently when the refresh token is still valid; the renewed pair
    is returned so the transport can hand it back to the client.
    """
    if not access_token:
        if refresh_token:
            user, tokens = refresh(db, refresh_token)
            return ResolvedIdentity(user=user, renewed=tokens)
        raise Unauthenticated("Please log in to continue")

    try:
        claims = decode_access_token(access_token)
    except ExpiredSignatureError:
        if not refresh_token:
            raise Unauthenticated("Session expired, please log in again")
        user, tokens = refresh(db, refresh_token)
        logger.info("Renewed expired access token for user %s", user.id)
        return ResolvedIdentity(user=user, renewed=tokens)
    except JWTError:
        raise Unauthenticated("Invalid authentication token")

    user = _load_user(db, _user_id_from_claims(claims, ACCESS_TOKEN_TYPE))
    return ResolvedIdentity(user=user)
