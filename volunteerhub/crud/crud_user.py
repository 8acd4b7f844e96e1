# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# SPDX-License-Identifier: MIT
#

import logging
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from volunteerhub.db import models
from volunteerhub.db.database import commit_or_fail
from volunteerhub.errors import EmailAlreadyRegistered, Unauthenticated
from volunteerhub.schemas import schemas
from volunteerhub.utils.security import get_password_hash, verify_password

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: int):
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_user_by_email(db: Session, email: str):
    return db.query(models.User).filter(models.User.email == email).first()


def get_users_by_role(db: Session, role: models.Role) -> List[models.User]:
    return db.query(models.User).filter(models.User.role == role).order_by(models.User.id).all()


def get_admin_ids(db: Session) -> List[int]:
    rows = db.query(models.User.id).filter(models.User.role == models.Role.ADMIN).all()
    return [row.id for row in rows]


def create_user(db: Session, user: schemas.UserCreate) -> models.User:
    """
    Self-service signup. Always creates a VOLUNTEER; other roles are only
    granted through promote_user.
    """
    if get_user_by_email(db, email=user.email):
        raise EmailAlreadyRegistered()

    db_user = models.User(
        email=user.email,
        password=get_password_hash(user.password),
        role=models.Role.VOLUNTEER,
        first_name=user.first_name.strip(),
        last_name=user.last_name.strip(),
        phone=user.phone,
        location=user.location,
    )
    try:
        db.add(db_user)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise EmailAlreadyRegistered()
    db.refresh(db_user)
    logger.info("Registered volunteer %s", db_user.id)
    return db_user


def promote_user(db: Session, user_id: int, role: models.Role):
    """
    Out-of-band role assignment, used by operator scripts.
    """
    db_user = get_user(db, user_id)
    if db_user:
        db_user.role = role
        commit_or_fail(db)
        db.refresh(db_user)
        logger.info("User %s promoted to %s", user_id, role.value)
    return db_user


def update_profile(db: Session, db_user: models.User, changes: schemas.UserUpdate) -> models.User:
    for key, value in changes.model_dump(exclude_unset=True).items():
        setattr(db_user, key, value)
    commit_or_fail(db)
    db.refresh(db_user)
    return db_user


def change_password(db: Session, db_user: models.User, current_password: str, new_password: str):
    if not verify_password(current_password, db_user.password):
        raise Unauthenticated("Current password is incorrect")
    db_user.password = get_password_hash(new_password)
    commit_or_fail(db)
    db.refresh(db_user)
    return db_user
