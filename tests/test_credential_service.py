# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# SPDX-License-Identifier: MIT
#

from datetime import timedelta

import pytest
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from volunteerhub.config import settings
from volunteerhub.errors import IdentityNotFound, Unauthenticated
from volunteerhub.services import credential_service
from volunteerhub.utils.security import (
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_refresh_token,
)
from tests.test_helpers import DEFAULT_PASSWORD


def test_issue_tokens_binds_id_and_role(volunteer):
    tokens = credential_service.issue_tokens(volunteer)

    access = decode_access_token(tokens.access_token)
    refresh = decode_refresh_token(tokens.refresh_token)
    assert access["sub"] == str(volunteer.id)
    assert access["role"] == "VOLUNTEER"
    assert access["type"] == "access"
    assert refresh["sub"] == str(volunteer.id)
    assert refresh["type"] == "refresh"


def test_refresh_token_is_signed_with_its_own_secret(volunteer):
    tokens = credential_service.issue_tokens(volunteer)
    with pytest.raises(JWTError):
        jwt.decode(tokens.refresh_token, settings.secret_key, algorithms=[settings.algorithm])


def test_authenticate(db_session: Session, volunteer):
    assert credential_service.authenticate(db_session, volunteer.email, DEFAULT_PASSWORD).id == volunteer.id
    with pytest.raises(Unauthenticated):
        credential_service.authenticate(db_session, volunteer.email, "wrong-password")
    with pytest.raises(Unauthenticated):
        credential_service.authenticate(db_session, "nobody@example.com", DEFAULT_PASSWORD)


def test_resolve_identity_with_valid_access_token(db_session: Session, volunteer):
    tokens = credential_service.issue_tokens(volunteer)
    identity = credential_service.resolve_identity(db_session, tokens.access_token)
    assert identity.user.id == volunteer.id
    assert identity.renewed is None


def test_resolve_identity_without_credentials(db_session: Session):
    with pytest.raises(Unauthenticated):
        credential_service.resolve_identity(db_session, None, None)


def test_expired_access_token_is_renewed_with_valid_refresh_token(db_session: Session, volunteer):
    expired = create_access_token(
        {"sub": str(volunteer.id), "role": "VOLUNTEER"}, expires_delta=timedelta(minutes=-1)
    )
    refresh = create_refresh_token({"sub": str(volunteer.id)})

    identity = credential_service.resolve_identity(db_session, expired, refresh)

    assert identity.user.id == volunteer.id
    assert identity.renewed is not None
    assert decode_access_token(identity.renewed.access_token)["sub"] == str(volunteer.id)
    assert decode_refresh_token(identity.renewed.refresh_token)["type"] == "refresh"


def test_expired_access_token_with_expired_refresh_token(db_session: Session, volunteer):
    expired = create_access_token({"sub": str(volunteer.id)}, expires_delta=timedelta(minutes=-1))
    expired_refresh = create_refresh_token({"sub": str(volunteer.id)}, expires_delta=timedelta(minutes=-1))
    with pytest.raises(Unauthenticated):
        credential_service.resolve_identity(db_session, expired, expired_refresh)


def test_expired_access_token_without_refresh_token(db_session: Session, volunteer):
    expired = create_access_token({"sub": str(volunteer.id)}, expires_delta=timedelta(minutes=-1))
    with pytest.raises(Unauthenticated):
        credential_service.resolve_identity(db_session, expired)


def test_tampered_token_is_unauthenticated(db_session: Session, volunteer):
    tokens = credential_service.issue_tokens(volunteer)
    with pytest.raises(Unauthenticated):
        credential_service.resolve_identity(db_session, tokens.access_token[:-2] + "xx")


def test_refresh_token_cannot_be_used_as_access_token(db_session: Session, volunteer):
    token = jwt.encode(
        {"sub": str(volunteer.id), "type": "refresh"}, settings.secret_key, algorithm=settings.algorithm
    )
    with pytest.raises(Unauthenticated):
        credential_service.resolve_identity(db_session, token)


def test_token_for_deleted_user_is_identity_not_found(db_session: Session, volunteer):
    tokens = credential_service.issue_tokens(volunteer)
    db_session.delete(volunteer)
    db_session.commit()
    with pytest.raises(IdentityNotFound):
        credential_service.resolve_identity(db_session, tokens.access_token)


def test_refresh_exchanges_for_new_pair(db_session: Session, volunteer):
    tokens = credential_service.issue_tokens(volunteer)
    user, renewed = credential_service.refresh(db_session, tokens.refresh_token)
    assert user.id == volunteer.id
    assert decode_access_token(renewed.access_token)["role"] == "VOLUNTEER"

    with pytest.raises(Unauthenticated):
        credential_service.refresh(db_session, None)
    with pytest.raises(Unauthenticated):
        credential_service.refresh(db_session, tokens.access_token)
