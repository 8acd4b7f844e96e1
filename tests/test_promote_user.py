# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# SPDX-License-Identifier: MIT
#

import pytest
from sqlalchemy.orm import Session

from volunteerhub import promote_user
from volunteerhub.db import models


@pytest.fixture(autouse=True)
def use_test_session(db_session: Session, mocker):
    mocker.patch("volunteerhub.promote_user.database.SessionLocal", return_value=db_session)


def test_promotes_existing_user(db_session: Session, volunteer, capsys):
    email, user_id = volunteer.email, volunteer.id

    assert promote_user.main([email, "ORGANIZER"]) == 0

    assert db_session.get(models.User, user_id).role == models.Role.ORGANIZER
    assert f"Promoted {email} to ORGANIZER" in capsys.readouterr().out


def test_unknown_email(db_session: Session, capsys):
    assert promote_user.main(["nobody@example.com", "ADMIN"]) == 1
    assert "not found" in capsys.readouterr().err


def test_rejects_unknown_role(volunteer):
    with pytest.raises(SystemExit):
        promote_user.main([volunteer.email, "SUPERUSER"])
