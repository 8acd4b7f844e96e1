# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# SPDX-License-Identifier: MIT
#

import logging
import os

from sqlalchemy import create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from volunteerhub.config import settings
from volunteerhub.errors import DependencyFailure

logger = logging.getLogger(__name__)

# Safety check: prevent production database access during testing
if os.getenv("TESTING") == "1":
    SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
else:
    SQLALCHEMY_DATABASE_URL = settings.database_url


def build_engine(url: str, **kwargs):
    """
    Creates an engine; SQLite connections get foreign keys enforced so
    ON DELETE CASCADE behaves the same as on PostgreSQL.
    """
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    db_engine = create_engine(url, pool_pre_ping=True, **kwargs)
    if url.startswith("sqlite"):
        event.listen(db_engine, "connect", _enable_sqlite_foreign_keys)
    return db_engine


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


engine = build_engine(SQLALCHEMY_DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def commit_or_fail(db):
    """
    Commits the unit of work. Any persistence error rolls it back in full
    and surfaces as DependencyFailure.
    """
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Database commit failed: %s", e)
        raise DependencyFailure("The database is unavailable, please try again later")
