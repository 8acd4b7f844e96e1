"""
# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# Created Date: Tue Jul 08 2025
# SPDX-License-Identifier: MIT
"""

from typing import Optional

from fastapi import Depends, Request, Response
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from volunteerhub.config import settings
from volunteerhub.db.database import get_db
from volunteerhub.db.models import Role, User
from volunteerhub.errors import Forbidden, IdentityNotFound, Unauthenticated
from volunteerhub.services import credential_service
from volunteerhub.services.credential_service import TokenPair
from volunteerhub.services.policy import allowed

ACCESS_COOKIE = "accessToken"
LEGACY_ACCESS_COOKIE = "token"
REFRESH_COOKIE = "refreshToken"

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/v1/auth/login", auto_error=False)


def set_auth_cookies(response: Response, tokens: TokenPair):
    """
    Hands a token pair back to the browser as httpOnly cookies.
    """
    cookie_options = {"httponly": True, "secure": settings.is_production, "samesite": "strict"}
    response.set_cookie(
        ACCESS_COOKIE,
        tokens.access_token,
        max_age=settings.access_token_expire_minutes * 60,
        **cookie_options,
    )
    response.set_cookie(
        REFRESH_COOKIE,
        tokens.refresh_token,
        max_age=settings.refresh_token_expire_days * 24 * 60 * 60,
        **cookie_options,
    )


def clear_auth_cookies(response: Response):
    for name in (ACCESS_COOKIE, LEGACY_ACCESS_COOKIE, REFRESH_COOKIE):
        response.delete_cookie(name)


def _access_token(request: Request, bearer_token: Optional[str]) -> Optional[str]:
    # The Authorization header wins over cookies.
    return bearer_token or request.cookies.get(ACCESS_COOKIE) or request.cookies.get(LEGACY_ACCESS_COOKIE)


def get_current_user(
    request: Request,
    response: Response,
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    FastAPI dependency to get the current authenticated user. Renewed
    credentials are written back as cookies on the response.
    """
    identity = credential_service.resolve_identity(
        db, _access_token(request, token), request.cookies.get(REFRESH_COOKIE)
    )
    if identity.renewed is not None:
        set_auth_cookies(response, identity.renewed)
    return identity.user


def get_optional_user(
    request: Request,
    response: Response,
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """
    Like get_current_user, but anonymous callers resolve to None.
    """
    try:
        return get_current_user(request, response, token, db)
    except (Unauthenticated, IdentityNotFound):
        return None


def require_roles(*roles: Role):
    """
    Builds a dependency that admits only the given roles. No roles means any
    authenticated user.
    """

    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if not allowed(current_user.role, roles):
            names = ", ".join(sorted(role.value for role in roles))
            raise Forbidden(f"This action is only available to: {names}")
        return current_user

    return dependency


get_current_admin = require_roles(Role.ADMIN)
get_current_staff = require_roles(Role.ORGANIZER, Role.ADMIN)
get_current_volunteer = require_roles(Role.VOLUNTEER)
