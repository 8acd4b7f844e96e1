# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# SPDX-License-Identifier: MIT
#

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from volunteerhub.db.database import get_db
from volunteerhub.db.models import User
from volunteerhub.dependencies import get_current_user
from volunteerhub.schemas import schemas
from volunteerhub.services.dashboard_service import DashboardService

router = APIRouter(
    prefix="/dashboard",
    tags=["Dashboard"],
)


@router.get("", response_model=schemas.Dashboard)
def read_dashboard(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """
    Role-specific landing page data for the current user.
    """
    return DashboardService(db).get_dashboard(current_user)
