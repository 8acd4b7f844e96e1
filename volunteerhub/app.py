# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# SPDX-License-Identifier: MIT
#

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from volunteerhub.api.v1.endpoints import admin, auth, channels, dashboard, events, notifications
from volunteerhub.config import settings
from volunteerhub.errors import DomainError
from volunteerhub.events import notification_handlers

logger = logging.getLogger(__name__)


def configure_logging():
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("VolunteerHub API starting up. Database migrations are managed by Alembic.")
    if settings.dispatch_on_startup:
        # Intents left pending by a crash or a failed attempt
        sent = await notification_handlers.dispatch_pending_notifications()
        logger.info("Dispatched %s pending notification(s) at startup", sent)
    yield
    logger.info("VolunteerHub API shutting down.")


app = FastAPI(
    title="VolunteerHub Backend API",
    description="API for organizing volunteer events, approvals, registrations and event channels.",
    version="0.1.0",
    lifespan=lifespan,
)

# Configure CORS
allowed_origins = [origin.strip() for origin in settings.allowed_origins.split(",") if origin.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    details = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        details.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "kind": "validation_failed",
            "code": "validation_failed",
            "message": "Invalid input data",
            "details": details,
        },
    )


@app.get("/health")
async def health_check():
    return {"status": "ok"}


app.include_router(auth.router, prefix="/api/v1")
app.include_router(events.router, prefix="/api/v1")
app.include_router(admin.router, prefix="/api/v1")
app.include_router(channels.router, prefix="/api/v1")
app.include_router(notifications.router, prefix="/api/v1")
app.include_router(dashboard.router, prefix="/api/v1")
