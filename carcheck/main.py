import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from carcheck import __version__
from carcheck.core.db import create_tables
from carcheck.core.environment import should_create_tables
from carcheck.core.logging import setup_logging
from carcheck.exceptions import ValidationError, domain_exception_handler, validation_exception_handler
from carcheck.middleware.rate_limit import custom_rate_limit_exceeded, limiter
from carcheck.routers import (
    ai,
    auth,
    car_models,
    cars,
    checklist,
    health,
    invitations,
    maintenance,
    media,
    metrics,
    permissions,
    reports,
    share_links,
)
from carcheck.services.exceptions import CarCheckDomainError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    if should_create_tables():
        await create_tables()
        logger.info("Database tables ensured")
    yield


app = FastAPI(title="Car Check API", version=__version__, lifespan=lifespan)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, custom_rate_limit_exceeded)

# Register exception handlers
app.add_exception_handler(ValidationError, validation_exception_handler)
app.add_exception_handler(CarCheckDomainError, domain_exception_handler)


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    # Business-rule violations raised by services
    return await validation_exception_handler(request, ValidationError(str(exc)))


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],   # Allows POST, GET, OPTIONS, etc
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(cars.router)
app.include_router(checklist.router)
app.include_router(permissions.router)
app.include_router(invitations.router)
app.include_router(share_links.router)
app.include_router(reports.router)
app.include_router(maintenance.router)
app.include_router(media.router)
app.include_router(car_models.router)
app.include_router(ai.router)
app.include_router(metrics.router)
