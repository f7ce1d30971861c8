"""
FastAPI application factory.

* Registers routes for accounts, rides and health.
* Maps domain errors onto ``{"message": ...}`` JSON responses.
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from ridehail.api.errors import register_error_handlers
from ridehail.api.middleware import limiter
from ridehail.api.routes import auth, health, rides
from ridehail.config import settings
from ridehail.infrastructure.database import engine

logging.basicConfig(level=settings.log_level.upper())

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Release pooled DB connections on shutdown."""
    logger.info("Ride hailing API starting")
    yield
    await engine.dispose()
    logger.info("Ride hailing API stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Ride Hailing API",
        description=(
            "Passengers book rides, drivers accept and drive them through "
            "requested -> accepted -> in_progress -> completed, and either "
            "party may cancel.  Session-based authentication, one active "
            "ride per party."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    register_error_handlers(app)

    # Routers
    app.include_router(auth.router)
    app.include_router(rides.router)
    app.include_router(health.router)

    return app
