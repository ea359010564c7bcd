"""Application configuration and router setup."""

from contextlib import asynccontextmanager

import fastapi
from fastapi.middleware import cors
from fastapi.responses import JSONResponse

from components.core import scheduler
from components.core.logging import setup_logging
from components.plan.exceptions import ActivePlanNotFound, PlanNotFound, PlanValidationError
from restapi.endpoints import health_check, user, plan


@asynccontextmanager
async def lifespan(app: fastapi.FastAPI):
    setup_logging()
    scheduler.start_scheduler()
    try:
        yield
    finally:
        scheduler.shutdown_scheduler()


async def plan_not_found_handler(request: fastapi.Request, exc: PlanNotFound) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


async def plan_validation_handler(request: fastapi.Request, exc: PlanValidationError) -> JSONResponse:
    # A missing active plan is a lookup failure for the caller.
    status_code = 404 if isinstance(exc, ActivePlanNotFound) else 400
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


def create_app() -> fastapi.FastAPI:
    """Create and configure the FastAPI application."""
    app = fastapi.FastAPI(
        title="Plan Service",
        description="Budget plan periods, rollover and currency switching",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Add CORS middleware
    app.add_middleware(
        cors.CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(PlanNotFound, plan_not_found_handler)
    app.add_exception_handler(PlanValidationError, plan_validation_handler)

    # Include routers
    app.include_router(health_check.router)
    app.include_router(user.router)
    app.include_router(plan.router)

    return app
