"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

import app.models  # noqa: F401
from app.config import get_settings
from app.database import Base, engine
from app.exceptions import NotFoundError, PersistenceError, ValidationError
from app.logging_config import configure_logging
from app.routers.admin import router as admin_router
from app.routers.audit import router as audit_router
from app.routers.bootstrap import router as bootstrap_router
from app.routers.customers import router as customers_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    """Configure logging and initialize database schema on startup.

    Yields
    ------
    None
        Runs the application lifespan.
    """
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_json)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
    yield


app = FastAPI(title="ERP Audit", lifespan=lifespan)


@app.exception_handler(ValidationError)
async def validation_error_handler(_: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": exc.message})


@app.exception_handler(NotFoundError)
async def not_found_error_handler(_: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(PersistenceError)
async def persistence_error_handler(
    _: Request, exc: PersistenceError
) -> JSONResponse:
    logger.error("Audit persistence failed: %s", exc.message, extra=exc.context)
    return JSONResponse(status_code=500, content={"detail": exc.message})


app.include_router(bootstrap_router)
app.include_router(admin_router)
app.include_router(audit_router)
app.include_router(customers_router)
