"""
FastAPI application entrypoint.

Run locally:  uvicorn hospital.main:app --reload
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from hospital.api.routes import router
from hospital.config import settings
from hospital.models.database import DatabaseManager
from hospital.repositories.registry import Repositories
from hospital.services.forms import Forms

logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s | %(name)s | %(message)s")

logger = logging.getLogger(__name__)


def create_app(database: DatabaseManager | None = None) -> FastAPI:
    """Build the app around one database connection opened for its lifetime."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        manager = database or DatabaseManager(
            settings.DATABASE_URL,
            settings.DATABASE_USER,
            settings.DATABASE_PASSWORD,
        )
        try:
            connection = manager.connect()
            if settings.CREATE_SCHEMA:
                manager.init_schema()
            app.state.database = manager
            app.state.forms = Forms.build(Repositories.build(connection))
            app.state.connection_lock = asyncio.Lock()
            yield
        finally:
            manager.close()

    app = FastAPI(
        title="Hospital Records API",
        description=(
            "Doctors, patients, drugs, insurers, prescriptions and visits: "
            "listing, search and validated add/modify/delete."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    @app.middleware("http")
    async def one_request_at_a_time(request: Request, call_next):
        # Endpoints run on worker threads but share a single connection.
        async with request.app.state.connection_lock:
            return await call_next(request)

    app.include_router(router, prefix="/api/v1")
    return app


app = create_app()
