from __future__ import annotations

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI

from auth_service.api.routers.auth import router as auth_router
from auth_service.infrastructure.db.engine import get_engine, init_schema
from auth_service.shared.config import get_settings


@asynccontextmanager
async def lifespan(_app: FastAPI):
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    init_schema(get_engine(settings.database_dsn, settings.db_timeout_seconds))
    yield


app = FastAPI(title="Auth API", lifespan=lifespan)
app.include_router(auth_router)


@app.get("/healthz")
def healthz():
    return {"status": "ok"}
