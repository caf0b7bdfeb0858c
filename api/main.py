from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.db import close_db
from app.logging_config import configure_logging
from app.middleware.logging import StructuredLoggingMiddleware
from app.routers import feed, grids, polls
from app.validate_env import validate_env


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    validate_env()
    configure_logging("whosonpole-api", settings.environment, settings.log_level)
    yield
    await close_db()


app = FastAPI(title="whosonpole-feed", version="1.0.0", lifespan=lifespan)

app.add_middleware(StructuredLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(feed.router)
app.include_router(polls.router)
app.include_router(grids.router)


@app.get("/healthz")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}
