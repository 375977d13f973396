from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from roster.api.v1.router import api_router
from roster.core.config import settings
from roster.services.record_store import record_store

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    try:
        await record_store.initialize(settings)
    except Exception:
        logger.exception("Failed to initialize RecordStore, continuing without DB")
    yield
    await record_store.close()


app = FastAPI(
    title="Roster API",
    description="Employee records with filtered listing and CSV bulk import",
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/")
async def root():
    return {"message": "Roster API"}
