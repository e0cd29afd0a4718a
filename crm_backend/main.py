"""
FastAPI application bootstrap with: \n
- Lifespan-managed initialization of the schema and the object storage \n
- CORS configured for the frontend \n
- The terminal error translator \n
- One router per domain under `/api/<domain>` \n

Environment contract (from `settings`): \n
- FRONTEND_URL: allowed CORS origin. \n
- BUCKET_NAME: bucket holding every stored asset. \n
- WORKERS / SHUTDOWN_GRACE_SECONDS: process count and the time in-flight
  requests get to finish on shutdown. \n
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from crm_backend.api.aws_bucket_funcs.funcs import S3Bucket, get_client
from crm_backend.api.errors import register_exception_handlers
from crm_backend.api.routers import ROUTERS
from crm_backend.database.config.config import settings
from crm_backend.database.config.connection_engine import connection_engine, metadata
from crm_backend.storage.lifecycle import ObjectStorage

# Imported for their table definitions.
from crm_backend.database import entities  # noqa: F401

logger = logging.getLogger("uvicorn")
"""Logger instance for capturing and emitting Uvicorn server logs."""


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    App lifespan manager.

    Notes
    ------------
    - On startup: create missing tables and attach the `ObjectStorage`
      (S3 bucket adapter) to `app.state.storage`, unless a test already did.
    - On shutdown: dispose of the connection pool.
    """
    metadata.create_all(connection_engine)
    if getattr(app.state, "storage", None) is None:
        app.state.storage = ObjectStorage(S3Bucket(get_client(), settings.BUCKET_NAME))
    logger.info(f"Storage ready on bucket {settings.BUCKET_NAME}")
    try:
        yield
    finally:
        connection_engine.dispose()
        logger.info("App shutting down, connection pool disposed.")


app = FastAPI(lifespan=lifespan)
"""Instantiates the FastAPI application object."""

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

for router, prefix in ROUTERS:
    app.include_router(router, prefix=prefix)


@app.get("/api/health")
def health():
    return {"success": True, "message": "API is running"}


def run():
    """Console entry point: serve the app with uvicorn."""
    uvicorn.run(
        "crm_backend.main:app",
        host="0.0.0.0",
        port=8000,
        workers=settings.WORKERS,
        timeout_graceful_shutdown=settings.SHUTDOWN_GRACE_SECONDS,
    )


if __name__ == "__main__":
    run()
