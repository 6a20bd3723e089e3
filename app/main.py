# app/main.py
import time
import uuid
from contextlib import asynccontextmanager

import structlog
from botocore.exceptions import ClientError
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.aws.s3_errors import map_s3_client_error
from app.config import get_settings
from app.core.logging_config import logger, setup_logging
from app.db import init_db
from app.routers import files, policies, quotes, templates

settings = get_settings()
setup_logging(settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(_: FastAPI):
    init_db()
    logger.info("startup", service=settings.APP_NAME, storage=settings.STORAGE_BACKEND)
    yield


# ----------------------------------------------------
# App init
# ----------------------------------------------------
app = FastAPI(title="VSC Contracts", version="0.1.0", lifespan=lifespan)


# ----------------------------------------------------
# Health
# ----------------------------------------------------
@app.get("/health", include_in_schema=True)
def health() -> dict:
    return {"status": "ok"}


# ----------------------------------------------------
# Logging middleware
# ----------------------------------------------------
@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    start = time.time()

    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        request_id=request_id,
        endpoint=str(request.url.path),
        method=request.method,
    )

    logger.info("request_started", ip=request.client.host if request.client else "unknown")
    response = await call_next(request)
    latency_ms = round((time.time() - start) * 1000, 2)

    logger.info("request_finished", status_code=response.status_code, latency_ms=latency_ms)
    response.headers["X-Request-ID"] = request_id
    return response


# ----------------------------------------------------
# Middleware
# ----------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ----------------------------------------------------
# Routers
# ----------------------------------------------------
app.include_router(policies.router)
app.include_router(quotes.router)
app.include_router(templates.router)
app.include_router(files.router)


@app.exception_handler(ClientError)
async def s3_client_error_handler(request: Request, exc: ClientError):
    status, body = map_s3_client_error(exc)
    logger.error("s3_client_error", status_code=status, code=body["error"]["code"])
    return JSONResponse(status_code=status, content=body)
