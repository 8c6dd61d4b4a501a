import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from inkbook.api.routes import appointments, availability, providers
from inkbook.core.config import settings, _ENV_FILE
from inkbook.core.db import init_db
from inkbook.core.exceptions import BookingError

if os.getenv("ENV") != "production":
    logging.basicConfig(level=logging.DEBUG)
else:
    logging.basicConfig(
        level=logging.INFO,
        format='{"time": "%(asctime)s", "level": "%(levelname)s", "message": "%(message)s"}',
    )
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Loading .env from: %s (exists: %s)", _ENV_FILE, _ENV_FILE.exists())
    # Local development creates tables directly; deployed envs run Alembic
    if settings.env == "development":
        await init_db()
    yield


app = FastAPI(
    title="Inkbook API",
    description="Booking backend for independent artists: schedules, project availability, appointments",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

app.include_router(providers.router, prefix="/api/v1")
app.include_router(availability.router, prefix="/api/v1")
app.include_router(appointments.router, prefix="/api/v1")


def _error_response(request: Request, status_code: int, content: dict) -> JSONResponse:
    """JSON error with CORS headers so the browser doesn't hide it from the client."""
    origins = settings.cors_origins_list
    origin = request.headers.get("origin")
    headers = {
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Methods": "GET, POST, PUT, PATCH, DELETE, OPTIONS",
        "Access-Control-Allow-Headers": "Authorization, Content-Type",
    }
    if origins:
        headers["Access-Control-Allow-Origin"] = origin if origin in origins else origins[0]
    return JSONResponse(status_code=status_code, content=content, headers=headers)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    """Schedule, capacity, search-exhausted and overlap failures, with their diagnostics."""
    logger.info("Booking rejected (%s): %s", type(exc).__name__, exc.detail.splitlines()[0])
    return _error_response(request, exc.status_code, exc.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    if isinstance(exc, HTTPException):
        return _error_response(request, exc.status_code, {"detail": exc.detail})
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_response(request, 500, {"detail": f"{type(exc).__name__}: {exc}"})


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}
