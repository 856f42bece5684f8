"""Main FastAPI application for Tennis Autobook."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from autobook.config import APP_VERSION, ENVIRONMENT
from autobook.rate_limit import limiter
from autobook.routers import accounts, automation, bookings, health, monitor, notifications, venues
from autobook.services.booking_service import booking_service

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    worker = booking_service.build_worker()
    await worker.start()
    logger.info("Tennis Autobook %s started (%s)", APP_VERSION, ENVIRONMENT)
    try:
        yield
    finally:
        await worker.stop()


app = FastAPI(
    title="Tennis Autobook API",
    description="Books tennis courts now, when the window opens, or when one frees up, "
    "and keeps bookings in line with availability and weather",
    version=APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def rate_limit_exceeded(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(status_code=429, content={"detail": f"Rate limit exceeded: {exc.detail}"})


for module in (health, venues, bookings, automation, monitor, accounts, notifications):
    app.include_router(module.router)
