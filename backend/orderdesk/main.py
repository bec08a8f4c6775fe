"""
Order Desk - FastAPI Application Entry Point.

Order management for a small retail shop: orders, line items, shipping
cost and profit/loss tracking.
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from orderdesk.config import get_settings
from orderdesk.database import engine, Base, get_db
from orderdesk.exceptions import (
    InvalidOrderStateError,
    OrderEngineError,
    OrderNotFoundError,
    OrderStorageError,
    OrderValidationError,
)
from orderdesk.routers import orders, reports, shipping
from orderdesk.routers.dependencies import get_sweeper

settings = get_settings()

logging.basicConfig(level=logging.DEBUG if settings.DEBUG else logging.INFO)
logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    OrderValidationError: 400,
    InvalidOrderStateError: 400,
    OrderNotFoundError: 404,
    OrderStorageError: 500,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup: Create database tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")

    sweeper = get_sweeper()
    scheduled_sweep = None
    if settings.AUTO_DELIVERY_INTERVAL_SECONDS > 0:
        scheduled_sweep = asyncio.create_task(
            sweeper.run_periodically(settings.AUTO_DELIVERY_INTERVAL_SECONDS)
        )

    yield

    # Shutdown: stop sweeping, then release connections
    if scheduled_sweep is not None:
        scheduled_sweep.cancel()
        await asyncio.gather(scheduled_sweep, return_exceptions=True)
    await sweeper.wait_idle()
    await engine.dispose()
    logger.info("Database connection closed")


app = FastAPI(
    title=settings.APP_NAME,
    description="Order lifecycle and profitability tracking",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(OrderEngineError)
async def order_engine_error_handler(request: Request, exc: OrderEngineError):
    """Translate engine errors into HTTP responses."""
    status_code = ERROR_STATUS_CODES.get(type(exc), 500)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(status_code=status_code, content={"detail": "Internal error while processing order"})
    return JSONResponse(status_code=status_code, content={"detail": exc.message})


# Include Routers
app.include_router(orders.router, prefix="/api/orders", tags=["Orders"])
app.include_router(reports.router, prefix="/api/reports", tags=["Reports"])
app.include_router(shipping.router, prefix="/api/shipping", tags=["Shipping"])


@app.get("/health")
async def health_check(db=Depends(get_db)):
    """Deep Health Check: Verifies Database Connectivity."""
    try:
        await db.execute(text("SELECT 1"))
        return {"status": "healthy", "database": "connected"}
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        raise HTTPException(status_code=503, detail="Database disconnected")


@app.get("/")
async def root():
    """Root endpoint with system info."""
    return {
        "name": settings.APP_NAME,
        "status": "operational",
    }
