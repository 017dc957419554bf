"""Admin FastAPI application."""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from aggregator.cleanup import Housekeeper
from aggregator.pipeline import AggregationPipeline
from aggregator.scheduler import Scheduler
from database.connection import DatabaseConnection
from api.routes import admin_router
from shared.config import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    db = await DatabaseConnection.init_mongo()
    redis_client = await DatabaseConnection.init_redis()

    pipeline = AggregationPipeline.from_database(db, redis_client)
    scheduler = Scheduler(pipeline, Housekeeper.from_database(db))
    app.state.scheduler = scheduler

    # The manual trigger works either way; timers only run here when enabled
    if settings.scheduler_enabled:
        scheduler.start()

    yield

    # Shutdown
    await scheduler.stop()
    await DatabaseConnection.close_connections()


# Create FastAPI app
app = FastAPI(
    title="AI News Aggregator",
    description="Administrative surface of the news aggregation pipeline",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.error(f"Unhandled error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "detail": str(exc)}
    )


# Include routers
app.include_router(admin_router)


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "AI News Aggregator",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug
    )
