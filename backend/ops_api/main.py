"""
Ops API main application.
Entry point for the FastAPI server exposing the lifecycle engine.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from sqlalchemy import text

from ops_api.models import Base
from ops_api.routers import lifecycle_router
from ops_shared.config.logging import api_logger as logger, setup_logging
from ops_shared.config.settings import settings
from ops_shared.infrastructure.db import SessionLocal, engine


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    Runs on startup and shutdown.
    """
    setup_logging()

    config_errors = settings.validate_production_settings()
    if config_errors:
        for error in config_errors:
            logger.error("Configuration error", error=error)
        if settings.environment == "production":
            raise RuntimeError(f"Production configuration errors: {'; '.join(config_errors)}")
        logger.warning("Running with development defaults")

    logger.info("Starting Ops API", port=settings.api_port, env=settings.environment)

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified")

    yield

    logger.info("Shutting down Ops API")
    engine.dispose()


app = FastAPI(
    title="Ops Platform API",
    description="Referential integrity and lifecycle cascades for the ops platform",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(lifecycle_router)


# =============================================================================
# Health Check
# =============================================================================


@app.get("/api/health")
def health_check():
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "service": "ops-api",
        "environment": settings.environment,
    }


@app.get("/api/health/detailed")
def detailed_health_check():
    """Health check that verifies database connectivity."""
    checks = {"service": "ops-api", "environment": settings.environment, "dependencies": {}}
    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
        checks["dependencies"]["database"] = {"status": "healthy"}
        checks["status"] = "healthy"
    except Exception as e:
        logger.error("Database health check failed", error=str(e))
        checks["dependencies"]["database"] = {"status": "unhealthy", "error": str(e)}
        checks["status"] = "degraded"
        return JSONResponse(content=checks, status_code=503)
    return checks
