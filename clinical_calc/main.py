"""
Clinical Anthropometry API: Main Application Entry Point
========================================================
This is the FastAPI application factory. It:
  1. Creates the FastAPI app instance with metadata
  2. Registers all API routers
  3. Sets up the database lifecycle (create tables on startup)
  4. Configures CORS middleware
  5. Provides a health check endpoint

To run locally:
  uvicorn clinical_calc.main:app --reload --host 0.0.0.0 --port 8000
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from clinical_calc.core.config import settings
from clinical_calc.core.database import Base, async_engine

# Import all routers
from clinical_calc.routers import anthropometry, clinical, energy, hydration, patients

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ============================================================
# APPLICATION LIFESPAN (Startup / Shutdown)
# ============================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    On STARTUP:
      - Creates the history tables if they don't exist (create_all is idempotent).

    On SHUTDOWN:
      - Disposes the database engine (closes all connections).
    """
    logger.info(f"Starting {settings.APP_NAME} {settings.APP_VERSION}...")
    logger.info(f"Database URL: {settings.DATABASE_URL[:50]}...")

    async with async_engine.begin() as conn:
        # Import models to ensure they're registered with Base.metadata
        from clinical_calc import models  # noqa: F401

        await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created/verified successfully")

    yield

    logger.info(f"Shutting down {settings.APP_NAME}...")
    await async_engine.dispose()
    logger.info("Database connections closed")


# ============================================================
# CREATE THE FASTAPI APPLICATION
# ============================================================
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description=(
        "Clinical nutrition anthropometry: measurement validation, five-component "
        "fractionation, Heath-Carter somatotype, special-population formulas, "
        "energy and hydration requirements, and per-patient measurement history."
    ),
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ============================================================
# CORS MIDDLEWARE
# ============================================================
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================
# REGISTER ROUTERS
# ============================================================
app.include_router(anthropometry.router)  # /anthropometry/*
app.include_router(patients.router)       # /patients/*, /measurements/*
app.include_router(clinical.router)       # /clinical/*
app.include_router(energy.router)         # /energy/*
app.include_router(hydration.router)      # /hydration/*


# ============================================================
# ROOT / HEALTH CHECK ENDPOINT
# ============================================================
@app.get("/", tags=["Health"])
async def root():
    """Basic app info to confirm the API is running."""
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "healthy",
        "docs": "/docs",
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for container health probes."""
    return {"status": "ok"}
