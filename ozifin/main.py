"""
OZIFIN Ledger FastAPI application.
- Preflight database test at startup
- Tables created if missing
- Every router mounted under /api
"""
from fastapi import FastAPI, Depends
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session
from sqlalchemy import text
import os
from contextlib import asynccontextmanager
import logging

from ozifin.config import settings
from ozifin.database import Base, engine, get_db, test_connection
from ozifin import models  # noqa: F401  registers the tables on Base
from ozifin.routers import auth, dashboard, notifications, settings as settings_router, tasks, transactions, users

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.APP_NAME} {settings.APP_VERSION}")

    logger.info("Running preflight database test...")
    success, message = test_connection()
    if not success:
        # Keep serving so /health can report the failure
        logger.error(f"Preflight test failed: {message}")
    else:
        logger.info(f"Preflight test passed: {message}")

    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables verified")
    except Exception as e:
        logger.warning(f"Database table creation: {e}")

    yield

    logger.info(f"Shutting down {settings.APP_NAME}")


app = FastAPI(
    title=settings.APP_NAME,
    description="Financial transaction ledger with dashboards and a task board",
    version=settings.APP_VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router, prefix="/api")
app.include_router(users.router, prefix="/api")
app.include_router(transactions.router, prefix="/api")
app.include_router(dashboard.router, prefix="/api")
app.include_router(tasks.router, prefix="/api")
app.include_router(notifications.router, prefix="/api")
app.include_router(settings_router.router, prefix="/api")


@app.get("/health")
async def health_check(db: Session = Depends(get_db)):
    """
    System health check. Reports the database status instead of failing.
    """
    try:
        db.execute(text("SELECT 1"))
        db_status = "connected"
    except Exception as e:
        db_status = f"error: {str(e)}"
        logger.warning(f"Health check database error: {e}")

    return {
        "status": "healthy",
        "service": "ozifin-ledger",
        "database": db_status,
        "environment": os.environ.get("ENVIRONMENT", "development"),
        "version": settings.APP_VERSION,
    }


@app.get("/")
async def root():
    return {
        "message": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "endpoints": {
            "docs": "/api/docs",
            "health": "/health",
            "auth": "/api/auth/login",
            "api": "/api"
        }
    }
