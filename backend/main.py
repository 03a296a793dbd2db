"""
MomCare API - Main Application

Maternal health tracking service built from FastAPI routers:
- auth_router.py - Registration, login, user profile
- appointments_router.py - Antenatal care (ANC) appointments
- risk_assessment_router.py - Self-reported observations and risk scoring
- immunization_router.py - Child vaccine schedule
- community_router.py - Community feed, likes and comments
- dashboard_router.py - Home-screen aggregate and pregnancy week calculator
"""

import os
import time
from datetime import datetime

import psutil
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from config import CORS_ORIGINS, CORS_ALLOW_CREDENTIALS, DATABASE_URL, HOST, PORT, get_config_summary

# Database setup
from database import create_tables, SessionLocal, User, RiskAssessment, CommunityPost

# Request logging middleware
from middleware import (
    RequestLoggingMiddleware,
    RequestStatsMiddleware,
    get_stats_middleware,
)
from structured_logging import configure_logging, get_logger

# =============================================================================
# IMPORT ROUTERS
# =============================================================================

# Authentication & User Profile
from routers.auth_router import router as auth_router

# ANC Appointments
from routers.appointments_router import router as appointments_router

# Risk Assessment
from routers.risk_assessment_router import router as risk_assessment_router

# Immunizations
from routers.immunization_router import router as immunization_router

# Community Feed
from routers.community_router import router as community_router

# Dashboard & Pregnancy Calendar
from routers.dashboard_router import router as dashboard_router

# =============================================================================
# APPLICATION SETUP
# =============================================================================

configure_logging()
logger = get_logger("api")

app = FastAPI(
    title="MomCare API",
    description="Maternal health tracking: ANC appointments, prenatal risk assessment, child immunizations and a community feed.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Create database tables on startup
create_tables()
logger.info("MomCare API starting", extra=get_config_summary())

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add request logging middleware (logs all API calls)
app.add_middleware(RequestLoggingMiddleware, log_headers=False)

# Add request stats middleware (registers itself for /api/stats)
app.add_middleware(RequestStatsMiddleware)

# =============================================================================
# REGISTER ROUTERS
# =============================================================================

app.include_router(auth_router)
app.include_router(appointments_router)
app.include_router(risk_assessment_router)
app.include_router(immunization_router)
app.include_router(community_router)
app.include_router(dashboard_router)

# =============================================================================
# HEALTH CHECK ENDPOINTS
# =============================================================================

_STARTED_AT = time.time()


@app.get("/")
def read_root():
    return {
        "message": "MomCare API v1.0",
        "status": "healthy",
        "docs": "/docs"
    }


@app.get("/health")
def health_check():
    """
    Basic health check endpoint.
    Returns system health status including database, memory, CPU and uptime.
    """
    # Check database connectivity
    db_status = "healthy"
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        db_status = f"unhealthy: {str(e)}"
    finally:
        db.close()

    memory = psutil.virtual_memory()
    cpu_percent = psutil.cpu_percent(interval=0.1)
    uptime_seconds = time.time() - _STARTED_AT

    return {
        "status": "healthy" if db_status == "healthy" else "degraded",
        "timestamp": datetime.utcnow().isoformat(),
        "database": db_status,
        "memory": {
            "total_gb": round(memory.total / (1024**3), 2),
            "available_gb": round(memory.available / (1024**3), 2),
            "used_percent": memory.percent,
        },
        "cpu": {
            "percent": cpu_percent,
            "cores": psutil.cpu_count(),
        },
        "process_memory_mb": round(psutil.Process().memory_info().rss / (1024**2), 1),
        "uptime": _format_uptime(uptime_seconds),
        "uptime_seconds": round(uptime_seconds),
    }


def _format_uptime(seconds: float) -> str:
    """Format uptime seconds to human readable string."""
    days, remainder = divmod(int(seconds), 86400)
    hours, remainder = divmod(remainder, 3600)
    minutes, secs = divmod(remainder, 60)

    parts = []
    if days > 0:
        parts.append(f"{days}d")
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    parts.append(f"{secs}s")

    return " ".join(parts)


def _sqlite_size_mb():
    if "sqlite" not in DATABASE_URL:
        return None
    db_path = DATABASE_URL.replace("sqlite:///", "")
    if not os.path.exists(db_path):
        return None
    return round(os.path.getsize(db_path) / (1024**2), 2)


@app.get("/health/db")
def database_health_check():
    """
    Detailed database health check.
    Returns connection status, table counts, and database size.
    """
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))

        return {
            "status": "healthy",
            "connection": "ok",
            "tables": {
                "users": db.query(User).count(),
                "risk_assessments": db.query(RiskAssessment).count(),
                "community_posts": db.query(CommunityPost).count(),
            },
            "database_size_mb": _sqlite_size_mb(),
        }
    except SQLAlchemyError as e:
        return {
            "status": "unhealthy",
            "connection": "failed",
            "error": str(e),
        }
    finally:
        db.close()


@app.get("/api/stats")
def get_request_stats():
    """Get API request statistics for monitoring."""
    stats_mw = get_stats_middleware()
    if stats_mw:
        return stats_mw.get_stats()
    return {"error": "Stats middleware not initialized"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=HOST, port=PORT)
