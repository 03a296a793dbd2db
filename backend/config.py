"""
Application Configuration

Loads configuration from environment variables with sensible defaults.
All hardcoded paths and settings should be defined here.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file if it exists (override=True means .env takes precedence over system env vars)
load_dotenv(override=True)

# =============================================================================
# BASE PATHS
# =============================================================================

# Base directory (where this config file is located)
BASE_DIR = Path(__file__).resolve().parent

# =============================================================================
# DATABASE CONFIGURATION
# =============================================================================

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./momcare.db")

# Handle PostgreSQL URL format differences
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

# =============================================================================
# AUTHENTICATION
# =============================================================================

SECRET_KEY = os.getenv("SECRET_KEY", "your-secret-key-change-this-in-production")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))

# =============================================================================
# APPLICATION SETTINGS
# =============================================================================

DEBUG = os.getenv("DEBUG", "True").lower() in ("true", "1", "yes")
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))

# =============================================================================
# COMMUNITY FEED
# =============================================================================

COMMUNITY_PAGE_SIZE = int(os.getenv("COMMUNITY_PAGE_SIZE", "20"))
COMMUNITY_MAX_PAGE_SIZE = int(os.getenv("COMMUNITY_MAX_PAGE_SIZE", "100"))

# =============================================================================
# CORS SETTINGS
# =============================================================================

# Comma-separated list of allowed origins, or "*" for all
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*").split(",")
CORS_ALLOW_CREDENTIALS = os.getenv("CORS_ALLOW_CREDENTIALS", "True").lower() in ("true", "1", "yes")

# =============================================================================
# LOGGING
# =============================================================================

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "json")
LOG_OUTPUT = os.getenv("LOG_OUTPUT", "stdout")
LOG_FILE = os.getenv("LOG_FILE", str(BASE_DIR / "logs" / "momcare.json.log"))


# =============================================================================
# HELPER FUNCTION
# =============================================================================

def get_config_summary():
    """Returns a summary of current configuration (for debugging)."""
    return {
        "database_url": DATABASE_URL[:20] + "..." if len(DATABASE_URL) > 20 else DATABASE_URL,
        "debug": DEBUG,
        "host": HOST,
        "port": PORT,
        "access_token_expire_minutes": ACCESS_TOKEN_EXPIRE_MINUTES,
        "community_page_size": COMMUNITY_PAGE_SIZE,
        "log_level": LOG_LEVEL,
        "log_format": LOG_FORMAT,
    }
