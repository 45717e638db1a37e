"""
Configuration for PrintQueue.

Every value can be overridden from the environment or a .env file next to
the application. Queue simulation knobs (tick period, auto-collect odds)
live here so a demo can be sped up without touching code.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file early so environment variables are available for Config class
# This must happen before the Config class is defined
load_dotenv(override=True)

# Base directory (where this file lives)
BASE_DIR = Path(__file__).resolve().parent


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Default configuration for the Flask application."""

    # Flask settings
    SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    UPLOAD_FOLDER = os.environ.get(
        "UPLOAD_FOLDER", str(BASE_DIR / "static" / "uploads")
    )
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 16 MB uploads
    SESSION_COOKIE_NAME = "print_queue_session"
    ENVIRONMENT = os.environ.get("FLASK_ENV", "development")

    # Debug mode
    DEBUG = os.environ.get("FLASK_DEBUG", "1") == "1"
    TESTING = False

    # ==========================================================================
    # Persistence
    # ==========================================================================
    # DATA_FILE: JSON document holding the queue, rates, notification
    #   preferences and admin accounts. Set to ":memory:" to keep state only
    #   for the lifetime of the process.
    # ==========================================================================
    DATA_FILE = os.environ.get("DATA_FILE", str(BASE_DIR / "data" / "print_queue.json"))

    # ==========================================================================
    # Queue progress simulation
    # ==========================================================================
    # TICK_INTERVAL_SECONDS: period of the background progress ticker.
    #   Set to 0 to disable the ticker (refresh requests still tick).
    # TICK_PAUSE_WHILE_OPERATOR: the ticker idles while an operator is
    #   logged in and driving the queue by hand.
    # AUTO_COLLECT_PROBABILITY / AUTO_COLLECT_THRESHOLD: a walk-in job waiting
    #   at the counter is swept away with this probability once more than
    #   THRESHOLD walk-in jobs are ready.
    # RANDOM_SEED: fixes the simulation for reproducible demos.
    # ==========================================================================
    TICK_INTERVAL_SECONDS = float(os.environ.get("TICK_INTERVAL_SECONDS", "7"))
    TICK_PAUSE_WHILE_OPERATOR = _env_flag("TICK_PAUSE_WHILE_OPERATOR", "1")
    AUTO_COLLECT_PROBABILITY = float(os.environ.get("AUTO_COLLECT_PROBABILITY", "0.5"))
    AUTO_COLLECT_THRESHOLD = int(os.environ.get("AUTO_COLLECT_THRESHOLD", "2"))
    RANDOM_SEED = os.environ.get("RANDOM_SEED") or None

    # QR codes carry "<TOKEN_NAMESPACE>:<token>"
    TOKEN_NAMESPACE = os.environ.get("TOKEN_NAMESPACE", "PrintSmart-Token")

    # ==========================================================================
    # Operators
    # ==========================================================================
    ADMIN_DEFAULT_SECRET = os.environ.get("ADMIN_DEFAULT_SECRET", "admin")
    ADMIN_HASH_SECRETS = _env_flag("ADMIN_HASH_SECRETS", "0")

    # Notifications are logged; disable to silence them entirely
    NOTIFICATIONS_ENABLED = _env_flag("NOTIFICATIONS_ENABLED", "1")


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    TESTING = False
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    PERMANENT_SESSION_LIFETIME = 3600  # 1 hour


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration."""
    DEBUG = False
    TESTING = True
    DATA_FILE = ":memory:"
    TICK_INTERVAL_SECONDS = 0.0
    RANDOM_SEED = "1234"
    ADMIN_DEFAULT_SECRET = "admin"
    ADMIN_HASH_SECRETS = False
