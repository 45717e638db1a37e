"""
PrintQueue - Flask Application Entry Point.

This is a slim app factory that:
1. Opens the key-value store (JSON file or in-memory)
2. Loads the operator directory and the queue engine
3. Starts the progress ticker (separate thread)
4. Registers route blueprints
5. Sets up JSON error handlers

ARCHITECTURE:
    Main Thread
    ├── Store, directory and engine initialization
    ├── Flask request handling (customer and operator routes)
    └── Ticker shutdown on exit

    Ticker Thread (background)
    └── engine.tick() every TICK_INTERVAL_SECONDS, idle while an
        operator is logged in

The engine is the single owner of queue state. Routes and the ticker only
call its public methods.
"""

from __future__ import annotations

import atexit
import logging
import os
import random
import sys
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from logging_config import setup_logging, get_logger
from core.exceptions import (
    JobNotFoundError,
    NoPrintableFileError,
    NotAuthorizedError,
    PrintQueueError,
    ValidationError,
)
from services.admin_directory import AdminDirectory
from services.notifier import LogNotifier, NullNotifier
from services.queue_engine import QueueEngine
from services.storage import create_store
from services.ticker import QueueTicker
from routes import register_blueprints


# Module logger (configured after setup_logging)
logger = get_logger(__name__)


def _get_base_path() -> Path:
    """
    Get the base path for the application.

    In PyInstaller bundle: Returns the directory containing the executable
    In development: Returns the directory containing app.py
    """
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).parent
    else:
        return Path(__file__).parent


def create_app(config_object: str = "config.Config") -> Flask:
    """
    Application factory - creates and configures Flask app.

    Args:
        config_object: Import path of the configuration class

    Returns:
        Configured Flask application
    """
    # Use override=True so .env file always takes precedence over shell environment
    env_file = _get_base_path() / '.env'
    if env_file.exists():
        load_dotenv(env_file, override=True)
    else:
        load_dotenv(override=True)

    app = Flask(__name__)
    app.config.from_object(config_object)

    # Configure logging
    log_level = logging.DEBUG if app.config.get("DEBUG") else logging.INFO
    enable_file_logging = app.config.get("ENVIRONMENT") == "production"

    root_logger = setup_logging(
        log_level=log_level,
        enable_file_logging=enable_file_logging
    )

    # Set Flask's logger to use our configured logger
    app.logger.handlers = root_logger.handlers
    app.logger.setLevel(log_level)

    logger.info(f"Starting PrintQueue in {app.config.get('ENVIRONMENT')} mode")

    # =========================================================================
    # SERVICES INITIALIZATION
    # =========================================================================

    store = create_store(app.config["DATA_FILE"])

    directory = AdminDirectory(
        store,
        admin_secret=app.config["ADMIN_DEFAULT_SECRET"],
        hash_secrets=app.config["ADMIN_HASH_SECRETS"],
    )
    directory.load()

    seed = app.config.get("RANDOM_SEED")
    engine = QueueEngine(
        store,
        notifier=LogNotifier() if app.config["NOTIFICATIONS_ENABLED"] else NullNotifier(),
        directory=directory,
        rng=random.Random(seed) if seed is not None else random.Random(),
        auto_collect_probability=app.config["AUTO_COLLECT_PROBABILITY"],
        auto_collect_threshold=app.config["AUTO_COLLECT_THRESHOLD"],
        token_namespace=app.config["TOKEN_NAMESPACE"],
    )
    engine.load()

    app.config["KV_STORE"] = store
    app.config["ADMIN_DIRECTORY"] = directory
    app.config["QUEUE_ENGINE"] = engine

    ticker = None
    interval = app.config["TICK_INTERVAL_SECONDS"]
    if interval > 0:
        ticker = QueueTicker(
            engine,
            directory,
            interval_seconds=interval,
            pause_while_operator=app.config["TICK_PAUSE_WHILE_OPERATOR"],
        )
        ticker.start()
    else:
        logger.info("Ticker disabled; the queue advances on refresh only")
    app.config["QUEUE_TICKER"] = ticker

    # =========================================================================
    # CLEANUP REGISTRATION
    # =========================================================================

    def cleanup():
        """Cleanup on application shutdown."""
        logger.info("Shutting down...")
        if ticker:
            ticker.stop()
        logger.info("Shutdown complete")

    atexit.register(cleanup)

    # =========================================================================
    # REGISTER BLUEPRINTS
    # =========================================================================

    register_blueprints(app)

    # =========================================================================
    # ERROR HANDLERS
    # =========================================================================

    @app.errorhandler(ValidationError)
    def handle_validation_error(e):
        return jsonify({"error": e.message, "field": e.field}), 400

    @app.errorhandler(NotAuthorizedError)
    def handle_not_authorized(e):
        return jsonify({"error": e.message}), 401

    @app.errorhandler(JobNotFoundError)
    def handle_job_not_found(e):
        return jsonify({"error": e.message}), 404

    @app.errorhandler(NoPrintableFileError)
    def handle_no_printable_file(e):
        return jsonify({"error": e.message, "token": e.token}), 404

    @app.errorhandler(PrintQueueError)
    def handle_queue_error(e):
        logger.error(f"Unhandled queue error: {e}")
        return jsonify({"error": e.message}), 500

    @app.errorhandler(RequestEntityTooLarge)
    def handle_file_too_large(e):
        max_mb = app.config.get("MAX_CONTENT_LENGTH", 16 * 1024 * 1024) / (1024 * 1024)
        return jsonify({"error": f"File too large. Maximum upload size is {max_mb:.0f} MB."}), 413

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({"error": e.description}), e.code

    @app.errorhandler(Exception)
    def handle_server_error(e):
        logger.error(f"500 error: {e}", exc_info=True)
        return jsonify({"error": "An unexpected error occurred. Please try again."}), 500

    logger.info("Application initialized successfully")
    return app


if __name__ == "__main__":
    app = create_app()
    debug_mode = os.environ.get("FLASK_DEBUG", "1") == "1"
    # The reloader would start a second ticker in the child process
    app.run(debug=debug_mode, use_reloader=False)
