"""
Flask route blueprints for PrintQueue.

This module contains all route handlers organized by audience:
- main: Index and health check
- jobs: Customer-facing submission, status, queue and refresh
- admin: Operator dashboard, commands, settings and accounts

Every endpoint answers with JSON. Each blueprint is registered with the
Flask app in create_app().
"""

from .main import main_bp
from .jobs import jobs_bp
from .admin import admin_bp

__all__ = [
    "main_bp",
    "jobs_bp",
    "admin_bp",
]


def register_blueprints(app):
    """
    Register all blueprints with the Flask app.

    Args:
        app: Flask application instance
    """
    app.register_blueprint(main_bp)
    app.register_blueprint(jobs_bp)
    app.register_blueprint(admin_bp)
