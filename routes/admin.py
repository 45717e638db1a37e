"""
Operator dashboard routes.

Handles:
- /api/admin/login, /logout, /session  - Operator session
- /api/admin/queue, /completed, /payments, /stats - Dashboard views
- /api/admin/jobs/<id>/...             - Transitions, priority, payment
- /api/admin/walk-in                   - Counter orders
- /api/admin/scan, /collect            - QR scan and manual token entry
- /api/admin/rates, /notifications     - Settings
- /api/admin/users                     - Operator accounts

Operator routes are wrapped in operator_required, so only the client that
opened the current operator session may call them. Anyone else gets a 401
from the NotAuthorizedError handler.
"""

from flask import Blueprint, jsonify, request, session

from core.exceptions import ValidationError
from models.account import ADMIN_USERNAME, normalize_username
from models.job import JobStatus, PrintOptions, Priority, WALK_IN_CUSTOMER_NAME
from models.settings import NotificationPreferences, RateTable
from routes.helpers import (
    OPERATOR_SESSION_KEY,
    forget_operator,
    get_directory,
    get_engine,
    operator_required,
    optional_text,
    request_data,
    remember_operator,
    require_int,
    require_operator_client,
    result_response,
    sanitize_text,
)
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


def _flag(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _jobs_payload(jobs):
    return jsonify({"jobs": [job.to_public_dict() for job in jobs]})


# =============================================================================
# SESSION
# =============================================================================

@admin_bp.route("/login", methods=["POST"])
def login():
    data = request_data()
    username = sanitize_text(data.get("username"))
    secret = data.get("password") or ""

    if not username or not secret:
        return jsonify({"error": "Username and password are required."}), 400

    op_session = get_directory().login(username, str(secret))
    if op_session is None:
        return jsonify({"error": "Invalid username or password."}), 401

    remember_operator(op_session)
    return jsonify({"session": op_session.to_dict()})


@admin_bp.route("/logout", methods=["POST"])
@operator_required
def logout():
    get_directory().logout()
    forget_operator()
    return jsonify({"session": None})


@admin_bp.route("/session", methods=["GET"])
def current_session():
    op_session = get_directory().current_session
    if op_session is None or session.get(OPERATOR_SESSION_KEY) != op_session.to_dict():
        return jsonify({"session": None})
    return jsonify({"session": op_session.to_dict()})


# =============================================================================
# DASHBOARD VIEWS
# =============================================================================

@admin_bp.route("/queue", methods=["GET"])
@operator_required
def live_queue():
    """Live queue; filter=all|queued|printing."""
    return _jobs_payload(get_engine().live_queue(request.args.get("filter", "all")))


@admin_bp.route("/completed", methods=["GET"])
@operator_required
def completed():
    return _jobs_payload(get_engine().completed_jobs())


@admin_bp.route("/payments", methods=["GET"])
@operator_required
def payments():
    """Payment ledger; filter=all|paid|unpaid."""
    return _jobs_payload(get_engine().payments(request.args.get("filter", "all")))


@admin_bp.route("/stats", methods=["GET"])
@operator_required
def stats():
    return jsonify(get_engine().dashboard_stats())


# =============================================================================
# JOB COMMANDS
# =============================================================================

@admin_bp.route("/jobs/<int:job_id>/transition", methods=["POST"])
@operator_required
def transition(job_id: int):
    data = request_data()
    try:
        target = JobStatus(data.get("status"))
    except ValueError:
        raise ValidationError(
            "'status' must be one of: " + ", ".join(s.value for s in JobStatus), "status"
        )
    return result_response(get_engine().transition(job_id, target))


@admin_bp.route("/jobs/<int:job_id>/priority", methods=["POST"])
@operator_required
def set_priority(job_id: int):
    data = request_data()
    try:
        priority = Priority(require_int(data, "priority"))
    except ValueError:
        raise ValidationError("'priority' must be 1 (High), 2 (Normal) or 3 (Low)", "priority")
    return result_response(get_engine().set_priority(job_id, priority))


@admin_bp.route("/jobs/<int:job_id>/paid", methods=["POST"])
@operator_required
def mark_paid(job_id: int):
    data = request_data()
    return result_response(
        get_engine().mark_paid(job_id, optional_text(data, "payer_reference"))
    )


@admin_bp.route("/walk-in", methods=["POST"])
@operator_required
def walk_in():
    """Counter order: page count and options only, no document."""
    data = request_data()
    pages = require_int(data, "pages")
    options = PrintOptions.from_dict(dict(data, total_pages=pages))

    job = get_engine().submit_walk_in(
        pages=pages,
        color_mode=options.color_mode,
        sides=options.sides,
        copies=options.copies,
        expedited=options.is_expedited,
        customer_name=optional_text(data, "customer_name") or WALK_IN_CUSTOMER_NAME,
    )
    payload = job.to_public_dict()
    payload["qr_payload"] = get_engine().qr_payload(job)
    return jsonify({"job": payload}), 201


@admin_bp.route("/scan", methods=["POST"])
@operator_required
def scan():
    """Resolve a decoded QR string."""
    data = request_data()
    code = str(data.get("code") or "")
    return result_response(get_engine().scan(code))


@admin_bp.route("/collect", methods=["POST"])
@operator_required
def collect():
    """Manual token entry at the counter."""
    data = request_data()
    token = sanitize_text(data.get("token"), 32).upper()
    if not token:
        raise ValidationError("Please enter a token.", "token")
    return result_response(get_engine().resolve_token(token))


# =============================================================================
# SETTINGS
# =============================================================================

@admin_bp.route("/rates", methods=["GET", "PUT"])
def rates():
    engine = get_engine()
    if request.method == "GET":
        return jsonify(engine.rates.to_dict())

    require_operator_client("update_rates")
    data = request_data()
    current = engine.rates
    try:
        table = RateTable.from_percentages(
            bw_page_rate=data.get("bw_page_rate", current.bw_page_rate),
            color_page_rate=data.get("color_page_rate", current.color_page_rate),
            discount_percent=data.get("discount_percent", current.discount_percent),
            surcharge_percent=data.get("surcharge_percent", current.surcharge_percent),
        )
    except (TypeError, ValueError):
        raise ValidationError("Rates must be numbers.", "rates")

    return jsonify(engine.update_rates(table).to_dict())


@admin_bp.route("/notifications", methods=["GET", "PUT"])
def notifications():
    engine = get_engine()
    if request.method == "GET":
        return jsonify(engine.notification_preferences.to_dict())

    require_operator_client("update_notification_preferences")
    data = request_data()
    current = engine.notification_preferences
    preferences = NotificationPreferences(
        notify_new_job=_flag(data.get("notify_new_job", current.notify_new_job)),
        notify_job_ready=_flag(data.get("notify_job_ready", current.notify_job_ready)),
    )
    return jsonify(engine.update_notification_preferences(preferences).to_dict())


# =============================================================================
# OPERATOR ACCOUNTS
# =============================================================================

@admin_bp.route("/users", methods=["GET"])
@operator_required
def list_users():
    return jsonify({"users": get_directory().list_accounts()})


@admin_bp.route("/users", methods=["POST"])
@operator_required
def create_user():
    data = request_data()
    username = sanitize_text(data.get("username"), 64)
    return result_response(
        get_directory().create_account(username, str(data.get("password") or ""))
    )


@admin_bp.route("/users/<username>", methods=["DELETE"])
def delete_user(username: str):
    # Deleting admin conflicts for every caller, logged in or not.
    if normalize_username(username) != ADMIN_USERNAME:
        require_operator_client("delete_account")
    return result_response(get_directory().delete_account(username))


@admin_bp.route("/users/<username>/password", methods=["PUT"])
@operator_required
def rotate_password(username: str):
    data = request_data()
    return result_response(
        get_directory().rotate_secret(username, str(data.get("password") or ""))
    )
