"""
Customer-facing job routes.

Handles:
- /api/jobs            - Submit an online order (optional file upload)
- /api/jobs/<id>       - Job status and QR payload
- /api/jobs/<id>/document - Uploaded file, for the operator's print dialog
- /api/queue           - Live queue as customers see it
- /api/quote           - Price preview for the order form
- /api/wait            - Estimated wait for a new order
- /api/refresh         - Refresh button: advance the queue one tick

Customers never log in; everything here except the document download is
open.
"""

from datetime import datetime, timezone
from pathlib import Path

from flask import Blueprint, current_app, jsonify, request, send_file
from werkzeug.utils import secure_filename

from core.exceptions import ValidationError
from models.job import PrintOptions
from routes.helpers import (
    get_engine,
    operator_required,
    optional_text,
    request_data,
    sanitize_text,
)
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

jobs_bp = Blueprint("jobs", __name__, url_prefix="/api")

MAX_FILENAME_LENGTH = 255


def _job_payload(job):
    engine = get_engine()
    data = job.to_public_dict()
    data["qr_payload"] = engine.qr_payload(job)
    return data


def _options_from(data) -> PrintOptions:
    options = PrintOptions.from_dict(data)
    if options.total_pages <= 0:
        raise ValidationError("'total_pages' must be a positive whole number", "total_pages")
    return options


def _save_upload(upload) -> str:
    """Store an uploaded file and return its path as the document handle."""
    if len(upload.filename) > MAX_FILENAME_LENGTH:
        raise ValidationError(
            f"Filename too long. Maximum {MAX_FILENAME_LENGTH} characters.", "document"
        )

    safe_name = secure_filename(upload.filename)
    if not safe_name:
        raise ValidationError("Unusable file name.", "document")

    upload_folder = Path(current_app.config["UPLOAD_FOLDER"])
    upload_folder.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S%f")
    stored_path = upload_folder / f"{timestamp}_{safe_name}"

    logger.info(f"Saving uploaded file: {stored_path.name}")
    upload.save(stored_path)
    return str(stored_path)


@jobs_bp.route("/jobs", methods=["POST"])
def submit_job():
    """
    Submit an online order.

    Accepts multipart form data with an optional 'document' file, or a JSON
    body. The page count of the document is supplied by the client as
    'total_pages'.
    """
    data = request_data()
    options = _options_from(data)

    upload = request.files.get("document")
    document_handle = None
    if upload is not None and upload.filename:
        file_name = sanitize_text(upload.filename, MAX_FILENAME_LENGTH)
        document_handle = _save_upload(upload)
    else:
        file_name = sanitize_text(data.get("file_name"), MAX_FILENAME_LENGTH)

    if not file_name:
        raise ValidationError("Please choose a file to print.", "document")

    engine = get_engine()
    job = engine.submit_online(
        options,
        file_name=file_name,
        customer_name=optional_text(data, "customer_name"),
        payer_reference=optional_text(data, "payer_reference"),
        document_handle=document_handle,
        paid=str(data.get("paid", "")).strip().lower() in ("1", "true", "yes", "on"),
    )

    return jsonify({
        "job": _job_payload(job),
        "estimated_wait_minutes": engine.estimated_wait_minutes(),
    }), 201


@jobs_bp.route("/jobs/<int:job_id>", methods=["GET"])
def job_status(job_id: int):
    job = get_engine().get_job(job_id)
    return jsonify({"job": _job_payload(job)})


@jobs_bp.route("/jobs/<int:job_id>/document", methods=["GET"])
@operator_required
def job_document(job_id: int):
    """Send the uploaded file. Operator only."""
    handle = get_engine().printable_document(job_id)
    path = Path(handle)
    if not path.is_file():
        logger.warning(f"Document for job {job_id} is gone: {path.name}")
        return jsonify({
            "error": "This job has no printable file. It might be a walk-in order "
                     "or from a previous session."
        }), 404
    return send_file(path, as_attachment=False)


@jobs_bp.route("/queue", methods=["GET"])
def customer_queue():
    """
    Live queue for customers.

    Query: own=<job id> keeps the customer's own job visible after it is
    collected.
    """
    own = request.args.get("own", type=int)
    engine = get_engine()
    head = engine.next_to_print()

    return jsonify({
        "jobs": [job.to_public_dict() for job in engine.customer_queue(own)],
        "next_to_print": head.token if head else None,
        "estimated_wait_minutes": engine.estimated_wait_minutes(),
    })


@jobs_bp.route("/quote", methods=["POST"])
def quote():
    """Price an order without submitting it."""
    options = _options_from(request_data())
    return jsonify(get_engine().quote(options).to_dict())


@jobs_bp.route("/wait", methods=["GET"])
def wait_time():
    return jsonify({"estimated_wait_minutes": get_engine().estimated_wait_minutes()})


@jobs_bp.route("/refresh", methods=["POST"])
def refresh():
    """Advance the queue one progress step, as the refresh button does."""
    engine = get_engine()
    result = engine.tick()

    payload = result.to_dict()
    payload["jobs"] = [job.to_public_dict() for job in result.jobs]
    return jsonify(payload)
