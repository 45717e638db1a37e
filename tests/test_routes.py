"""
Integration tests for the Flask routes, via the test client.

The app is built with TestingConfig: in-memory store, no ticker, seeded
rng and the built-in demo jobs (see test_queue_engine).
"""

import io
from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from app import create_app


# Fixtures

@pytest.fixture
def app(tmp_path):
    app = create_app("config.TestingConfig")
    app.config["UPLOAD_FOLDER"] = str(tmp_path / "uploads")
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def operator(client):
    """Client with an operator logged in."""
    response = client.post("/api/admin/login", json={"username": "admin", "password": "admin"})
    assert response.status_code == 200
    return client


# Tests for Main Routes

class TestMain:

    def test_index(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.get_json()["service"] == "print_queue"

    def test_health(self, client):
        response = client.get("/health")
        data = response.get_json()

        assert response.status_code == 200
        assert data["checks"]["queue"] == "5 jobs"
        assert data["checks"]["ticker"] == "stopped"

    def test_unknown_route_is_json(self, client):
        response = client.get("/nowhere")

        assert response.status_code == 404
        assert "error" in response.get_json()


# Tests for Customer Routes

class TestCustomerRoutes:

    def test_queue_hides_collected(self, client):
        data = client.get("/api/queue").get_json()

        assert [job["token"] for job in data["jobs"]] == ["PS-126", "PS-123", "PS-124", "PS-125"]
        assert data["next_to_print"] == "PS-126"
        assert data["estimated_wait_minutes"] == 8

    def test_queue_keeps_own_job(self, client):
        data = client.get("/api/queue?own=5").get_json()

        assert "PS-121" in [job["token"] for job in data["jobs"]]

    def test_submit_json(self, client):
        response = client.post("/api/jobs", json={
            "file_name": "notes.pdf",
            "total_pages": 5,
            "customer_name": "Riya",
        })
        job = response.get_json()["job"]

        assert response.status_code == 201
        assert job["token"].startswith("PS-")
        assert job["cost"] == pytest.approx(2.5)
        assert job["status"] == "Queued"
        assert job["qr_payload"] == f"PrintSmart-Token:{job['token']}"
        assert not job["has_document"]

    def test_submit_sanitizes_text(self, client):
        response = client.post("/api/jobs", json={
            "file_name": "<b>notes</b>.pdf",
            "total_pages": 2,
            "customer_name": "<script>x</script>Riya",
        })
        job = response.get_json()["job"]

        assert job["file_name"] == "notes.pdf"
        assert "<" not in job["customer_name"]

    def test_submit_upload(self, client, app, tmp_path):
        response = client.post(
            "/api/jobs",
            data={
                "total_pages": "3",
                "color_mode": "color",
                "document": (io.BytesIO(b"%PDF-1.4 test"), "lab report.pdf"),
            },
            content_type="multipart/form-data",
        )
        job = response.get_json()["job"]

        assert response.status_code == 201
        assert job["has_document"]
        assert job["file_name"] == "lab report.pdf"
        assert job["cost"] == pytest.approx(6.0)
        assert len(list((tmp_path / "uploads").iterdir())) == 1

    def test_upload_name_uses_utc_timestamp(self, client, tmp_path):
        stamp = datetime(2026, 1, 2, 3, 4, 5, 6, tzinfo=timezone.utc)

        with patch("routes.jobs.datetime") as fake_datetime:
            fake_datetime.now.return_value = stamp
            response = client.post(
                "/api/jobs",
                data={
                    "total_pages": "1",
                    "document": (io.BytesIO(b"%PDF-1.4 test"), "notes.pdf"),
                },
                content_type="multipart/form-data",
            )

        assert response.status_code == 201
        fake_datetime.now.assert_called_once_with(timezone.utc)
        stored = [path.name for path in (tmp_path / "uploads").iterdir()]
        assert stored == ["20260102030405000006_notes.pdf"]

    def test_submit_without_pages(self, client):
        response = client.post("/api/jobs", json={"file_name": "notes.pdf"})

        assert response.status_code == 400
        assert response.get_json()["field"] == "total_pages"

    def test_submit_without_file(self, client):
        response = client.post("/api/jobs", json={"total_pages": 3})

        assert response.status_code == 400

    def test_job_status(self, client):
        data = client.get("/api/jobs/1").get_json()

        assert data["job"]["token"] == "PS-123"
        assert data["job"]["status"] == "Printing"

    def test_unknown_job(self, client):
        assert client.get("/api/jobs/999").status_code == 404

    def test_quote(self, client):
        data = client.post("/api/quote", json={"total_pages": 5, "is_expedited": True}).get_json()

        assert data["total"] == pytest.approx(3.125)

    def test_wait(self, client):
        assert client.get("/api/wait").get_json() == {"estimated_wait_minutes": 8}

    def test_refresh_ticks(self, client):
        data = client.post("/api/refresh").get_json()

        assert data["changed"]
        statuses = {job["token"]: job["status"] for job in data["jobs"]}
        assert statuses["PS-123"] == "Ready"
        assert statuses["PS-126"] == "Printing"


# Tests for Operator Routes

class TestOperatorRoutes:

    def test_login_required(self, client):
        response = client.get("/api/admin/stats")

        assert response.status_code == 401

    def test_bad_login(self, client):
        response = client.post("/api/admin/login", json={"username": "admin", "password": "x"})

        assert response.status_code == 401

    def test_session_and_logout(self, operator):
        assert operator.get("/api/admin/session").get_json()["session"]["username"] == "admin"

        operator.post("/api/admin/logout")

        assert operator.get("/api/admin/session").get_json()["session"] is None
        assert operator.get("/api/admin/stats").status_code == 401

    def test_stats(self, operator):
        data = operator.get("/api/admin/stats").get_json()

        assert data["total_jobs"] == 5
        assert data["total_earnings"] == pytest.approx(103.5)

    def test_filters(self, operator):
        printing = operator.get("/api/admin/queue?filter=printing").get_json()["jobs"]
        unpaid = operator.get("/api/admin/payments?filter=unpaid").get_json()["jobs"]
        completed = operator.get("/api/admin/completed").get_json()["jobs"]

        assert [job["token"] for job in printing] == ["PS-123"]
        assert [job["token"] for job in unpaid] == ["PS-124"]
        assert [job["token"] for job in completed] == ["PS-121"]

    def test_bad_filter(self, operator):
        assert operator.get("/api/admin/queue?filter=bogus").status_code == 400

    def test_transition(self, operator):
        response = operator.post("/api/admin/jobs/1/transition", json={"status": "Ready"})

        assert response.status_code == 200
        assert response.get_json()["job"]["status"] == "Ready"

    def test_transition_conflict(self, operator):
        response = operator.post("/api/admin/jobs/3/transition", json={"status": "Collected"})

        assert response.status_code == 409
        assert response.get_json()["outcome"] == "conflict"

    def test_transition_requires_login(self, client):
        response = client.post("/api/admin/jobs/1/transition", json={"status": "Ready"})

        assert response.status_code == 401

    def test_priority(self, operator):
        response = operator.post("/api/admin/jobs/4/priority", json={"priority": 1})
        queue = operator.get("/api/queue").get_json()

        assert response.status_code == 200
        assert queue["jobs"][0]["token"] == "PS-125"

    def test_bad_priority(self, operator):
        response = operator.post("/api/admin/jobs/4/priority", json={"priority": 7})

        assert response.status_code == 400

    def test_mark_paid(self, operator):
        response = operator.post("/api/admin/jobs/3/paid", json={"payer_reference": "priya@upi"})

        assert response.get_json()["job"]["payment_status"] == "Paid"

    def test_walk_in(self, operator):
        response = operator.post("/api/admin/walk-in", json={"pages": 4, "sides": "double"})
        job = response.get_json()["job"]

        assert response.status_code == 201
        assert job["token"].startswith("FO-")
        assert job["file_name"] == "Walk-in Order"
        assert job["cost"] == pytest.approx(4 * 0.5 * 0.9)

    def test_walk_in_requires_login(self, client):
        assert client.post("/api/admin/walk-in", json={"pages": 4}).status_code == 401

    def test_scan_and_collect(self, operator):
        operator.post("/api/admin/jobs/1/transition", json={"status": "Ready"})

        response = operator.post("/api/admin/scan", json={"code": "PrintSmart-Token:PS-123"})
        assert response.status_code == 200
        assert response.get_json()["job"]["status"] == "Collected"

        again = operator.post("/api/admin/collect", json={"token": "ps-123"})
        assert again.status_code == 404

    def test_scan_invalid_code(self, operator):
        response = operator.post("/api/admin/scan", json={"code": "hello"})

        assert response.status_code == 400
        assert response.get_json()["message"] == "Invalid QR Code."

    def test_collect_not_ready(self, operator):
        response = operator.post("/api/admin/collect", json={"token": "PS-124"})

        assert response.status_code == 409
        assert response.get_json()["message"] == "Job PS-124 is not ready. Status: Queued"

    def test_rates(self, operator):
        response = operator.put("/api/admin/rates", json={"bw_page_rate": 1, "discount_percent": 20})
        data = response.get_json()

        assert data["bw_page_rate"] == 1.0
        assert data["duplex_multiplier"] == pytest.approx(0.8)
        assert data["surcharge_percent"] == 25

    def test_invalid_rates(self, operator):
        response = operator.put("/api/admin/rates", json={"bw_page_rate": -1})

        assert response.status_code == 400

    @pytest.mark.parametrize("field", ["bw_page_rate", "surcharge_percent", "discount_percent"])
    @pytest.mark.parametrize("value", ["nan", "inf", "-inf"])
    def test_non_finite_rates_rejected(self, operator, field, value):
        response = operator.put("/api/admin/rates", json={field: value})

        assert response.status_code == 400

        current = operator.get("/api/admin/rates")
        assert current.status_code == 200
        assert current.get_json()["bw_page_rate"] == 0.5
        assert current.get_json()["surcharge_percent"] == 25

    def test_notifications(self, operator):
        response = operator.put("/api/admin/notifications", json={"notify_job_ready": True})

        assert response.get_json() == {"notify_new_job": True, "notify_job_ready": True}

    def test_users(self, operator):
        assert operator.post("/api/admin/users", json={"username": "sam", "password": "pw"}).status_code == 200
        assert operator.get("/api/admin/users").get_json()["users"] == ["admin", "sam"]
        assert operator.put("/api/admin/users/sam/password", json={"password": "new"}).status_code == 200
        assert operator.delete("/api/admin/users/sam").status_code == 200

    def test_delete_admin_always_conflicts(self, client):
        assert client.delete("/api/admin/users/admin").status_code == 409

    def test_document_missing(self, operator):
        response = operator.get("/api/jobs/1/document")

        assert response.status_code == 404
        assert "no printable file" in response.get_json()["error"]

    def test_document_download(self, operator):
        submitted = operator.post(
            "/api/jobs",
            data={
                "total_pages": "1",
                "document": (io.BytesIO(b"%PDF-1.4 test"), "notes.pdf"),
            },
            content_type="multipart/form-data",
        ).get_json()["job"]

        response = operator.get(f"/api/jobs/{submitted['id']}/document")

        assert response.status_code == 200
        assert response.data == b"%PDF-1.4 test"
        response.close()

    def test_document_requires_login(self, client):
        assert client.get("/api/jobs/1/document").status_code == 401


# Tests for Operator Session Binding

class TestOperatorSessionBinding:
    """Only the client that logged in may act as the operator."""

    @pytest.fixture
    def other_client(self, app):
        return app.test_client()

    def test_other_client_is_refused(self, operator, other_client):
        assert other_client.get("/api/admin/stats").status_code == 401
        assert other_client.post(
            "/api/admin/users", json={"username": "mallory", "password": "pw"}
        ).status_code == 401
        assert other_client.put("/api/admin/rates", json={"bw_page_rate": 0}).status_code == 401
        assert other_client.put(
            "/api/admin/notifications", json={"notify_new_job": False}
        ).status_code == 401
        assert other_client.post(
            "/api/admin/jobs/3/transition", json={"status": "Printing"}
        ).status_code == 401
        assert other_client.delete("/api/admin/users/sam").status_code == 401
        assert other_client.get("/api/jobs/1/document").status_code == 401

    def test_refused_requests_change_nothing(self, operator, other_client):
        other_client.post("/api/admin/users", json={"username": "mallory", "password": "pw"})
        other_client.put("/api/admin/rates", json={"bw_page_rate": 0})

        assert operator.get("/api/admin/users").get_json()["users"] == ["admin"]
        assert operator.get("/api/admin/rates").get_json()["bw_page_rate"] == 0.5

    def test_operator_client_still_allowed(self, operator, other_client):
        other_client.get("/api/admin/stats")

        assert operator.get("/api/admin/stats").status_code == 200
        assert operator.put("/api/admin/rates", json={"bw_page_rate": 1}).status_code == 200

    def test_other_client_sees_no_session(self, operator, other_client):
        assert other_client.get("/api/admin/session").get_json()["session"] is None
        assert operator.get("/api/admin/session").get_json()["session"]["username"] == "admin"

    def test_other_client_cannot_log_operator_out(self, operator, other_client):
        assert other_client.post("/api/admin/logout").status_code == 401
        assert operator.get("/api/admin/stats").status_code == 200

    def test_newer_login_replaces_older_cookie(self, operator, other_client):
        response = other_client.post(
            "/api/admin/login", json={"username": "admin", "password": "admin"}
        )

        assert response.status_code == 200
        assert other_client.get("/api/admin/stats").status_code == 200
        assert operator.get("/api/admin/stats").status_code == 401

    def test_delete_admin_conflicts_for_other_client(self, operator, other_client):
        assert other_client.delete("/api/admin/users/admin").status_code == 409
