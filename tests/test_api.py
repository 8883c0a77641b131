"""End-to-end tests through the HTTP surface."""

import pytest
from fastapi.testclient import TestClient

from ewaste.config import settings
from ewaste.database import get_db
from ewaste.deps import get_notifier, get_otp_store
from ewaste.main import app, serve
from ewaste.models import RequestStatus, Role
from ewaste.otp_store import InMemoryOtpStore
from ewaste.utils import create_jwt

from conftest import make_pickup_person, make_request, make_user


@pytest.fixture
def client(db, notifier):
    store = InMemoryOtpStore()
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_otp_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth(user) -> dict:
    token = create_jwt({"sub": user.email, "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def people(db):
    customer = make_user(db)
    admin = make_user(db, name="Admin", email="admin@example.com", role=Role.ADMIN)
    person = make_pickup_person(db)
    return customer, admin, person


class TestAuthBoundary:
    def test_missing_token(self, client) -> None:
        assert client.get("/requests/user").status_code == 401

    def test_garbage_token(self, client) -> None:
        r = client.get("/requests/user", headers={"Authorization": "Bearer nope"})
        assert r.status_code == 401

    def test_inactive_account(self, client, db, people) -> None:
        customer, _, _ = people
        customer.status = "INACTIVE"
        db.commit()
        assert client.get("/requests/user", headers=auth(customer)).status_code == 403

    def test_customer_cannot_approve(self, client, db, people) -> None:
        customer, _, _ = people
        req = make_request(db, customer)
        r = client.put(f"/requests/{req.id}/status", json={"status": "APPROVED"}, headers=auth(customer))
        assert r.status_code == 403


class TestRequestsApi:
    def test_submit_and_list(self, client, people) -> None:
        customer, _, _ = people
        r = client.post("/requests/", headers=auth(customer), json={
            "device_type": "Laptop",
            "condition": "WORKING",
            "quantity": 2,
            "pickup_address": "Plot 4, Kampala Rd",
        })
        assert r.status_code == 200
        assert r.json()["status"] == "PENDING"

        mine = client.get("/requests/user", headers=auth(customer)).json()
        assert [m["id"] for m in mine] == [r.json()["id"]]

    def test_submit_rejects_unknown_condition(self, client, people) -> None:
        customer, _, _ = people
        r = client.post("/requests/", headers=auth(customer), json={
            "device_type": "Laptop", "condition": "SHINY", "pickup_address": "x",
        })
        assert r.status_code == 422

    def test_approve(self, client, db, people, notifier) -> None:
        customer, admin, _ = people
        req = make_request(db, customer)
        r = client.put(f"/requests/{req.id}/status", json={"status": "APPROVED"}, headers=auth(admin))
        assert r.status_code == 200
        assert r.json()["status"] == "APPROVED"
        assert len(notifier.of("approval")) == 1

    def test_unknown_status_token(self, client, db, people) -> None:
        customer, admin, _ = people
        req = make_request(db, customer)
        r = client.put(f"/requests/{req.id}/status", json={"status": "approved"}, headers=auth(admin))
        assert r.status_code == 400
        assert "Invalid status" in r.json()["detail"]

    def test_status_on_missing_request(self, client, people) -> None:
        _, admin, _ = people
        r = client.put("/requests/999/status", json={"status": "APPROVED"}, headers=auth(admin))
        assert r.status_code == 404
        assert r.json()["detail"] == "Request not found"

    def test_reject_validates_reason(self, client, db, people) -> None:
        customer, admin, _ = people
        req = make_request(db, customer)
        r = client.put(f"/requests/{req.id}/reject", json={"rejection_reason": "no"}, headers=auth(admin))
        assert r.status_code == 422
        r = client.put(f"/requests/{req.id}/reject", json={"rejection_reason": "Not e-waste"}, headers=auth(admin))
        assert r.status_code == 200
        assert r.json()["rejection_reason"] == "Not e-waste"

    def test_schedule(self, client, db, people, notifier) -> None:
        customer, admin, person = people
        req = make_request(db, customer, status=RequestStatus.APPROVED)
        r = client.put(f"/requests/{req.id}/schedule", headers=auth(admin), json={
            "pickup_date": "2025-03-01T10:30:00Z", "pickup_person_id": person.id,
        })
        assert r.status_code == 200
        body = r.json()
        assert body["status"] == "SCHEDULED"
        assert body["assigned_pickup_person_id"] == person.id
        assert body["scheduled_pickup_date"].startswith("2025-03-01T10:30:00")
        assert len(notifier.of("assignment")) == 1

    def test_schedule_bad_time(self, client, db, people) -> None:
        customer, admin, person = people
        req = make_request(db, customer)
        r = client.put(f"/requests/{req.id}/schedule", headers=auth(admin), json={
            "pickup_date": "someday", "pickup_person_id": person.id,
        })
        assert r.status_code == 400

    def test_admin_list_filter(self, client, db, people) -> None:
        customer, admin, _ = people
        make_request(db, customer)
        approved = make_request(db, customer, status=RequestStatus.APPROVED)
        r = client.get("/requests/", params={"status": "APPROVED"}, headers=auth(admin))
        assert [x["id"] for x in r.json()] == [approved.id]
        assert client.get("/requests/", params={"status": "nope"}, headers=auth(admin)).status_code == 400

    def test_report_owner_only(self, client, db, people) -> None:
        customer, admin, _ = people
        req = make_request(db, customer)
        r = client.get(f"/requests/{req.id}/report", headers=auth(customer))
        assert r.status_code == 200
        assert r.headers["content-type"] == "application/pdf"
        assert r.content.startswith(b"%PDF")
        assert client.get(f"/requests/{req.id}/report", headers=auth(admin)).status_code == 403

    def test_get_request_visibility(self, client, db, people) -> None:
        customer, admin, person = people
        stranger = make_user(db, name="Ben", email="ben@example.com")
        req = make_request(db, customer, status=RequestStatus.SCHEDULED, assignee=person)

        r = client.get(f"/requests/{req.id}", headers=auth(stranger))
        assert r.status_code == 403
        assert "pickup_address" not in r.json()
        for reader in (customer, admin, person.user):
            r = client.get(f"/requests/{req.id}", headers=auth(reader))
            assert r.status_code == 200
            assert r.json()["id"] == req.id

    def test_stats(self, client, db, people) -> None:
        customer, admin, _ = people
        make_request(db, customer, device_type="Laptop")
        make_request(db, customer, device_type="Phone", status=RequestStatus.COMPLETED)
        devices = client.get("/requests/dashboard/stats", headers=auth(admin)).json()
        assert devices == {"device_type_stats": {"Laptop": 1, "Phone": 1}}
        mine = client.get("/requests/stats/mine", headers=auth(customer)).json()
        assert {m["status"]: m["count"] for m in mine} == {"PENDING": 1, "COMPLETED": 1}


class TestPickupApi:
    def test_verification_round_trip(self, client, db, people, notifier) -> None:
        customer, _, person = people
        req = make_request(db, customer, status=RequestStatus.SCHEDULED, assignee=person)
        headers = auth(person.user)

        r = client.post(f"/pickup/request/{req.id}/initiate-verification", headers=headers)
        assert r.status_code == 200
        code = notifier.last_code()

        r = client.post(f"/pickup/request/{req.id}/verify-complete", params={"otp": code}, headers=headers)
        assert r.status_code == 200
        assert r.json() == {"message": "Request verified and completed"}

        r = client.post(f"/pickup/request/{req.id}/verify-complete", params={"otp": code}, headers=headers)
        assert r.status_code == 400
        assert r.json()["detail"] == "Invalid OTP"

    def test_collect_requires_assignment(self, client, db, people) -> None:
        customer, _, person = people
        other = make_pickup_person(db, name="Mary Driver", email="mary@example.com")
        req = make_request(db, customer, status=RequestStatus.SCHEDULED, assignee=other)
        r = client.post(f"/pickup/request/{req.id}/update-status", params={"status": "COLLECTED"},
                        headers=auth(person.user))
        assert r.status_code == 403

    def test_collect(self, client, db, people) -> None:
        customer, _, person = people
        req = make_request(db, customer, status=RequestStatus.SCHEDULED, assignee=person)
        headers = auth(person.user)
        r = client.post(f"/pickup/request/{req.id}/update-status", params={"status": "COMPLETED"}, headers=headers)
        assert r.status_code == 400
        r = client.post(f"/pickup/request/{req.id}/update-status", params={"status": "COLLECTED"}, headers=headers)
        assert r.status_code == 200

    def test_assigned_and_route(self, client, db, people) -> None:
        customer, _, person = people
        req = make_request(db, customer, status=RequestStatus.SCHEDULED, assignee=person)
        headers = auth(person.user)
        assigned = client.get("/pickup/my-assigned-requests", headers=headers).json()
        assert [a["id"] for a in assigned] == [req.id]
        route = client.get("/pickup/route-data", headers=headers).json()
        assert route["total_stops"] == 1

    def test_customer_cannot_use_pickup_routes(self, client, people) -> None:
        customer, _, _ = people
        assert client.get("/pickup/my-assigned-requests", headers=auth(customer)).status_code == 403


class TestAdminApi:
    def test_register_and_list_pickup_persons(self, client, db, people) -> None:
        _, admin, person = people
        recruit = make_user(db, name="Ben", email="ben@example.com")

        r = client.post("/admin/register-pickup-person", headers=auth(admin),
                        json={"email": "ben@example.com", "vehicle_number": "UBB 456Y"})
        assert r.status_code == 200
        body = r.json()
        assert body["user"]["email"] == "ben@example.com"
        assert body["vehicle_number"] == "UBB 456Y"
        assert body["is_available"] is True

        listed = client.get("/admin/pickup-persons", headers=auth(admin)).json()
        assert [p["id"] for p in listed] == [person.id, body["id"]]

        db.expire_all()
        assert recruit.role is Role.PICKUP_PERSON

    def test_register_unknown_email(self, client, people) -> None:
        _, admin, _ = people
        r = client.post("/admin/register-pickup-person", headers=auth(admin), json={"email": "ghost@example.com"})
        assert r.status_code == 404

    def test_register_twice(self, client, people) -> None:
        _, admin, person = people
        r = client.post("/admin/register-pickup-person", headers=auth(admin),
                        json={"email": person.user.email})
        assert r.status_code == 400

    def test_directory_is_admin_only(self, client, people) -> None:
        customer, _, _ = people
        assert client.get("/admin/pickup-persons", headers=auth(customer)).status_code == 403

    def test_registered_person_can_be_scheduled(self, client, db, people, notifier) -> None:
        customer, admin, _ = people
        make_user(db, name="Ben", email="ben@example.com")
        new_id = client.post("/admin/register-pickup-person", headers=auth(admin),
                             json={"email": "ben@example.com"}).json()["id"]
        req = make_request(db, customer, status=RequestStatus.APPROVED)
        r = client.put(f"/requests/{req.id}/schedule", headers=auth(admin), json={"pickup_person_id": new_id})
        assert r.status_code == 200
        assert r.json()["assigned_pickup_person_id"] == new_id


class TestCertificateApi:
    def test_not_qualified(self, client, db, people) -> None:
        customer, _, _ = people
        for _ in range(9):
            make_request(db, customer, status=RequestStatus.COMPLETED)
        elig = client.get("/user/certificate/eligibility", headers=auth(customer)).json()
        assert elig == {"total_qualified": 9, "required": 10, "is_eligible": False, "recipient_name": "Asha Nakato"}
        r = client.get("/user/certificate/generate", headers=auth(customer))
        assert r.status_code == 400
        assert r.json()["current"] == 9
        assert r.json()["required"] == 10

    def test_generate(self, client, db, people) -> None:
        customer, _, _ = people
        for _ in range(10):
            make_request(db, customer, status=RequestStatus.COLLECTED)
        r = client.get("/user/certificate/generate", headers=auth(customer))
        assert r.status_code == 200
        assert r.content.startswith(b"%PDF")


def test_health(client) -> None:
    assert client.get("/health").json() == {"status": "ok"}


def test_serve_runs_the_app_under_uvicorn(monkeypatch) -> None:
    calls = []
    monkeypatch.setattr("uvicorn.run", lambda target, **kwargs: calls.append((target, kwargs)))
    serve()
    assert calls == [(app, {"host": "0.0.0.0", "port": settings.PORT})]
