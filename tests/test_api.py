import asyncio

import pytest
from conftest import running_on
from fastapi.testclient import TestClient

from salon.availability import bookable_dates
from salon.core import local_today
from salon.main import create_app
from salon.routers import auth_routes
from salon.state import AppStateService
from salon.store import DocumentStore, LocalSnapshotStore, seed_state


@pytest.fixture
def portal(memory_engine):
    store = DocumentStore(LocalSnapshotStore(memory_engine))
    initial = seed_state()
    # registration re-reads the store, so it must already hold the state
    asyncio.run(store.write(initial))
    return AppStateService(store, initial=initial, guard_seconds=0)


@pytest.fixture
def client(portal):
    return TestClient(create_app(portal, background_sync=False))


@pytest.fixture
def booking_day(portal):
    # far enough ahead to stay outside the arrival window
    today = local_today()
    day = next(d for d in bookable_dates(portal.snapshot()) if (d - today).days > 3)
    return day.isoformat()


def register(client, name, phone, password="secret123"):
    return client.post("/auth/register", json={"name": name, "phone": phone, "password": password})


def login(client, username, password):
    response = client.post("/auth/login", data={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def client_headers(client, name, phone):
    assert register(client, name, phone).status_code == 201
    return login(client, phone, "secret123")


@pytest.fixture
def admin_headers(client):
    return login(client, "admin", "admin-pass")


class TestAuthFlow:

    def test_register_then_login(self, client):
        response = register(client, "Dana", "0501111111")
        assert response.status_code == 201
        assert response.json()["phone"] == "0501111111"
        assert "password" not in response.json()

        headers = login(client, "0501111111", "secret123")
        me = client.get("/me", headers=headers)
        assert me.status_code == 200
        assert me.json()["role"] == "client"
        assert me.json()["name"] == "Dana"

    def test_duplicate_phone_conflicts(self, client):
        assert register(client, "Dana", "0501111111").status_code == 201
        assert register(client, "Other", "0501111111").status_code == 409

    def test_wrong_password(self, client):
        register(client, "Dana", "0501111111")
        response = client.post("/auth/login", data={"username": "0501111111", "password": "nope"})
        assert response.status_code == 401

    def test_admin_login(self, client, admin_headers):
        assert client.get("/me", headers=admin_headers).json()["role"] == "admin"

    def test_admin_wrong_password(self, client):
        response = client.post("/auth/login", data={"username": "admin", "password": "admin-pas"})
        assert response.status_code == 401

    def test_password_hashed_off_the_event_loop(self, client, monkeypatch):
        seen = []
        hash_password = auth_routes.hash_password

        def tracked(password):
            seen.append(running_on())
            return hash_password(password)

        monkeypatch.setattr(auth_routes, "hash_password", tracked)

        assert register(client, "Dana", "0501111111").status_code == 201
        assert seen == ["worker-thread"]
        login(client, "0501111111", "secret123")

    def test_missing_token(self, client):
        assert client.get("/me").status_code == 401

    def test_client_cannot_use_admin_routes(self, client):
        headers = client_headers(client, "Dana", "0501111111")
        assert client.get("/admin/appointments", headers=headers).status_code == 403


class TestCatalog:

    def test_services_are_public(self, client):
        response = client.get("/services")
        assert response.status_code == 200
        assert [s["id"] for s in response.json()] == ["1", "2", "3", "4"]

    def test_employees_for_service(self, client):
        response = client.get("/services/3/employees")
        assert [e["id"] for e in response.json()] == ["e1"]

    def test_unknown_service(self, client):
        assert client.get("/services/nope/employees").status_code == 404

    def test_dates_grouped_by_month(self, client):
        months = client.get("/availability/dates").json()["months"]
        assert months
        assert all(dates for dates in months.values())

    def test_no_board_for_today(self, client):
        today = local_today().isoformat()
        response = client.get(f"/availability/{today}/slots", params={"service_id": "1", "employee_id": "e1"})
        assert response.status_code == 200
        assert response.json()["slots"] == []


class TestBookingApi:

    def test_book_and_list(self, client, booking_day):
        headers = client_headers(client, "Dana", "0501111111")

        response = client.post(
            "/appointments",
            json={"service_id": "1", "employee_id": "e1", "date": booking_day, "time": "10:00"},
            headers=headers,
        )
        assert response.status_code == 201, response.text
        body = response.json()
        assert body["status"] == "pending"
        assert body["serviceId"] == "1"
        assert body["priceAtBooking"] == 150
        assert body["confirmedByClient"] is False

        mine = client.get("/clients/me/appointments", headers=headers).json()
        assert [a["id"] for a in mine] == [body["id"]]

    def test_second_booking_of_same_service_conflicts(self, client, booking_day):
        headers = client_headers(client, "Dana", "0501111111")
        payload = {"service_id": "1", "employee_id": "e1", "date": booking_day, "time": "10:00"}

        assert client.post("/appointments", json=payload, headers=headers).status_code == 201
        payload["time"] = "15:00"
        assert client.post("/appointments", json=payload, headers=headers).status_code == 409

    def test_taken_slot_shows_occupied_and_conflicts(self, client, booking_day):
        dana = client_headers(client, "Dana", "0501111111")
        noa = client_headers(client, "Noa", "0502222222")

        client.post(
            "/appointments",
            json={"service_id": "1", "employee_id": "e1", "date": booking_day, "time": "10:00"},
            headers=dana,
        )

        slots = client.get(
            f"/availability/{booking_day}/slots", params={"service_id": "2", "employee_id": "e1"}
        ).json()["slots"]
        board = {s["time"]: s["occupied"] for s in slots}
        assert board["10:30"] is True
        assert board["11:00"] is False

        response = client.post(
            "/appointments",
            json={"service_id": "2", "employee_id": "e1", "date": booking_day, "time": "10:30"},
            headers=noa,
        )
        assert response.status_code == 409

    def test_admin_cannot_book(self, client, admin_headers, booking_day):
        response = client.post(
            "/appointments",
            json={"service_id": "1", "employee_id": "e1", "date": booking_day, "time": "10:00"},
            headers=admin_headers,
        )
        assert response.status_code == 403

    def test_bad_time_label(self, client, booking_day):
        headers = client_headers(client, "Dana", "0501111111")
        response = client.post(
            "/appointments",
            json={"service_id": "1", "employee_id": "e1", "date": booking_day, "time": "25:00"},
            headers=headers,
        )
        assert response.status_code == 422


class TestAdminApi:

    def book(self, client, headers, day, service_id="1", time="10:00"):
        response = client.post(
            "/appointments",
            json={"service_id": service_id, "employee_id": "e1", "date": day, "time": time},
            headers=headers,
        )
        assert response.status_code == 201, response.text
        return response.json()

    def test_confirm_and_cancel(self, client, admin_headers, booking_day):
        dana = client_headers(client, "Dana", "0501111111")
        appt = self.book(client, dana, booking_day)

        response = client.patch(
            f"/admin/appointments/{appt['id']}/status", json={"status": "confirmed"}, headers=admin_headers
        )
        assert response.json()["status"] == "confirmed"

        client.patch(f"/admin/appointments/{appt['id']}/status", json={"status": "cancelled"}, headers=admin_headers)
        response = client.patch(
            f"/admin/appointments/{appt['id']}/status", json={"status": "confirmed"}, headers=admin_headers
        )
        assert response.status_code == 403

    def test_booking_raises_admin_alert(self, client, admin_headers, booking_day):
        dana = client_headers(client, "Dana", "0501111111")
        self.book(client, dana, booking_day)

        notes = client.get("/admin/notifications", headers=admin_headers).json()
        assert notes[0]["type"] == "alert"
        assert "Dana" in notes[0]["message"]

    def test_calendar_filters(self, client, admin_headers, booking_day):
        dana = client_headers(client, "Dana", "0501111111")
        self.book(client, dana, booking_day)

        on_day = client.get(
            "/admin/appointments", params={"on_date": booking_day, "status": "pending"}, headers=admin_headers
        )
        assert len(on_day.json()) == 1
        confirmed = client.get("/admin/appointments", params={"status": "confirmed"}, headers=admin_headers)
        assert confirmed.json() == []
        assert client.get("/admin/appointments", params={"status": "bogus"}, headers=admin_headers).status_code == 422

    def test_date_override_closes_day(self, client, admin_headers, booking_day):
        assert client.put(f"/admin/date-overrides/{booking_day}", headers=admin_headers).status_code == 200

        slots = client.get(
            f"/availability/{booking_day}/slots", params={"service_id": "1", "employee_id": "e1"}
        ).json()["slots"]
        assert slots == []

        dana = client_headers(client, "Dana", "0501111111")
        response = client.post(
            "/appointments",
            json={"service_id": "1", "employee_id": "e1", "date": booking_day, "time": "10:00"},
            headers=dana,
        )
        assert response.status_code == 422

        assert client.delete(f"/admin/date-overrides/{booking_day}", headers=admin_headers).status_code == 204

    def test_invalid_business_hours(self, client, admin_headers):
        response = client.put(
            "/admin/business-hours/1",
            json={"isOpen": True, "start": "18:00", "end": "09:00"},
            headers=admin_headers,
        )
        assert response.status_code == 422

    def test_service_crud(self, client, admin_headers):
        created = client.post("/admin/services", json={"name": "Brow lift", "price": 90}, headers=admin_headers)
        assert created.status_code == 201
        service_id = created.json()["id"]
        assert created.json()["duration"] == 60

        edited = client.put(f"/admin/services/{service_id}", json={"duration": 45}, headers=admin_headers)
        assert edited.json()["duration"] == 45
        assert edited.json()["name"] == "Brow lift"

        assert client.delete(f"/admin/services/{service_id}", headers=admin_headers).status_code == 204
        assert client.delete(f"/admin/services/{service_id}", headers=admin_headers).status_code == 404

    def test_proposal_approved_by_client(self, client, admin_headers, booking_day):
        dana = client_headers(client, "Dana", "0501111111")
        appt = self.book(client, dana, booking_day)

        response = client.post(
            f"/admin/appointments/{appt['id']}/proposal",
            json={"start_time": appt["startTime"], "price_at_booking": 120},
            headers=admin_headers,
        )
        assert response.json()["changeProposal"]["priceAtBooking"] == 120

        approved = client.post(f"/appointments/{appt['id']}/proposal/approve", headers=dana).json()
        assert approved["status"] == "confirmed"
        assert approved["priceAtBooking"] == 120
        assert "changeProposal" not in approved or approved["changeProposal"] is None


class TestSwapApi:

    def test_swap_through_the_api(self, client, booking_day):
        dana = client_headers(client, "Dana", "0501111111")
        noa = client_headers(client, "Noa", "0502222222")

        a = client.post(
            "/appointments",
            json={"service_id": "1", "employee_id": "e1", "date": booking_day, "time": "10:00"},
            headers=dana,
        ).json()
        b = client.post(
            "/appointments",
            json={"service_id": "2", "employee_id": "e1", "date": booking_day, "time": "13:00"},
            headers=noa,
        ).json()

        proposed = client.post(
            f"/appointments/{a['id']}/reschedule", json={"date": booking_day, "time": "13:00"}, headers=dana
        )
        assert proposed.status_code == 200
        assert proposed.json()["action"] == "swap_proposed"
        assert proposed.json()["appointment"]["id"] == b["id"]

        notes = client.get("/me/notifications", headers=noa).json()
        assert len(notes) == 1

        again = client.post(
            f"/appointments/{a['id']}/reschedule", json={"date": booking_day, "time": "13:00"}, headers=dana
        )
        assert again.status_code == 409

        accepted = client.post(f"/appointments/{b['id']}/swap/accept", headers=noa)
        assert accepted.status_code == 200
        assert accepted.json()["startTime"] == a["startTime"]

        mine = client.get("/clients/me/appointments", headers=dana).json()
        assert mine[0]["startTime"] == b["startTime"]
