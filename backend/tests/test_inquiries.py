"""Tests for inquiries sent to companies and their lifecycle."""

import pytest

from constants import InquiryStatus


@pytest.fixture
def inquiry(client, company, homeowner, auth):
    response = client.post("/api/inquiries", json={
        "company": company["_id"],
        "message": "  Need a quote for a duplex  ",
        "preferredContact": "whatsapp",
    }, headers=auth(homeowner))
    assert response.status_code == 201, response.text
    return response.json()


def set_status(client, inquiry_id, user, auth, status, **extra):
    return client.put(f"/api/inquiries/{inquiry_id}/status", json={"status": status, **extra}, headers=auth(user))


class TestTransitions:

    @pytest.mark.parametrize("current,target,allowed", [
        (InquiryStatus.PENDING, InquiryStatus.IN_PROGRESS, True),
        (InquiryStatus.PENDING, InquiryStatus.CANCELLED, True),
        (InquiryStatus.IN_PROGRESS, InquiryStatus.COMPLETED, True),
        (InquiryStatus.IN_PROGRESS, InquiryStatus.PENDING, False),
        (InquiryStatus.COMPLETED, InquiryStatus.IN_PROGRESS, False),
        (InquiryStatus.CANCELLED, InquiryStatus.PENDING, False),
    ])
    def test_allowed_transitions(self, current, target, allowed):
        assert (target in InquiryStatus.allowed_transitions(current)) is allowed


class TestSendInquiry:

    def test_defaults_come_from_the_sender(self, inquiry, homeowner, company):
        assert inquiry["name"] == "Asha Homeowner"
        assert inquiry["email"] == homeowner.email
        assert inquiry["message"] == "Need a quote for a duplex"
        assert inquiry["preferredContact"] == "whatsapp"
        assert inquiry["status"] == "pending"
        assert inquiry["company"]["_id"] == company["_id"]

    def test_company_admin_is_notified(self, client, inquiry, company_admin, auth):
        notifications = client.get("/api/notifications", headers=auth(company_admin)).json()

        assert notifications["notifications"][0]["type"] == "inquiry_received"

    def test_project_must_belong_to_the_company(self, client, company, homeowner, make_user, auth):
        rival = make_user("company_admin")
        client.post("/api/companies", json={"name": "Rival"}, headers=auth(rival))
        project = client.post("/api/projects/company", json={"title": "Rival villa"}, headers=auth(rival)).json()

        response = client.post("/api/inquiries", json={
            "company": company["_id"], "project": project["_id"], "message": "Hello",
        }, headers=auth(homeowner))

        assert response.status_code == 400

    def test_unknown_company(self, client, homeowner, auth):
        response = client.post("/api/inquiries", json={"company": "missing", "message": "Hello"},
                               headers=auth(homeowner))

        assert response.status_code == 404

    def test_cannot_inquire_own_company(self, client, company, company_admin, auth):
        response = client.post("/api/inquiries", json={"company": company["_id"], "message": "Hi me"},
                               headers=auth(company_admin))

        assert response.status_code == 400

    def test_listings(self, client, inquiry, homeowner, company_admin, auth):
        mine = client.get("/api/inquiries/my", headers=auth(homeowner)).json()
        pending = client.get("/api/inquiries/company", params={"status": "pending"}, headers=auth(company_admin))
        done = client.get("/api/inquiries/company", params={"status": "completed"}, headers=auth(company_admin))
        bogus = client.get("/api/inquiries/company", params={"status": "archived"}, headers=auth(company_admin))

        assert [i["_id"] for i in mine] == [inquiry["_id"]]
        assert [i["_id"] for i in pending.json()] == [inquiry["_id"]]
        assert done.json() == []
        assert bogus.status_code == 400


class TestUpdateStatus:

    def test_walks_the_lifecycle_and_notifies_sender(self, client, inquiry, company_admin, homeowner, auth):
        started = set_status(client, inquiry["_id"], company_admin, auth, "in_progress", notes="Called back")
        finished = set_status(client, inquiry["_id"], company_admin, auth, "completed")

        assert started.json()["status"] == "in_progress"
        assert started.json()["notes"] == "Called back"
        assert finished.json()["status"] == "completed"
        types = [n["type"] for n in client.get("/api/notifications", headers=auth(homeowner)).json()["notifications"]]
        assert types == ["inquiry_updated", "inquiry_updated"]

    def test_cannot_move_backwards(self, client, inquiry, company_admin, auth):
        set_status(client, inquiry["_id"], company_admin, auth, "in_progress")

        response = set_status(client, inquiry["_id"], company_admin, auth, "pending")

        assert response.status_code == 400
        assert response.json()["message"] == "Cannot move inquiry from in_progress to pending"

    def test_terminal_inquiry_rejects_even_the_same_status(self, client, inquiry, company_admin, auth):
        set_status(client, inquiry["_id"], company_admin, auth, "cancelled")

        response = set_status(client, inquiry["_id"], company_admin, auth, "cancelled")

        assert response.status_code == 400

    def test_same_status_on_open_inquiry_updates_notes(self, client, inquiry, company_admin, auth):
        response = set_status(client, inquiry["_id"], company_admin, auth, "pending", notes="Site visit Friday")

        assert response.status_code == 200
        assert response.json()["notes"] == "Site visit Friday"

    def test_unknown_status_is_a_bad_request(self, client, inquiry, company_admin, auth):
        assert set_status(client, inquiry["_id"], company_admin, auth, "archived").status_code == 400

    def test_other_company_admin_is_forbidden(self, client, inquiry, make_user, auth):
        rival = make_user("company_admin")

        assert set_status(client, inquiry["_id"], rival, auth, "in_progress").status_code == 403
