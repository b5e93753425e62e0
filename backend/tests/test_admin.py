"""Tests for admin moderation and the analytics dashboards."""

from datetime import datetime

import pytest

from exceptions import ValidationError
from models import Conversation, Message, Requirement
from services.analytics_service import add_months, month_windows, resolve_range


def post_requirement(client, user, auth, **fields):
    data = {"serviceType": "construction", "title": "New house", "description": "G+1 house",
            "location": "Nashik", "budget": "5000000", **fields}
    response = client.post("/api/requirements", data=data, headers=auth(user))
    assert response.status_code == 201, response.text
    return response.json()


class TestOverview:

    def test_counts(self, client, admin, homeowner, company, auth):
        post_requirement(client, homeowner, auth)

        stats = client.get("/api/admin/overview", headers=auth(admin)).json()["stats"]

        assert stats["users"] == 3
        assert stats["companies"] == 1
        assert stats["requirements"] == 1
        assert stats["projects"] == 0
        assert stats["payments"] == 0


class TestUserModeration:

    def test_list_filters(self, client, admin, homeowner, company_admin, auth):
        owners = client.get("/api/admin/users", params={"role": "homeowner"}, headers=auth(admin)).json()
        search = client.get("/api/admin/users", params={"search": "RAVI"}, headers=auth(admin)).json()

        assert [u["_id"] for u in owners] == [homeowner.id]
        assert [u["_id"] for u in search] == [company_admin.id]

    def test_verify_sets_or_toggles(self, client, admin, homeowner, auth):
        toggled = client.put(f"/api/admin/users/{homeowner.id}/verify", headers=auth(admin))
        explicit = client.put(f"/api/admin/users/{homeowner.id}/verify", json={"isVerified": True},
                              headers=auth(admin))
        toggled_back = client.put(f"/api/admin/users/{homeowner.id}/verify", headers=auth(admin))

        assert toggled.json()["isVerified"] is True
        assert explicit.json()["isVerified"] is True
        assert toggled_back.json()["isVerified"] is False

    def test_admin_cannot_delete_self(self, client, admin, auth):
        response = client.delete(f"/api/admin/users/{admin.id}", headers=auth(admin))

        assert response.status_code == 400
        assert response.json()["message"] == "You cannot delete your own account"

    def test_delete_unknown_user(self, client, admin, auth):
        assert client.delete("/api/admin/users/missing", headers=auth(admin)).status_code == 404

    def test_delete_user_removes_their_data_and_refreshes_ratings(
            self, client, db_session, admin, homeowner, company, company_admin, make_user, auth):
        project = client.post("/api/projects/company", json={"title": "Villa"}, headers=auth(company_admin)).json()
        other = make_user("homeowner")
        for user, rating in ((homeowner, 1), (other, 5)):
            client.post(f"/api/reviews/project/{project['_id']}", json={"rating": rating, "comment": "ok"},
                        headers=auth(user))
        post_requirement(client, homeowner, auth)
        client.post("/api/conversations/thread-1/messages",
                    json={"receiverId": company_admin.id, "content": "Hello"}, headers=auth(homeowner))

        response = client.delete(f"/api/admin/users/{homeowner.id}", headers=auth(admin))

        assert response.status_code == 200
        assert db_session.query(Requirement).count() == 0
        assert db_session.query(Conversation).count() == 0
        assert db_session.query(Message).count() == 0
        detail = client.get(f"/api/projects/{project['_id']}").json()
        assert detail["rating"] == 5
        assert detail["reviewCount"] == 1

    def test_deleting_selected_provider_reopens_requirement(self, client, admin, homeowner, professional, auth):
        requirement = post_requirement(client, homeowner, auth)
        quote = client.post("/api/quotes", json={
            "requirement": requirement["_id"], "designProposal": "Load-bearing frame", "estimatedBudget": 4_800_000,
        }, headers=auth(professional)).json()
        client.put(f"/api/requirements/{requirement['_id']}/select-quote", json={"quoteId": quote["_id"]},
                   headers=auth(homeowner))

        response = client.delete(f"/api/admin/users/{professional.id}", headers=auth(admin))

        assert response.status_code == 200
        detail = client.get(f"/api/requirements/{requirement['_id']}", headers=auth(homeowner)).json()
        assert detail["status"] == "open"
        assert detail["selectedQuoteId"] is None

    def test_requirements_listing(self, client, admin, homeowner, auth):
        requirement = post_requirement(client, homeowner, auth)

        listed = client.get("/api/admin/projects", headers=auth(admin)).json()

        assert [r["_id"] for r in listed] == [requirement["_id"]]
        assert listed[0]["homeowner"]["name"] == "Asha Homeowner"


class TestAnalyticsHelpers:

    def test_add_months_crosses_years(self):
        assert add_months(datetime(2026, 1, 1), -1) == datetime(2025, 12, 1)
        assert add_months(datetime(2025, 11, 1), 3) == datetime(2026, 2, 1)

    def test_month_windows(self):
        windows = month_windows(datetime(2026, 1, 20), datetime(2026, 3, 5))

        assert [label for label, _, _ in windows] == ["Jan 2026", "Feb 2026", "Mar 2026"]
        assert windows[0][1] == datetime(2026, 1, 1)
        assert windows[-1][2] == datetime(2026, 4, 1)

    def test_resolve_range(self):
        assert resolve_range("90d") == 90
        with pytest.raises(ValidationError, match="Unknown range"):
            resolve_range("2w")


class TestAnalyticsEndpoints:

    def test_platform_summary(self, client, admin, homeowner, company, professional, auth):
        requirement = post_requirement(client, homeowner, auth)
        quote = client.post("/api/quotes", json={
            "requirement": requirement["_id"], "designProposal": "Plan", "estimatedBudget": 4_000_000,
        }, headers=auth(professional)).json()
        client.put(f"/api/requirements/{requirement['_id']}/select-quote", json={"quoteId": quote["_id"]},
                   headers=auth(homeowner))

        body = client.get("/api/analytics", headers=auth(admin)).json()

        assert body["overview"]["totalUsers"] == 4
        assert body["overview"]["totalRevenue"] == 4_000_000
        assert body["users"]["homeowners"] == 1
        assert len(body["users"]["monthlyGrowth"]) == 6
        assert body["projects"]["inProgress"] == 1
        assert body["proposals"]["acceptanceRate"] == "100.0"
        assert body["payments"]["total"] == 0
        assert body["recentActivity"]["projects"][0]["user"] == {"name": "Asha Homeowner"}

    def test_provider_summary(self, client, professional, homeowner, auth):
        requirement = post_requirement(client, homeowner, auth)
        client.post("/api/quotes", json={
            "requirement": requirement["_id"], "designProposal": "Plan", "estimatedBudget": 2_000_000,
        }, headers=auth(professional))

        body = client.get("/api/analytics/professional", params={"range": "30d"}, headers=auth(professional)).json()

        assert body["range"] == "30d"
        assert body["totalProposals"] == 1
        assert body["acceptedProposals"] == 0
        assert body["proposalSuccessRate"] == 0
        assert body["recentActivity"][0]["type"] == "proposal_submitted"

    def test_unknown_range_is_a_bad_request(self, client, professional, auth):
        response = client.get("/api/analytics/professional", params={"range": "forever"},
                              headers=auth(professional))

        assert response.status_code == 400

    def test_platform_analytics_is_admin_only(self, client, professional, auth):
        assert client.get("/api/analytics", headers=auth(professional)).status_code == 403
