"""Tests for professional profiles and their portfolio."""

import pytest


@pytest.fixture
def profile(client, professional, auth):
    response = client.put("/api/professionals/my/profile", json={
        "description": "Residential architecture",
        "services": ["Architecture"],
        "specialties": ["Vastu"],
        "location": {"city": "Pune", "zipCode": "411001"},
    }, headers=auth(professional))
    assert response.status_code == 200, response.text
    return response.json()


class TestProfile:

    def test_first_save_creates_profile(self, profile, professional):
        assert profile["userId"] == professional.id
        assert profile["name"] == "Meera Architect"
        assert profile["location"] == {"city": "Pune", "zipCode": "411001"}
        assert profile["isVerified"] is False

    def test_later_saves_update_in_place(self, client, profile, professional, auth):
        response = client.put("/api/professionals/my/profile", json={"website": "https://meera.example"},
                              headers=auth(professional))

        assert response.json()["_id"] == profile["_id"]
        assert response.json()["website"] == "https://meera.example"
        assert response.json()["description"] == "Residential architecture"

    def test_own_profile_missing(self, client, professional, auth):
        assert client.get("/api/professionals/my/profile", headers=auth(professional)).status_code == 404

    def test_only_professionals_have_profiles(self, client, homeowner, auth):
        response = client.put("/api/professionals/my/profile", json={"description": "x"}, headers=auth(homeowner))

        assert response.status_code == 403

    def test_public_listing_filters(self, client, profile):
        by_service = client.get("/api/professionals", params={"service": "vastu"}).json()
        by_other_service = client.get("/api/professionals", params={"service": "plumbing"}).json()
        unverified = client.get("/api/professionals", params={"verified": "false"}).json()

        assert [p["_id"] for p in by_service] == [profile["_id"]]
        assert by_other_service == []
        assert [p["_id"] for p in unverified] == [profile["_id"]]
        assert client.get(f"/api/professionals/{profile['_id']}").json()["name"] == "Meera Architect"

    def test_admin_verification(self, client, profile, professional, admin, auth):
        verified = client.put(f"/api/professionals/{profile['_id']}/verify", headers=auth(admin))
        unverified = client.put(f"/api/professionals/{profile['_id']}/verify", json={"isVerified": False},
                                headers=auth(admin))

        assert verified.json()["isVerified"] is True
        assert unverified.json()["isVerified"] is False
        notes = client.get("/api/notifications", headers=auth(professional)).json()["notifications"]
        assert [n["type"] for n in notes] == ["account_verified"]

    def test_admin_deletes_profile(self, client, profile, admin, auth):
        response = client.delete(f"/api/admin/professionals/{profile['_id']}", headers=auth(admin))

        assert response.status_code == 200
        assert client.get(f"/api/professionals/{profile['_id']}").status_code == 404


class TestPortfolio:

    def test_company_and_project_lifecycle(self, client, professional, auth):
        headers = auth(professional)
        company = client.post("/api/professional-companies", json={"name": "Studio M", "role": "Founder"},
                              headers=headers).json()

        project = client.post("/api/professional-projects", json={
            "title": "Courtyard house", "companyId": company["_id"], "budget": "", "tags": ["residential"],
        }, headers=headers)

        assert project.status_code == 201, project.text
        body = project.json()
        assert body["companyId"] == company["_id"]
        assert body["company"]["name"] == "Studio M"
        assert body["budget"] is None
        assert body["isFeatured"] is False

        featured = client.put(f"/api/professional-projects/{body['_id']}/feature", headers=headers)
        assert featured.json()["isFeatured"] is True

        renamed = client.put(f"/api/professional-companies/{company['_id']}", json={"name": "Studio Meera"},
                             headers=headers)
        assert renamed.json()["name"] == "Studio Meera"

    def test_featured_projects_list_first(self, client, professional, auth):
        headers = auth(professional)
        plain = client.post("/api/professional-projects", json={"title": "Plain"}, headers=headers).json()
        star = client.post("/api/professional-projects", json={"title": "Star"}, headers=headers).json()
        client.put(f"/api/professional-projects/{star['_id']}/feature", headers=headers)

        titles = [p["title"] for p in client.get("/api/professional-projects", headers=headers).json()]

        assert titles == ["Star", "Plain"]
        assert plain["_id"] != star["_id"]

    def test_project_company_must_be_own(self, client, professional, make_user, auth):
        other = make_user("professional", professional_type="contractor")
        foreign = client.post("/api/professional-companies", json={"name": "Other"}, headers=auth(other)).json()

        response = client.post("/api/professional-projects", json={"title": "X", "companyId": foreign["_id"]},
                               headers=auth(professional))

        assert response.status_code == 400

    def test_records_belong_to_their_owner(self, client, professional, make_user, auth):
        project = client.post("/api/professional-projects", json={"title": "Mine"},
                              headers=auth(professional)).json()
        other = make_user("professional", professional_type="contractor")

        assert client.delete(f"/api/professional-projects/{project['_id']}", headers=auth(other)).status_code == 403
        assert client.get("/api/professional-projects", headers=auth(other)).json() == []
        assert client.delete(f"/api/professional-projects/{project['_id']}",
                             headers=auth(professional)).status_code == 200
