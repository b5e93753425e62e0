"""Tests for company profiles, showcase projects and project reviews."""

import pytest


@pytest.fixture
def publish(client, company, company_admin, auth):
    """Publish a showcase project for the company fixture."""

    def _publish(**fields):
        payload = {"title": "Project", **fields}
        response = client.post("/api/projects/company", json=payload, headers=auth(company_admin))
        assert response.status_code == 201, response.text
        return response.json()

    return _publish


class TestCompanies:

    def test_company_admin_owns_one_company(self, client, company, company_admin, auth):
        assert company["name"] == "Sharma Constructions"
        assert company["adminId"] == company_admin.id
        assert company["isVerified"] is False

        again = client.post("/api/companies", json={"name": "Second"}, headers=auth(company_admin))

        assert again.status_code == 409
        assert again.json()["message"] == "Company already exists for this user"

    def test_homeowner_cannot_create_company(self, client, homeowner, auth):
        response = client.post("/api/companies", json={"name": "Nope"}, headers=auth(homeowner))

        assert response.status_code == 403

    def test_my_company_is_404_before_creation(self, client, company_admin, auth):
        response = client.get("/api/companies/my/company", headers=auth(company_admin))

        assert response.status_code == 404
        assert response.json()["message"] == "Company not found"

    def test_update_my_company(self, client, company, company_admin, auth):
        response = client.put("/api/companies/my/company",
                              json={"website": "https://sharma.example", "employees": "50-100"},
                              headers=auth(company_admin))

        assert response.status_code == 200
        assert response.json()["website"] == "https://sharma.example"
        assert response.json()["name"] == "Sharma Constructions"

    def test_public_detail_includes_projects(self, client, company, publish):
        publish(title="Lake View Villa", budget=4_500_000)

        response = client.get(f"/api/companies/{company['_id']}")

        assert response.status_code == 200
        projects = response.json()["projects"]
        assert [p["title"] for p in projects] == ["Lake View Villa"]
        assert projects[0]["budgetRange"] == "₹45L"

    def test_public_list_filters_by_search(self, client, company, make_user, auth):
        other_admin = make_user("company_admin")
        client.post("/api/companies", json={"name": "Patel Interiors", "description": "Modular kitchens"},
                    headers=auth(other_admin))

        names = [c["name"] for c in client.get("/api/companies", params={"search": "kitchen"}).json()]

        assert names == ["Patel Interiors"]

    def test_only_owner_or_admin_deletes_company(self, client, company, homeowner, admin, auth):
        forbidden = client.delete(f"/api/companies/{company['_id']}", headers=auth(homeowner))
        allowed = client.delete(f"/api/companies/{company['_id']}", headers=auth(admin))

        assert forbidden.status_code == 403
        assert allowed.status_code == 200
        assert client.get(f"/api/companies/{company['_id']}").status_code == 404

    def test_admin_verifies_company_and_admin_is_notified(self, client, company, company_admin, admin, auth):
        response = client.put(f"/api/companies/admin/verify/{company['_id']}", json={"isVerified": True},
                              headers=auth(admin))

        assert response.status_code == 200
        assert response.json()["isVerified"] is True
        notifications = client.get("/api/notifications", headers=auth(company_admin)).json()
        assert notifications["unreadCount"] == 1
        assert notifications["notifications"][0]["type"] == "account_verified"


class TestProjectListing:

    def test_filters_and_pagination(self, client, publish):
        publish(title="Budget Flat", budget=3_000_000, buildingType="Apartment", location="Pune")
        publish(title="Mid Villa", budget=7_500_000, buildingType="Villa", location="Goa")
        publish(title="Grand Villa", budget=30_000_000, buildingType="villa", location="Goa")

        villas = client.get("/api/projects", params={"buildingType": "VILLA"}).json()
        band = client.get("/api/projects", params={"budget": "₹50L - ₹1Cr"}).json()
        text = client.get("/api/projects", params={"q": "pune"}).json()
        paged = client.get("/api/projects", params={"limit": 2, "page": 2, "sortBy": "budget-low"}).json()

        assert villas["total"] == 2
        assert [p["title"] for p in band["projects"]] == ["Mid Villa"]
        assert [p["title"] for p in text["projects"]] == ["Budget Flat"]
        assert paged["total"] == 3
        assert paged["pages"] == 2
        assert paged["page"] == 2
        assert [p["title"] for p in paged["projects"]] == ["Grand Villa"]

    def test_search_defaults_to_newest_first(self, client, publish):
        publish(title="First")
        publish(title="Second")

        titles = [p["title"] for p in client.get("/api/projects/search").json()["projects"]]

        assert titles == ["Second", "First"]

    def test_unknown_sort_is_a_bad_request(self, client):
        response = client.get("/api/projects", params={"sortBy": "random"})

        assert response.status_code == 400

    def test_detail_counts_views(self, client, publish):
        project = publish(title="Counted")

        client.get(f"/api/projects/{project['_id']}")
        response = client.get(f"/api/projects/{project['_id']}")

        assert response.json()["views"] == 2

    def test_top_professionals_lists_verified_companies(self, client, company, admin, auth):
        assert client.get("/api/projects/top-professionals").json() == []

        client.put(f"/api/companies/admin/verify/{company['_id']}", json={"isVerified": True}, headers=auth(admin))

        top = client.get("/api/projects/top-professionals").json()
        assert [c["_id"] for c in top] == [company["_id"]]


class TestCompanyProjects:

    def test_project_needs_a_company(self, client, company_admin, auth):
        response = client.post("/api/projects/company", json={"title": "Orphan"}, headers=auth(company_admin))

        assert response.status_code == 404

    def test_update_and_list_own_projects(self, client, publish, company_admin, auth):
        project = publish(title="Draft", images=["/uploads/a.jpg", "/uploads/b.jpg"])

        updated = client.put(f"/api/projects/company/{project['_id']}", json={"title": "Final", "area": 2400},
                             headers=auth(company_admin))
        mine = client.get("/api/projects/my/company", headers=auth(company_admin)).json()

        assert updated.json()["title"] == "Final"
        assert updated.json()["size"] == 2400
        assert [p["title"] for p in mine] == ["Final"]

    def test_remove_image(self, client, publish, company_admin, auth):
        project = publish(images=["/uploads/a.jpg", "/uploads/b.jpg"])

        response = client.delete(f"/api/projects/company/{project['_id']}/images",
                                 params={"url": "/uploads/a.jpg"}, headers=auth(company_admin))
        missing = client.delete(f"/api/projects/company/{project['_id']}/images",
                                params={"url": "/uploads/zzz.jpg"}, headers=auth(company_admin))

        assert response.json() == {"images": ["/uploads/b.jpg"]}
        assert missing.status_code == 404

    def test_other_company_cannot_edit(self, client, publish, make_user, auth):
        project = publish()
        rival = make_user("company_admin")
        client.post("/api/companies", json={"name": "Rival Builders"}, headers=auth(rival))

        response = client.put(f"/api/projects/company/{project['_id']}", json={"title": "Mine now"},
                              headers=auth(rival))

        assert response.status_code == 403


class TestReviews:

    def test_reviews_update_project_and_company_ratings(self, client, publish, company, make_user, auth):
        project = publish()
        first, second = make_user("homeowner"), make_user("homeowner")

        client.post(f"/api/reviews/project/{project['_id']}", json={"rating": 5, "comment": "Superb"},
                    headers=auth(first))
        response = client.post(f"/api/reviews/project/{project['_id']}", json={"rating": 2, "comment": "Late"},
                               headers=auth(second))

        assert response.status_code == 201
        detail = client.get(f"/api/projects/{project['_id']}").json()
        assert detail["rating"] == 3.5
        assert detail["reviewCount"] == 2
        assert client.get(f"/api/companies/{company['_id']}").json()["rating"] == 3.5
        reviews = client.get(f"/api/reviews/project/{project['_id']}").json()
        assert {r["user"]["_id"] for r in reviews} == {first.id, second.id}

    def test_one_review_per_user(self, client, publish, homeowner, auth):
        project = publish()
        body = {"rating": 4, "comment": "Good"}

        client.post(f"/api/reviews/project/{project['_id']}", json=body, headers=auth(homeowner))
        again = client.post(f"/api/reviews/project/{project['_id']}", json=body, headers=auth(homeowner))

        assert again.status_code == 409

    def test_company_cannot_review_itself(self, client, publish, company_admin, auth):
        project = publish()

        response = client.post(f"/api/reviews/project/{project['_id']}", json={"rating": 5, "comment": "Us!"},
                               headers=auth(company_admin))

        assert response.status_code == 403

    def test_rating_out_of_range_is_a_bad_request(self, client, publish, homeowner, auth):
        project = publish()

        response = client.post(f"/api/reviews/project/{project['_id']}", json={"rating": 6, "comment": "Wow"},
                               headers=auth(homeowner))

        assert response.status_code == 400
