"""Tests for homeowner requirements and provider quotes."""

import json

import pytest

from exceptions import ValidationError
from services.quote_service import validate_milestones
from services.requirement_service import RequirementService, parse_budget

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


@pytest.fixture
def post_requirement(client, homeowner, auth):
    """Post a requirement as the homeowner fixture; returns the response."""

    def _post(files=None, **fields):
        data = {
            "serviceType": "interior-design",
            "title": "3BHK interiors",
            "description": "Full interiors for a new flat",
            "location": "Pune",
            "budget": "1500000",
            **fields,
        }
        return client.post("/api/requirements", data=data, files=files, headers=auth(homeowner))

    return _post


@pytest.fixture
def requirement(post_requirement):
    response = post_requirement()
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def submit_quote(client, auth):
    def _submit(provider, requirement_id, **fields):
        payload = {
            "requirement": requirement_id,
            "designProposal": "Modern minimal layout",
            "estimatedBudget": 1_200_000,
            **fields,
        }
        return client.post("/api/quotes", json=payload, headers=auth(provider))

    return _submit


class TestBudgetParsing:

    @pytest.mark.parametrize("raw,expected", [
        ("1500000", 1_500_000),
        (2500000, 2_500_000),
        ("₹50L - ₹1Cr", 10_000_000),
        ("Above ₹5Cr", 50_000_000),
    ])
    def test_amounts_and_band_labels(self, raw, expected):
        assert parse_budget(raw) == expected

    @pytest.mark.parametrize("raw", ["", None, "lots", "-5", "inf", "-inf", "nan", "1e400", "1e30"])
    def test_invalid_budgets(self, raw):
        with pytest.raises(ValidationError):
            parse_budget(raw)


class TestMilestones:

    def test_up_to_one_hundred_percent_is_fine(self):
        validate_milestones([{"percentage": 40}, {"percentage": 60}])

    def test_over_one_hundred_percent_is_rejected(self):
        with pytest.raises(ValidationError, match="110%"):
            validate_milestones([{"percentage": 60}, {"percentage": 50}])


class TestCreateRequirement:

    def test_multipart_create(self, post_requirement, homeowner, upload_dir):
        response = post_requirement(
            timeline=json.dumps({"startDate": "2026-01-10", "endDate": "2026-06-30"}),
            features=json.dumps(["modular kitchen", "false ceiling"]),
            priority="high",
            files=[("attachments", ("plan.png", PNG, "image/png"))],
        )

        assert response.status_code == 201, response.text
        body = response.json()
        assert body["homeownerId"] == homeowner.id
        assert body["status"] == "open"
        assert body["budget"] == 1_500_000
        assert body["budgetRange"] == "₹15L"
        assert body["timeline"] == {"startDate": "2026-01-10", "endDate": "2026-06-30"}
        assert body["features"] == ["modular kitchen", "false ceiling"]
        assert len(body["attachments"]) == 1
        assert (upload_dir / body["attachments"][0].rsplit("/", 1)[-1]).exists()

    def test_budget_band_label_is_accepted(self, post_requirement):
        response = post_requirement(budget="₹1Cr - ₹2Cr")

        assert response.json()["budget"] == 20_000_000

    def test_unknown_service_type(self, post_requirement):
        response = post_requirement(serviceType="plumbing")

        assert response.status_code == 400
        assert response.json()["message"] == "Unknown service type: plumbing"

    def test_bad_timeline_json(self, post_requirement):
        response = post_requirement(timeline="{not json")

        assert response.status_code == 400
        assert response.json()["message"] == "timeline must be valid JSON"

    def test_end_before_start(self, post_requirement):
        response = post_requirement(timeline=json.dumps({"startDate": "2026-06-30", "endDate": "2026-01-10"}))

        assert response.status_code == 400

    def test_rejected_requirement_leaves_no_attachments(self, post_requirement, upload_dir):
        response = post_requirement(budget="lots", files=[("attachments", ("plan.png", PNG, "image/png"))])

        assert response.status_code == 400
        assert list(upload_dir.iterdir()) == []

    def test_overflowing_budget_is_a_bad_request_and_leaves_no_attachments(self, post_requirement, upload_dir):
        response = post_requirement(budget="1e400", files=[("attachments", ("plan.png", PNG, "image/png"))])

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid budget: 1e400"
        assert list(upload_dir.iterdir()) == []

    def test_unexpected_failure_still_removes_attachments(self, post_requirement, upload_dir, monkeypatch):
        def explode(*args, **kwargs):
            raise RuntimeError("disk went away")

        monkeypatch.setattr(RequirementService, "create", explode)

        response = post_requirement(files=[("attachments", ("plan.png", PNG, "image/png"))])

        assert response.status_code == 500
        assert list(upload_dir.iterdir()) == []

    def test_only_homeowners_post(self, client, company_admin, auth):
        data = {"serviceType": "construction", "title": "x", "description": "y", "location": "Goa", "budget": "1"}
        response = client.post("/api/requirements", data=data, headers=auth(company_admin))

        assert response.status_code == 403


class TestBrowseRequirements:

    def test_providers_see_open_requirements_without_contact_details(
            self, client, requirement, professional, auth):
        response = client.get("/api/requirements/open", params={"serviceType": "interior-design"},
                              headers=auth(professional))

        assert response.status_code == 200
        listed = response.json()
        assert [r["_id"] for r in listed] == [requirement["_id"]]
        assert listed[0]["homeowner"] == {"name": "Asha Homeowner", "location": None}

    def test_open_list_filters_by_budget(self, client, requirement, professional, auth):
        response = client.get("/api/requirements/open", params={"minBudget": 2_000_000},
                              headers=auth(professional))

        assert response.json() == []

    def test_homeowner_cannot_browse_open_requirements(self, client, requirement, homeowner, auth):
        assert client.get("/api/requirements/open", headers=auth(homeowner)).status_code == 403

    def test_owner_detail_and_list(self, client, requirement, homeowner, auth):
        detail = client.get(f"/api/requirements/{requirement['_id']}", headers=auth(homeowner)).json()
        mine = client.get("/api/requirements/my", headers=auth(homeowner)).json()

        assert detail["homeowner"]["_id"] == homeowner.id
        assert [r["_id"] for r in mine] == [requirement["_id"]]

    def test_other_homeowner_cannot_read_detail(self, client, requirement, make_user, auth):
        stranger = make_user("homeowner")

        response = client.get(f"/api/requirements/{requirement['_id']}", headers=auth(stranger))

        assert response.status_code == 403

    def test_public_detail_hides_closed_requirements(self, client, requirement, homeowner, professional, auth):
        public = client.get(f"/api/requirements/{requirement['_id']}/public", headers=auth(professional))
        client.put(f"/api/requirements/{requirement['_id']}/cancel", headers=auth(homeowner))
        closed = client.get(f"/api/requirements/{requirement['_id']}/public", headers=auth(professional))

        assert public.status_code == 200
        assert closed.status_code == 404


class TestQuotes:

    def test_submit_notifies_homeowner(self, client, requirement, submit_quote, professional, homeowner, auth):
        response = submit_quote(professional, requirement["_id"], timeline={
            "startDate": "2026-02-01",
            "milestones": [{"name": "Design", "percentage": 30}, {"name": "Execution", "percentage": 70}],
        })

        assert response.status_code == 201, response.text
        quote = response.json()
        assert quote["status"] == "submitted"
        assert quote["providerId"] == professional.id
        assert [m["name"] for m in quote["timeline"]["milestones"]] == ["Design", "Execution"]
        notifications = client.get("/api/notifications", headers=auth(homeowner)).json()
        assert notifications["notifications"][0]["type"] == "quote_received"

    def test_company_quote_carries_company(self, requirement, submit_quote, company, company_admin):
        quote = submit_quote(company_admin, requirement["_id"]).json()

        assert quote["companyId"] == company["_id"]
        assert quote["company"]["name"] == "Sharma Constructions"

    def test_one_quote_per_provider(self, requirement, submit_quote, professional):
        submit_quote(professional, requirement["_id"])

        again = submit_quote(professional, requirement["_id"])

        assert again.status_code == 409

    def test_single_quote_requirement(self, post_requirement, submit_quote, professional, make_user):
        single = post_requirement(requestMultipleQuotes="false").json()
        submit_quote(professional, single["_id"])

        second = submit_quote(make_user("professional", professional_type="contractor"), single["_id"])

        assert second.status_code == 409
        assert second.json()["message"] == "This requirement accepts a single quote and already has one"

    def test_milestones_over_one_hundred_percent(self, requirement, submit_quote, professional):
        response = submit_quote(professional, requirement["_id"], timeline={
            "milestones": [{"name": "A", "percentage": 80}, {"name": "B", "percentage": 30}],
        })

        assert response.status_code == 400

    def test_non_positive_budget(self, requirement, submit_quote, professional):
        response = submit_quote(professional, requirement["_id"], estimatedBudget=0)

        assert response.status_code == 400

    def test_withdraw_only_own_submitted_quote(self, client, requirement, submit_quote, professional,
                                               make_user, auth):
        quote = submit_quote(professional, requirement["_id"]).json()
        other = make_user("professional", professional_type="contractor")

        forbidden = client.put(f"/api/quotes/{quote['_id']}/withdraw", headers=auth(other))
        withdrawn = client.put(f"/api/quotes/{quote['_id']}/withdraw", headers=auth(professional))
        again = client.put(f"/api/quotes/{quote['_id']}/withdraw", headers=auth(professional))

        assert forbidden.status_code == 403
        assert withdrawn.json()["status"] == "withdrawn"
        assert again.status_code == 409
        assert client.get("/api/quotes/my", headers=auth(professional)).json()[0]["status"] == "withdrawn"


class TestSelectQuote:

    def test_select_accepts_one_and_rejects_the_rest(self, client, requirement, submit_quote, professional,
                                                     make_user, homeowner, auth):
        chosen = submit_quote(professional, requirement["_id"], estimatedBudget=1_000_000).json()
        rival = make_user("professional", professional_type="contractor")
        other = submit_quote(rival, requirement["_id"], estimatedBudget=900_000).json()

        received = client.get(f"/api/requirements/{requirement['_id']}/quotes", headers=auth(homeowner)).json()
        assert [q["_id"] for q in received] == [other["_id"], chosen["_id"]]

        response = client.put(f"/api/requirements/{requirement['_id']}/select-quote",
                              json={"quoteId": chosen["_id"]}, headers=auth(homeowner))

        assert response.status_code == 200
        assert response.json()["status"] == "in_progress"
        assert response.json()["selectedQuoteId"] == chosen["_id"]
        statuses = {q["_id"]: q["status"] for q in
                    client.get(f"/api/requirements/{requirement['_id']}/quotes", headers=auth(homeowner)).json()}
        assert statuses == {chosen["_id"]: "accepted", other["_id"]: "rejected"}
        winner_note = client.get("/api/notifications", headers=auth(professional)).json()["notifications"][0]
        assert winner_note["type"] == "quote_accepted"

    def test_closed_requirement_takes_no_quotes_or_selection(self, client, requirement, submit_quote,
                                                            professional, homeowner, auth):
        quote = submit_quote(professional, requirement["_id"]).json()
        client.put(f"/api/requirements/{requirement['_id']}/cancel", headers=auth(homeowner))

        late = submit_quote(professional, requirement["_id"])
        select = client.put(f"/api/requirements/{requirement['_id']}/select-quote",
                            json={"quoteId": quote["_id"]}, headers=auth(homeowner))

        assert late.status_code == 409
        assert select.status_code == 409

    def test_cancel_rejects_pending_quotes(self, client, requirement, submit_quote, professional, homeowner, auth):
        submit_quote(professional, requirement["_id"])

        response = client.put(f"/api/requirements/{requirement['_id']}/cancel", headers=auth(homeowner))

        assert response.json()["status"] == "cancelled"
        assert client.get("/api/quotes/my", headers=auth(professional)).json()[0]["status"] == "rejected"

    def test_quote_from_another_requirement(self, client, requirement, post_requirement, submit_quote,
                                            professional, homeowner, auth):
        elsewhere = post_requirement(title="Garden").json()
        quote = submit_quote(professional, elsewhere["_id"]).json()

        response = client.put(f"/api/requirements/{requirement['_id']}/select-quote",
                              json={"quoteId": quote["_id"]}, headers=auth(homeowner))

        assert response.status_code == 404
