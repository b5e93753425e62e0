"""Tests for the composable listing filters."""

from types import SimpleNamespace

from models import Project, User
from repositories.listing_specifications import (
    ProjectBuildingTypeSpec,
    project_filter,
    user_filter,
)
from repositories.specifications import MatchAll, RangeSpec, TextSearchSpec


def project(**fields):
    defaults = {"title": "", "description": None, "location": None, "budget": None, "building_type": None}
    return SimpleNamespace(**{**defaults, **fields})


class TestInMemoryEvaluation:

    def test_text_search_is_case_insensitive_across_fields(self):
        spec = TextSearchSpec(Project, ("title", "location"), "  PUNE ")

        assert spec.is_satisfied_by(project(title="Villa", location="Pune West"))
        assert not spec.is_satisfied_by(project(title="Villa", location=None))

    def test_range_excludes_missing_values(self):
        spec = RangeSpec(Project, "budget", 100, 200)

        assert spec.is_satisfied_by(project(budget=100))
        assert spec.is_satisfied_by(project(budget=200))
        assert not spec.is_satisfied_by(project(budget=201))
        assert not spec.is_satisfied_by(project(budget=None))

    def test_composition(self):
        villa = ProjectBuildingTypeSpec("Villa")
        cheap = RangeSpec(Project, "budget", None, 100)
        candidate = project(building_type="villa", budget=500)

        assert villa.is_satisfied_by(candidate)
        assert not (villa & cheap).is_satisfied_by(candidate)
        assert (villa | cheap).is_satisfied_by(candidate)
        assert (~cheap).is_satisfied_by(candidate)

    def test_match_all_is_neutral(self):
        villa = ProjectBuildingTypeSpec("villa")

        assert (MatchAll() & villa) is villa
        assert (villa & MatchAll()) is villa

    def test_empty_filters_match_everything(self):
        assert isinstance(project_filter(), MatchAll)
        assert isinstance(user_filter(search="   "), MatchAll)


class TestSqlFilters:

    def test_project_filter_runs_against_the_database(self, db_session, company_admin):
        from models import Company, Project as ProjectRow

        company = Company(admin_id=company_admin.id, name="Filter Co")
        db_session.add(company)
        db_session.flush()
        db_session.add_all([
            ProjectRow(company_id=company.id, title="Sea villa", building_type="Villa", budget=8_000_000),
            ProjectRow(company_id=company.id, title="City flat", building_type="Apartment", budget=3_000_000),
            ProjectRow(company_id=company.id, title="Unpriced villa", building_type="villa"),
        ])
        db_session.commit()

        spec = project_filter(query="villa", min_budget=5_000_000)
        titles = [p.title for p in db_session.query(ProjectRow).filter(spec.to_sql_filter())]

        assert titles == ["Sea villa"]

    def test_user_filter(self, db_session, homeowner, make_user):
        make_user("homeowner", name="Verified Owner", is_verified=True)

        spec = user_filter(role="homeowner", verified=True)
        names = [u.name for u in db_session.query(User).filter(spec.to_sql_filter())]

        assert names == ["Verified Owner"]
