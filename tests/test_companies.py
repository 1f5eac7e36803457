"""Tests for company and employee repository operations."""

import pytest

from applyo import companies as repo
from applyo.database import CompanyProfile, Employee


@pytest.fixture
def stripe(session):
    company_id = repo.upsert_company(session, "Stripe", "https://stripe.com", {
        "description": "Payments infrastructure",
        "industry": "Fintech",
        "year_founded": 2010,
    })
    repo.upsert_employee(session, company_id, "Patrick Collison", "CEO", "patrick@stripe.com")
    repo.upsert_employee(session, company_id, "John Collison", "President", "john@stripe.com")
    session.commit()
    return company_id


class TestUpsertCompany:
    def test_insert(self, session):
        company_id = repo.upsert_company(session, "  Anthropic ", "https://anthropic.com")
        company = session.get(CompanyProfile, company_id)
        assert company.company_name == "Anthropic"
        assert company.website == "https://anthropic.com"

    def test_blank_name_rejected(self, session):
        with pytest.raises(ValueError, match="Company name is required"):
            repo.upsert_company(session, "   ")

    def test_matches_name_case_insensitively(self, session, stripe):
        company_id = repo.upsert_company(session, "STRIPE", None, {"headquarters": "San Francisco"})
        assert company_id == stripe
        assert session.get(CompanyProfile, stripe).headquarters == "San Francisco"

    def test_matches_website(self, session, stripe):
        company_id = repo.upsert_company(session, "Stripe Inc.", "https://stripe.com")
        assert company_id == stripe
        assert repo.count_companies(session) == 1

    def test_update_skips_null_and_blank_fields(self, session, stripe):
        repo.upsert_company(session, "Stripe", None, {"description": None, "industry": "  "})
        company = session.get(CompanyProfile, stripe)
        assert company.description == "Payments infrastructure"
        assert company.industry == "Fintech"

    def test_strings_trimmed(self, session):
        company_id = repo.upsert_company(session, "Acme", None, {"funding": "  Series A  "})
        assert session.get(CompanyProfile, company_id).funding == "Series A"

    def test_list_values_joined(self, session):
        company_id = repo.upsert_company(session, "Acme", None, {"tech_stack": ["React", " AWS ", None, ""]})
        assert session.get(CompanyProfile, company_id).tech_stack == "React, AWS"

    def test_empty_list_stored_as_null(self, session):
        company_id = repo.upsert_company(session, "Acme", None, {"tech_stack": []})
        assert session.get(CompanyProfile, company_id).tech_stack is None


class TestUpsertEmployee:
    def test_blank_name_rejected(self, session, stripe):
        with pytest.raises(ValueError, match="Employee name is required"):
            repo.upsert_employee(session, stripe, "")

    def test_updates_existing_and_merges_email(self, session, stripe):
        employee_id = repo.upsert_employee(session, stripe, "patrick collison", "Co-founder & CEO", "pc@stripe.com")
        employee = session.get(Employee, employee_id)

        assert employee.employee_title == "Co-founder & CEO"
        assert employee.email == "pc@stripe.com"
        assert employee.emails == ["pc@stripe.com", "patrick@stripe.com"]
        assert repo.count_employees(session) == 2

    def test_same_name_at_other_company_is_new(self, session, stripe):
        other = repo.upsert_company(session, "Other Co")
        repo.upsert_employee(session, other, "Patrick Collison")
        assert repo.count_employees(session) == 3


class TestFindExistingCompany:
    def test_by_domain(self, session, stripe):
        company, employees = repo.find_existing_company_and_employees(session, "find executives at www.stripe.com")
        assert company.id == stripe
        assert {e.employee_name for e in employees} == {"Patrick Collison", "John Collison"}

    def test_by_name_after_preposition(self, session, stripe):
        company, _ = repo.find_existing_company_and_employees(session, "engineers at Stripe")
        assert company.id == stripe

    def test_by_name_after_leading_verb(self, session, stripe):
        company, _ = repo.find_existing_company_and_employees(session, "find stripe")
        assert company.id == stripe

    def test_by_partial_name(self, session, stripe):
        company, _ = repo.find_existing_company_and_employees(session, "strip")
        assert company.id == stripe

    def test_short_candidate_ignored(self, session, stripe):
        assert repo.find_existing_company_and_employees(session, "find s") is None

    def test_unknown_company(self, session, stripe):
        assert repo.find_existing_company_and_employees(session, "people at Nonexistent Corp") is None

    def test_empty_query(self, session):
        assert repo.find_existing_company_and_employees(session, "  ") is None


class TestCachedLookups:
    def test_find_people_by_company(self, session, stripe):
        result = repo.find_people_by_company(session, "stripe")
        assert result["company"] == "Stripe"
        assert result["website"] == "https://stripe.com"
        assert result["people"] == [
            {"name": "Patrick Collison", "role": "CEO"},
            {"name": "John Collison", "role": "President"},
        ]

    def test_find_people_unknown_company(self, session, stripe):
        assert repo.find_people_by_company(session, "Globex") is None

    def test_find_emails_by_employee_name(self, session, stripe):
        result = repo.find_emails_by_employee_name(session, "PATRICK COLLISON")
        assert result == {
            "emails": ["patrick@stripe.com"],
            "company_name": "Stripe",
            "website": "https://stripe.com",
            "employee_name": "PATRICK COLLISON",
            "employee_title": "CEO",
            "verification_summary": "1 out of 1 emails verified",
        }

    def test_find_emails_unknown_person(self, session, stripe):
        assert repo.find_emails_by_employee_name(session, "Nobody Here") is None


class TestSaveEmailResult:
    def test_merges_into_existing_employee(self, session, stripe):
        employee_id = repo.save_email_result(
            session, "Patrick Collison", "Stripe", "stripe.com", "CEO",
            ["patrick@stripe.com", "pc@stripe.com"],
        )
        employee = session.get(Employee, employee_id)
        assert employee.emails == ["patrick@stripe.com", "pc@stripe.com"]

    def test_creates_company_and_employee(self, session):
        employee_id = repo.save_email_result(
            session, "Tobi Lutke", "Shopify", "shopify.com", "CEO", ["tobi@shopify.com"],
        )
        employee = session.get(Employee, employee_id)
        assert employee.company.company_name == "Shopify"
        assert employee.email == "tobi@shopify.com"
        assert employee.emails == ["tobi@shopify.com"]

    def test_unknown_company_placeholder(self, session):
        employee_id = repo.save_email_result(session, "Jane Roe", "", None, None, ["jane@acme.com"])
        assert session.get(Employee, employee_id).company.company_name == "Unknown"


class TestListingAndSerialization:
    def test_list_companies_batches(self, session):
        for name in ("A1", "B2", "C3"):
            repo.upsert_company(session, name)
        names = [c.company_name for c in repo.list_companies(session, offset=1, limit=1)]
        assert names == ["B2"]

    def test_employees_with_company(self, session, stripe):
        rows = repo.list_employees_with_company(session, 0, 10)
        assert repo.count_employees_with_company(session) == 2
        assert all(company.id == stripe for _, company in rows)

    def test_company_to_dict(self, session, stripe):
        data = repo.company_to_dict(repo.get_company(session, stripe))
        assert data["company"] == "Stripe"
        assert data["yearFounded"] == 2010
        assert data["industry"] == "Fintech"

    def test_employee_to_dict(self, session, stripe):
        employee = session.query(Employee).filter_by(employee_name="John Collison").one()
        assert repo.employee_to_dict(employee) == {
            "id": employee.id,
            "name": "John Collison",
            "role": "President",
            "emails": ["john@stripe.com"],
        }
