"""Tests for the HTTP API."""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from applyo import companies as repo
from applyo.api.app import app
from applyo.api.routes import agents as agent_routes
from applyo.api.routes import email as email_routes
from applyo.api.routes import vectorize as vectorize_routes
from applyo.exceptions import AgentError, ConfigurationError, MailerError


@pytest.fixture
def client():
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def signed_in(client):
    response = client.post("/api/auth/sign-in/anonymous")
    assert response.status_code == 200
    return response.json()


def override(dependency, agent):
    app.dependency_overrides[dependency] = lambda: agent
    return agent


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestAgentRoutes:
    def test_orchestrator(self, client):
        agent = override(agent_routes.get_orchestrator, MagicMock())
        agent.run.return_value = {"company": "Stripe", "people": [], "favicon": None}

        response = client.post("/api/agents/orchestrator", json={"query": "Stripe"})

        assert response.status_code == 200
        assert response.json()["company"] == "Stripe"
        agent.run.assert_called_once_with({"query": "Stripe"})

    def test_agent_error_status_and_body(self, client):
        agent = override(agent_routes.get_people_finder, MagicMock())
        agent.run.side_effect = AgentError(
            "Failed to complete research", 500,
            payload={"company": "Stripe", "website": "", "people": [], "errorMessage": "boom"},
        )

        response = client.post("/api/agents/peoplefinder", json={"company": "Stripe"})

        assert response.status_code == 500
        assert response.json() == {
            "error": "Failed to complete research",
            "company": "Stripe",
            "website": "",
            "people": [],
            "errorMessage": "boom",
        }

    def test_bad_request(self, client):
        agent = override(agent_routes.get_orchestrator, MagicMock())
        agent.run.side_effect = AgentError("query is required", 400)

        response = client.post("/api/agents/orchestrator", json={})

        assert response.status_code == 400
        assert response.json() == {"error": "query is required"}

    def test_configuration_error(self, client):
        agent = override(agent_routes.get_email_finder, MagicMock())
        agent.run.side_effect = ConfigurationError("ZEROBOUNCE_API_KEY is missing")

        response = client.post("/api/agents/emailfinder", json={"firstName": "Patrick"})

        assert response.status_code == 503
        assert response.json() == {"error": "ZEROBOUNCE_API_KEY is missing"}

    def test_email_finder_payload(self, client):
        agent = override(agent_routes.get_email_finder, MagicMock())
        agent.run.return_value = {"emails": []}

        client.post("/api/agents/emailfinder", json={"firstName": "Patrick", "lastName": "Collison",
                                                     "domain": "stripe.com"})

        payload = agent.run.call_args.args[0]
        assert payload["firstName"] == "Patrick"
        assert payload["domain"] == "stripe.com"
        assert payload["role"] == ""

    def test_invalid_body(self, client):
        agent = override(agent_routes.get_orchestrator, MagicMock())

        response = client.post("/api/agents/orchestrator", json={"query": 5})

        assert response.status_code == 422
        assert response.json()["error"] == "Invalid request"
        agent.run.assert_not_called()

    def test_prospector(self, client):
        agent = override(agent_routes.get_prospector, MagicMock())
        agent.run.return_value = {"companies": []}
        response = client.post("/api/agents/prospector", json={"summary": "Engineer"})
        assert response.json() == {"companies": []}

    def test_finder_markdown(self, client):
        agent = override(agent_routes.get_finder, MagicMock())
        agent.run.return_value = "**Stripe**"

        response = client.post("/api/agents/finder", json={"query": "Stripe"})

        assert response.status_code == 200
        assert response.text == "**Stripe**"
        assert response.headers["content-type"].startswith("text/markdown")

    def test_finder_failure_is_text(self, client):
        agent = override(agent_routes.get_finder, MagicMock())
        agent.run.side_effect = AgentError("Error: Failed to complete research. boom", 500)

        response = client.post("/api/agents/finder", json={"query": "Stripe"})

        assert response.status_code == 500
        assert response.text == "Error: Failed to complete research. boom"

    def test_finder_missing_query_is_json(self, client):
        agent = override(agent_routes.get_finder, MagicMock())
        agent.run.side_effect = AgentError("Query is required", 400)

        response = client.post("/api/agents/finder", json={})

        assert response.status_code == 400
        assert response.json() == {"error": "Query is required"}


class TestAuthRoutes:
    def test_sign_in_sets_cookie(self, client, signed_in):
        assert signed_in["user"]["isAnonymous"] is True
        assert client.cookies.get("better-auth.session_token") == signed_in["token"]

    def test_get_session_with_bearer(self, client, signed_in):
        client.cookies.clear()
        response = client.get("/api/auth/get-session", headers=auth_header(signed_in["token"]))
        body = response.json()
        assert body["user"]["id"] == signed_in["user"]["id"]
        assert body["session"]["token"] == signed_in["token"]

    def test_get_session_with_cookie(self, client, signed_in):
        assert client.get("/api/auth/get-session").json()["user"]["id"] == signed_in["user"]["id"]

    def test_get_session_anonymous_visitor(self, client):
        response = client.get("/api/auth/get-session")
        assert response.status_code == 200
        assert response.json() is None

    def test_sign_out(self, client, signed_in):
        assert client.post("/api/auth/sign-out").json() == {"success": True}
        response = client.get("/api/auth/get-session", headers=auth_header(signed_in["token"]))
        assert response.json() is None


class TestTemplateRoutes:
    def test_requires_auth(self, client):
        response = client.get("/api/protected/templates")
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_crud_and_render(self, client, signed_in):
        created = client.post("/api/protected/templates", json={
            "name": "Intro",
            "subject": "Hi {{firstName}}",
            "body": "I love what {{company}} is building.",
        })
        assert created.status_code == 200
        template_id = created.json()["template"]["id"]

        listed = client.get("/api/protected/templates").json()
        assert [t["id"] for t in listed["templates"]] == [template_id]

        updated = client.put(f"/api/protected/templates/{template_id}", json={"name": "Warm intro"})
        assert updated.json()["template"]["name"] == "Warm intro"
        assert updated.json()["template"]["subject"] == "Hi {{firstName}}"

        rendered = client.post(f"/api/protected/templates/{template_id}/render",
                               json={"name": "Patrick Collison", "company": "Stripe"})
        assert rendered.json() == {"subject": "Hi Patrick", "body": "I love what Stripe is building."}

        assert client.delete(f"/api/protected/templates/{template_id}").json() == {"success": True}
        assert client.get("/api/protected/templates").json()["templates"] == []

    def test_other_users_templates_hidden(self, client, signed_in):
        created = client.post("/api/protected/templates", json={"name": "Mine", "subject": "s", "body": "b"})
        template_id = created.json()["template"]["id"]

        client.cookies.clear()
        other = client.post("/api/auth/sign-in/anonymous").json()

        assert client.get("/api/protected/templates").json()["templates"] == []
        response = client.delete(f"/api/protected/templates/{template_id}", headers=auth_header(other["token"]))
        assert response.status_code == 404
        assert response.json() == {"error": "Template not found"}

    def test_validation(self, client, signed_in):
        response = client.post("/api/protected/templates", json={"name": "", "subject": "s", "body": "b"})
        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "Invalid request"
        assert body["details"][0]["loc"] == ["body", "name"]


class TestEmailRoutes:
    @pytest.fixture
    def mailer(self):
        return override(email_routes.get_mailer, MagicMock())

    def test_send(self, client, signed_in, mailer):
        mailer.send.return_value = "<abc@applyo.test>"

        response = client.post("/api/protected/email/send", json={
            "to": "patrick@stripe.com", "subject": "Hi", "body": "Hello",
        })

        assert response.json() == {"success": True, "messageId": "<abc@applyo.test>"}
        mailer.send.assert_called_once_with("patrick@stripe.com", "Hi", "Hello", reply_to=None)

    def test_requires_auth(self, client, mailer):
        response = client.post("/api/protected/email/send", json={"to": "a@b.co", "subject": "s", "body": "b"})
        assert response.status_code == 401
        mailer.send.assert_not_called()

    def test_invalid_recipient(self, client, signed_in, mailer):
        mailer.send.side_effect = ValueError("Invalid recipient address: 'nope'")
        response = client.post("/api/protected/email/send", json={"to": "nope", "subject": "s", "body": "b"})
        assert response.status_code == 400

    def test_smtp_failure(self, client, signed_in, mailer):
        mailer.send.side_effect = MailerError("Failed to send email: refused")
        response = client.post("/api/protected/email/send", json={"to": "a@b.co", "subject": "s", "body": "b"})
        assert response.status_code == 502
        assert response.json() == {"error": "Failed to send email: refused"}


class TestVectorizeRoutes:
    @pytest.fixture
    def index(self):
        return override(vectorize_routes.get_vector_index, MagicMock())

    def test_populate(self, client, index):
        index.populate_companies.return_value = {"success": True, "processed": 2, "hasMore": False}

        response = client.post("/api/vectorize/populate/companies?offset=50&limit=25")

        assert response.status_code == 200
        index.populate_companies.assert_called_once_with(offset=50, limit=25)

    def test_populate_failure(self, client, index):
        index.populate_employees.return_value = {"success": False, "message": "No employees found in database"}
        response = client.post("/api/vectorize/populate/employees")
        assert response.status_code == 500
        assert response.json()["message"] == "No employees found in database"

    def test_search(self, client, index):
        index.search.return_value = {
            "success": True, "query": "fintech", "type": "companies",
            "results": {"companies": [{"score": 0.8, "company_name": "Stripe"}]},
        }

        response = client.get("/api/vectorize/search", params={"q": "fintech", "type": "companies", "limit": 3})

        assert response.status_code == 200
        assert response.json()["results"]["companies"][0]["company_name"] == "Stripe"
        index.search.assert_called_once_with("fintech", type="companies", limit=3)

    def test_search_bad_type(self, client, index):
        response = client.get("/api/vectorize/search", params={"q": "x", "type": "planets"})
        assert response.status_code == 422
        assert response.json()["error"] == "Invalid request"
        index.search.assert_not_called()

    def test_search_failure(self, client, index):
        index.search.return_value = {"success": False, "error": "Query is required"}
        response = client.get("/api/vectorize/search")
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Query is required"}

    def test_update_missing_company(self, client, index):
        index.update_company.return_value = {"success": False, "error": "Company not found"}
        assert client.post("/api/vectorize/companies/42").status_code == 404

    def test_stats(self, client, index):
        index.get_stats.return_value = {"companies": {"total_in_db": 1, "indexed": 0}}
        assert client.get("/api/vectorize/stats").json() == {"companies": {"total_in_db": 1, "indexed": 0}}


class TestCompanyLookup:
    def test_found(self, client, db):
        with db.session_scope() as session:
            company_id = repo.upsert_company(session, "Stripe", "https://stripe.com", {"industry": "Fintech"})
            repo.upsert_employee(session, company_id, "Patrick Collison", "CEO", "patrick@stripe.com")

        body = client.get("/api/companies/lookup", params={"q": "people at stripe.com"}).json()

        assert body["company"] == "Stripe"
        assert body["people"][0]["emails"] == ["patrick@stripe.com"]
        assert body["favicon"].endswith("domain=stripe.com&sz=128")

    def test_not_found(self, client):
        response = client.get("/api/companies/lookup", params={"q": "Globex"})
        assert response.status_code == 404
        assert response.json() == {"error": "Company not found"}
