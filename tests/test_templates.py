"""Tests for outreach templates and placeholder rendering."""

from datetime import datetime, timedelta

import pytest

from applyo import templates
from applyo.auth import sign_in_anonymous


@pytest.fixture
def user_id(session):
    user, _ = sign_in_anonymous(session)
    return user.id


class TestPlaceholderValues:
    def test_first_and_last(self):
        values = templates.placeholder_values({"firstName": "Patrick", "lastName": "Collison",
                                               "company": "Stripe", "role": "CEO"})
        assert values == {
            "firstName": "Patrick",
            "lastName": "Collison",
            "fullName": "Patrick Collison",
            "company": "Stripe",
            "role": "CEO",
        }

    def test_single_name_split(self):
        values = templates.placeholder_values({"name": "Mary Ann Smith"})
        assert values["firstName"] == "Mary"
        assert values["lastName"] == "Ann Smith"
        assert values["fullName"] == "Mary Ann Smith"

    def test_company_name_alias(self):
        assert templates.placeholder_values({"company_name": "Shopify"})["company"] == "Shopify"

    def test_company_default(self):
        assert templates.placeholder_values(None)["company"] == "your company"


class TestRender:
    def test_substitutes_known_placeholders(self):
        result = templates.render(
            "Hi {{firstName}}",
            "Hello {{ fullName }}, I admire {{company}}. {{signature}}",
            {"name": "Tobi Lutke", "company": "Shopify"},
        )
        assert result == {
            "subject": "Hi Tobi",
            "body": "Hello Tobi Lutke, I admire Shopify. {{signature}}",
        }

    def test_missing_values_render_empty(self):
        assert templates.render_text("Dear {{firstName}},", templates.placeholder_values({})) == "Dear ,"

    def test_empty_text(self):
        assert templates.render_text("", {}) == ""


class TestCrud:
    def test_create_and_get(self, session, user_id):
        created = templates.create_template(session, user_id, "Intro", "Hi {{firstName}}", "Body")

        fetched = templates.get_template(session, user_id, created.id)

        assert fetched is created
        data = templates.template_to_dict(fetched)
        assert data["name"] == "Intro"
        assert data["createdAt"] == created.created_at.isoformat()

    def test_list_newest_first(self, session, user_id):
        older = templates.create_template(session, user_id, "Older", "s", "b")
        newer = templates.create_template(session, user_id, "Newer", "s", "b")
        older.created_at = datetime.utcnow() - timedelta(days=1)
        session.flush()

        assert [t.name for t in templates.list_templates(session, user_id)] == ["Newer", "Older"]
        assert newer.name == "Newer"

    def test_scoped_to_owner(self, session, user_id):
        other, _ = sign_in_anonymous(session)
        template = templates.create_template(session, user_id, "Mine", "s", "b")

        assert templates.list_templates(session, other.id) == []
        assert templates.get_template(session, other.id, template.id) is None
        assert templates.update_template(session, other.id, template.id, {"name": "Stolen"}) is None
        assert templates.delete_template(session, other.id, template.id) is False

    def test_partial_update(self, session, user_id):
        template = templates.create_template(session, user_id, "Intro", "Subject", "Body")

        updated = templates.update_template(session, user_id, template.id, {"subject": "New", "body": None})

        assert updated.subject == "New"
        assert updated.body == "Body"
        assert updated.name == "Intro"

    def test_delete(self, session, user_id):
        template = templates.create_template(session, user_id, "Intro", "s", "b")
        assert templates.delete_template(session, user_id, template.id) is True
        assert templates.get_template(session, user_id, template.id) is None
