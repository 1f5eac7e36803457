"""
Outreach Templates Module

User-owned email templates and placeholder rendering.

Placeholders: {{firstName}}, {{lastName}}, {{fullName}}, {{company}},
{{role}}. Unknown placeholders are left as written.
"""

import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from applyo.database import Template

logger = logging.getLogger(__name__)

PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")
DEFAULT_COMPANY = "your company"
EDITABLE_FIELDS = ('name', 'subject', 'body')


def placeholder_values(person: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """
    Build placeholder values for a person.

    Accepts firstName/lastName or a single name (split on the first space),
    plus company (or company_name) and role.
    """
    person = person or {}
    first = (person.get('firstName') or '').strip()
    last = (person.get('lastName') or '').strip()
    full = (person.get('name') or person.get('fullName') or '').strip()

    if full and not (first or last):
        first, _, last = full.partition(' ')
        last = last.strip()
    if not full:
        full = f"{first} {last}".strip()

    company = (person.get('company') or person.get('company_name') or '').strip()
    return {
        'firstName': first,
        'lastName': last,
        'fullName': full,
        'company': company or DEFAULT_COMPANY,
        'role': (person.get('role') or '').strip(),
    }


def render_text(text: str, values: Dict[str, str]) -> str:
    """Substitute known placeholders in text."""
    if not text:
        return text or ""

    def replace(match: re.Match) -> str:
        key = match.group(1)
        if key in values:
            return values[key]
        return match.group(0)

    return PLACEHOLDER.sub(replace, text)


def render(subject: str, body: str, person: Optional[Dict[str, Any]] = None) -> Dict[str, str]:
    """Render subject and body for a person."""
    values = placeholder_values(person)
    return {
        'subject': render_text(subject, values),
        'body': render_text(body, values),
    }


def template_to_dict(template: Template) -> Dict[str, Any]:
    return {
        'id': template.id,
        'name': template.name,
        'subject': template.subject,
        'body': template.body,
        'createdAt': template.created_at.isoformat() if template.created_at else None,
        'updatedAt': template.updated_at.isoformat() if template.updated_at else None,
    }


# ============ CRUD (scoped to the owning user) ============

def list_templates(session: Session, user_id: str) -> List[Template]:
    """A user's templates, newest first."""
    return (
        session.query(Template)
        .filter(Template.user_id == user_id)
        .order_by(Template.created_at.desc())
        .all()
    )


def get_template(session: Session, user_id: str, template_id: str) -> Optional[Template]:
    """A template owned by the user, or None."""
    return (
        session.query(Template)
        .filter(Template.id == template_id, Template.user_id == user_id)
        .first()
    )


def create_template(session: Session, user_id: str, name: str, subject: str, body: str) -> Template:
    now = datetime.utcnow()
    template = Template(
        user_id=user_id,
        name=name,
        subject=subject,
        body=body,
        created_at=now,
        updated_at=now,
    )
    session.add(template)
    session.flush()
    logger.info(f"Created template {template.id} for user {user_id}")
    return template


def update_template(
    session: Session,
    user_id: str,
    template_id: str,
    changes: Dict[str, Optional[str]],
) -> Optional[Template]:
    """
    Apply a partial update.

    Returns:
        Updated template, or None when it does not exist or is not owned
    """
    template = get_template(session, user_id, template_id)
    if template is None:
        return None

    for field in EDITABLE_FIELDS:
        value = changes.get(field)
        if value is not None:
            setattr(template, field, value)
    template.updated_at = datetime.utcnow()
    session.flush()
    return template


def delete_template(session: Session, user_id: str, template_id: str) -> bool:
    """Delete a template; False when it does not exist or is not owned."""
    template = get_template(session, user_id, template_id)
    if template is None:
        return False
    session.delete(template)
    session.flush()
    logger.info(f"Deleted template {template_id} for user {user_id}")
    return True
