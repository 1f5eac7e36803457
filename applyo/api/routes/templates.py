"""Protected template endpoints -- CRUD scoped to the signed-in user."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from applyo import templates as store
from applyo.api.deps import get_db
from applyo.api.schemas import (
    RenderRequest,
    RenderResponse,
    TemplateCreate,
    TemplateListResponse,
    TemplateResponse,
    TemplateUpdate,
)
from applyo.auth import get_current_user
from applyo.database import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/protected/templates", tags=["templates"])


@router.get("", response_model=TemplateListResponse)
def list_templates(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    templates = store.list_templates(db, user.id)
    return {"success": True, "templates": [store.template_to_dict(t) for t in templates]}


@router.post("", response_model=TemplateResponse)
def create_template(
    body: TemplateCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    template = store.create_template(db, user.id, body.name, body.subject, body.body)
    return {"success": True, "template": store.template_to_dict(template)}


@router.put("/{template_id}", response_model=TemplateResponse)
def update_template(
    template_id: str,
    body: TemplateUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    template = store.update_template(db, user.id, template_id, body.model_dump())
    if template is None:
        raise HTTPException(status_code=404, detail="Template not found")
    return {"success": True, "template": store.template_to_dict(template)}


@router.delete("/{template_id}")
def delete_template(
    template_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not store.delete_template(db, user.id, template_id):
        raise HTTPException(status_code=404, detail="Template not found")
    return {"success": True}


@router.post("/{template_id}/render", response_model=RenderResponse)
def render_template(
    template_id: str,
    person: RenderRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Prefill a template's subject and body for a person."""
    template = store.get_template(db, user.id, template_id)
    if template is None:
        raise HTTPException(status_code=404, detail="Template not found")
    return store.render(template.subject, template.body, person.model_dump())
