"""Pydantic schemas for FastAPI request / response models."""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Agents
# ---------------------------------------------------------------------------

class QueryRequest(BaseModel):
    query: str = ""


class PeopleFinderRequest(BaseModel):
    company: str = ""
    website: str = ""
    notes: str = ""


class EmailFinderRequest(BaseModel):
    firstName: str = ""
    lastName: str = ""
    company: str = ""
    domain: str = ""
    company_name: str = ""
    website: str = ""
    role: str = ""


class ProspectorRequest(BaseModel):
    summary: str = ""
    preferences: str = ""
    location: str = ""


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

class TemplateCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    subject: str
    body: str


class TemplateUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    subject: Optional[str] = None
    body: Optional[str] = None


class TemplateOut(BaseModel):
    id: str
    name: str
    subject: str
    body: str
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class TemplateListResponse(BaseModel):
    success: bool = True
    templates: List[TemplateOut]


class TemplateResponse(BaseModel):
    success: bool = True
    template: TemplateOut


class RenderRequest(BaseModel):
    """Person the template is rendered for."""
    firstName: str = ""
    lastName: str = ""
    name: str = ""
    company: str = ""
    role: str = ""


class RenderResponse(BaseModel):
    subject: str
    body: str


# ---------------------------------------------------------------------------
# Email
# ---------------------------------------------------------------------------

class SendEmailRequest(BaseModel):
    to: str
    subject: str
    body: str
    replyTo: Optional[str] = None


class SendEmailResponse(BaseModel):
    success: bool = True
    messageId: str


# ---------------------------------------------------------------------------
# Vector search
# ---------------------------------------------------------------------------

SearchType = Literal['companies', 'employees', 'both']


class VectorSearchResponse(BaseModel):
    success: bool
    query: str
    type: SearchType
    results: Dict[str, List[Dict[str, Any]]]
