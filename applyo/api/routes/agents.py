"""Agent endpoints -- enrichment, people, emails, prospects and research."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from applyo.agents import EmailFinder, Finder, Orchestrator, PeopleFinder, Prospector
from applyo.api.schemas import (
    EmailFinderRequest,
    PeopleFinderRequest,
    ProspectorRequest,
    QueryRequest,
)
from applyo.exceptions import AgentError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/agents", tags=["agents"])


# Factories, overridable with app.dependency_overrides
def get_orchestrator() -> Orchestrator:
    return Orchestrator()


def get_people_finder() -> PeopleFinder:
    return PeopleFinder()


def get_email_finder() -> EmailFinder:
    return EmailFinder()


def get_prospector() -> Prospector:
    return Prospector()


def get_finder() -> Finder:
    return Finder()


@router.post("/orchestrator")
def orchestrator(body: QueryRequest, agent: Orchestrator = Depends(get_orchestrator)):
    """Enrich a company: metadata, leadership and verified emails."""
    return agent.run(body.model_dump())


@router.post("/peoplefinder")
def people_finder(body: PeopleFinderRequest, agent: PeopleFinder = Depends(get_people_finder)):
    """Find up to three leaders at a company."""
    return agent.run(body.model_dump())


@router.post("/emailfinder")
def email_finder(body: EmailFinderRequest, agent: EmailFinder = Depends(get_email_finder)):
    """Find verified emails for a person."""
    return agent.run(body.model_dump())


@router.post("/prospector")
def prospector(body: ProspectorRequest, agent: Prospector = Depends(get_prospector)):
    """Suggest companies matching a professional summary."""
    return agent.run(body.model_dump())


@router.post("/finder", response_class=PlainTextResponse)
def finder(body: QueryRequest, agent: Finder = Depends(get_finder)):
    """Semantic research answered in markdown."""
    try:
        text = agent.run(body.model_dump())
    except AgentError as e:
        if e.status_code == 400:
            raise
        return PlainTextResponse(e.message, status_code=e.status_code)
    return PlainTextResponse(text, media_type="text/markdown")
