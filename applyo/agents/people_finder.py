"""
People Finder Agent

Finds up to three high-ranking people at a company, answering from the
company store when the company is already known.
"""

import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError, validator
from sqlalchemy.exc import SQLAlchemyError

from applyo.agents.base import BaseAgent
from applyo.companies import find_people_by_company
from applyo.exceptions import AgentError, ConfigurationError, LLMResponseError
from applyo.llm import parse_llm_json
from applyo.search import format_context

logger = logging.getLogger(__name__)


class PersonModel(BaseModel):
    name: str = Field(description="Full legal name (first and last name)")
    role: str = Field(description="Exact job title/role at the company")


class PeopleSchema(BaseModel):
    """Validated people-finder answer."""
    company: str
    website: str = ""
    people: List[PersonModel] = Field(default_factory=list, max_length=3)

    @validator('website', pre=True)
    def validate_website(cls, v):
        """Website must be an http(s) URL or empty."""
        v = str(v or "").strip()
        if v and not v.lower().startswith(('http://', 'https://')):
            raise ValueError("website must be a URL or empty string")
        return v


class PeopleFinder(BaseAgent):
    """Finds founders, CEOs and C-suite members for a company."""

    name = "peoplefinder"
    model_setting = "extraction_model"
    tool_names = ["searchWeb"]

    def _cached_people(self, company: str) -> Optional[Dict[str, Any]]:
        try:
            with self.db.session_scope() as session:
                return find_people_by_company(session, company)
        except SQLAlchemyError as e:
            logger.error(f"Error checking people in DB: {e}")
            return None

    def _build_prompt(self, company: str, notes: str, snippets: str) -> str:
        """Build the extraction prompt around the initial search results."""
        extra = f"Additional context: {notes}" if notes else ""
        return f"""You are an expert data extraction assistant. Your task is to extract exactly 3 high-ranking individuals from the following search results.
### Instructions
1. **Priority:** Find in this order: founders, CEOs, C-suite, VPs.
2. **Quantity:** Return a minimum of 3 people.
3. **Focus:** Find current, active leadership.
4. **Use searchWeb tool if needed:** If the search results below don't contain enough information to find 3 high-ranking individuals, use the searchWeb tool to search for more specific information (e.g., "{company} leadership team", "{company} executives", "{company} founders").
5. **Failure:** If you cannot find relevant people after using searchWeb if needed, the "people" array must be empty (e.g., "people": []).

{extra}

### Initial Search Results:
\"\"\"
{snippets}
\"\"\"

IMPORTANT: You must return ONLY valid JSON that matches this exact schema:
{{
  "company": "string",
  "website": "string (URL or empty string)",
  "people": [
    {{
      "name": "string",
      "role": "string"
    }}
  ]
}}

Return ONLY the JSON object, no markdown, no code blocks, no explanations."""

    def run(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Find leadership for a company.

        Args:
            payload: {"company": "...", "website": "...", "notes": "..."}

        Returns:
            {"company", "website", "people": [{"name", "role"}]}

        Raises:
            AgentError: 400 without a company, 500 when research fails
        """
        company = (payload.get('company') or '').strip()
        website = (payload.get('website') or '').strip()
        notes = (payload.get('notes') or '').strip()

        if not company:
            raise AgentError("Company name is required", status_code=400)

        cached = self._cached_people(company)
        if cached:
            logger.info(f"Found {len(cached['people'])} people for {company} in DB")
            return cached

        try:
            search_query = f'"{company}" founder ceo "c-suite" leadership team site:{website or "*"}'
            hits = self.toolbox.search_client.search(search_query)
            snippets = format_context(hits, style="snippet")

            if not snippets:
                return {
                    "company": company,
                    "website": website,
                    "people": [],
                    "error": "No search results found",
                }

            agent_result = self.run_tools(self._build_prompt(company, notes, snippets))

            try:
                extracted = PeopleSchema(**parse_llm_json(agent_result.text))
            except (LLMResponseError, ValidationError, TypeError) as e:
                logger.error(f"Failed to parse or validate JSON: {e}")
                logger.debug(f"Raw text response: {agent_result.text}")
                raise ValueError(f"Failed to extract structured data: {e}") from e

            return {
                "company": extracted.company,
                "website": extracted.website or website,
                "people": [person.model_dump() for person in extracted.people],
            }

        except ConfigurationError:
            raise
        except Exception as e:
            logger.error(f"People finder research failed for {company}: {e}", exc_info=True)
            raise AgentError(
                "Failed to complete research",
                status_code=500,
                payload={
                    "company": company,
                    "website": website,
                    "people": [],
                    "errorMessage": str(e),
                },
            ) from e
