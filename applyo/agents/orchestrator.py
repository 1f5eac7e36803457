"""
Orchestrator Agent

Top-level lead enrichment: company metadata, leadership and verified
emails in one request, persisted to the company store.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from applyo.agents.base import BaseAgent
from applyo.companies import upsert_company, upsert_employee
from applyo.exceptions import AgentError, LLMResponseError
from applyo.llm import parse_llm_json
from applyo.utils import favicon_url, parse_int

logger = logging.getLogger(__name__)

# (response key, snake_case alias, column)
COMPANY_FIELDS = (
    ('description', 'description', 'description'),
    ('techStack', 'tech_stack', 'tech_stack'),
    ('industry', 'industry', 'industry'),
    ('headquarters', 'headquarters', 'headquarters'),
    ('revenue', 'revenue', 'revenue'),
    ('funding', 'funding', 'funding'),
)
COMPANY_INT_FIELDS = (
    ('yearFounded', 'year_founded', 'year_founded'),
    ('employeeCountMin', 'employee_count_min', 'employee_count_min'),
    ('employeeCountMax', 'employee_count_max', 'employee_count_max'),
)


def _pick(result: Dict[str, Any], key: str, alias: str) -> Any:
    return result.get(key) or result.get(alias) or None


def company_data_from_result(result: Dict[str, Any]) -> Dict[str, Any]:
    """Map an enrichment result (camelCase or snake_case) to company columns."""
    data = {}
    for key, alias, column in COMPANY_FIELDS:
        data[column] = _pick(result, key, alias)
    for key, alias, column in COMPANY_INT_FIELDS:
        data[column] = parse_int(_pick(result, key, alias))
    return data


def people_with_emails(people: Any) -> list:
    """Keep only people that have at least one email."""
    if not isinstance(people, list):
        return []
    return [
        person for person in people
        if isinstance(person, dict)
        and isinstance(person.get('emails'), list)
        and len(person['emails']) > 0
    ]


class Orchestrator(BaseAgent):
    """Runs searchWeb, peopleFinder and emailFinder to enrich a company."""

    name = "orchestrator"
    model_setting = "orchestrator_model"
    steps_setting = "agent_max_steps"
    tool_names = ["peopleFinder", "emailFinder", "searchWeb"]

    def _build_prompt(self, query: str) -> str:
        """Build the enrichment prompt."""
        return f"""You are an external lead enrichment agent.

# Tools Available:
1. searchWeb: Finds company metadata (Revenue, HQ, Domain).
2. peopleFinder: Finds specific names/roles of leaders.
3. emailFinder: Finds emails given Name + Domain.

# Process:
1. Analyze Request: Identify Company Name.
2. Company Data: Call 'searchWeb' to find domain, revenue, HQ, etc.
3. People Data: Call 'peopleFinder' with the company name.
4. Email Data: Call 'emailFinder' for the people returned in step 3.
5. Final Output: Return the comprehensive JSON.

# Output Schema:
{{
  "company": "Company Name",
  "website": "https://company.com",
  "description": "Brief description from web",
  "techStack": "e.g. React, AWS (if found)",
  "industry": "Industry name",
  "yearFounded": 2020,
  "headquarters": "City, State, Country",
  "revenue": "e.g. $10M ARR (if found)",
  "funding": "e.g. Series A (if found)",
  "employeeCountMin": 10,
  "employeeCountMax": 50,
  "people": [
    {{
      "name": "Full Name",
      "role": "Job Title",
      "emails": ["email1@domain.com"]
    }}
  ]
}}

# Rules:
- Use 'searchWeb' aggressively to fill metadata fields (Revenue, Funding, HQ).
- If exact numbers (revenue/funding) are not public, leave those specific fields null.
- Only include people with at least one verified email.
- Return raw JSON only.

User query: {query}"""

    def _save(self, result: Dict[str, Any]) -> Optional[int]:
        """Persist the company and its people; errors are logged, not raised."""
        company = result.get('company')
        company_name = company.strip() if isinstance(company, str) else ''
        if not company_name:
            return None

        website = result.get('website') or None
        logger.info(f"[Orchestrator] Saving company {company_name} ({website})")

        try:
            data = company_data_from_result(result)
            with self.db.session_scope() as session:
                company_id = upsert_company(session, company_name, website, data)
                for person in result['people']:
                    name = person.get('name')
                    if not name:
                        continue
                    upsert_employee(session, company_id, name, person.get('role') or None, person['emails'][0])
            return company_id
        except (SQLAlchemyError, ValueError, TypeError, OverflowError) as e:
            logger.error(f"Error saving to database: {e}", exc_info=True)
            return None

    def run(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Enrich the company named in a free-text query.

        Args:
            payload: {"query": "..."}

        Returns:
            Enrichment result with favicon, or {"message": "no emails found"}

        Raises:
            AgentError: 400 without a query, 500 when the answer is not JSON
        """
        query = (payload.get('query') or '').strip()
        if not query:
            raise AgentError("query is required", status_code=400)

        agent_result = self.run_tools(self._build_prompt(query))

        try:
            result = parse_llm_json(agent_result.text)
        except LLMResponseError as e:
            logger.error(f"[Orchestrator] {e}; raw text: {e.raw_text[:500]}")
            raise AgentError("parsing error", status_code=500) from e

        result['people'] = people_with_emails(result.get('people'))
        if not result['people']:
            return {"message": "no emails found"}

        self._save(result)

        return {**result, "favicon": favicon_url(result.get('website'))}
