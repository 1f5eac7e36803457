"""
Email Finder Agent

Discovers likely email addresses for a person, keeps only verified ones
and merges them into the company store.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from applyo.agents.base import BaseAgent
from applyo.companies import find_emails_by_employee_name, save_email_result
from applyo.exceptions import AgentError, LLMResponseError
from applyo.llm import parse_llm_json

logger = logging.getLogger(__name__)

MAX_EMAILS = 3


class EmailFinder(BaseAgent):
    """Finds and verifies email addresses for one executive."""

    name = "emailfinder"
    model_setting = "extraction_model"
    temperature = 0.0
    tool_names = ["searchWeb"]

    def _cached_emails(self, employee_name: str) -> Optional[Dict[str, Any]]:
        try:
            with self.db.session_scope() as session:
                return find_emails_by_employee_name(session, employee_name)
        except SQLAlchemyError as e:
            logger.error(f"Error checking emails in DB: {e}")
            return None

    def _build_prompt(self, first_name: str, last_name: str, company: str, domain: str) -> str:
        return f"""You are a professional email finder for executives.
Your goal: discover **likely real** email addresses for {first_name} {last_name} ({company}) using open-web intelligence.

1. Run 5-10 searches with searchWeb to collect clues (GitHub, press releases, Personal websites, LinkedIn, Crunchbase, RocketReach, etc.).
2. Extract only email addresses with the same domain ({domain}) or verified patterns.
3. Derive possible patterns if nothing direct shows up.

Common formats:
- {{first}}@{{domain}}
- {{first}}.{{last}}@{{domain}}
- {{f}}{{last}}@{{domain}}
- {{first}}{{last}}@{{domain}}
- role emails (ceo@, founders@, contact@)

4. Return ONLY valid JSON (no markdown, no explanations):

{{
  "emails": [
    "person@domain.com"
  ],
  "employee_title": "CEO"
}}

CRITICAL RULES:
- Return ONLY the JSON object above, nothing else - no markdown, no code blocks, no explanations
- Exclude emails which are omitted by marks such as 'o****@gmail.com'
- **MUST discover and fill in employee_title from your research:**
  - employee_title: Find the person's actual job title/role (e.g., "CEO", "Founder", "CTO", "VP of Engineering", not empty string)
  - Use **searchWeb** tool to find LinkedIn profiles, company pages, press releases, etc. to discover the title
- Prioritize results from credible domains
- Minimum 3, max 8 email results
- Use **searchWeb** tool multiple times if needed
- If no credible sources found, return 3 educated guesses based on common patterns
- Both fields are required: emails (array) and employee_title (string)

Don't stop after using the tools, make sure to return some emails no matter what
"""

    @staticmethod
    def _parse(text: str) -> Dict[str, Any]:
        """Parse the model answer, falling back to an empty result with the error."""
        try:
            result = parse_llm_json(text)
            if not isinstance(result.get('emails'), list):
                raise LLMResponseError("Invalid JSON structure: missing emails array", raw_text=text)
            return result
        except LLMResponseError as e:
            logger.error(f"Failed to parse JSON: {e}")
            logger.debug(f"Raw text response: {text}")
            return {"emails": [], "employee_title": "", "error": str(e), "rawText": text}

    def _save(self, employee_name: str, company_name: str, domain: str,
              title: str, emails: List[str]):
        try:
            with self.db.session_scope() as session:
                save_email_result(
                    session,
                    employee_name=employee_name or "Unknown",
                    company_name=company_name or "Unknown",
                    website=domain or None,
                    employee_title=title,
                    emails=emails,
                )
        except (SQLAlchemyError, ValueError) as e:
            logger.error(f"Error saving emails to DB: {e}", exc_info=True)

    def run(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Find verified emails for a person.

        Args:
            payload: firstName, lastName, company, domain, company_name,
                website, role

        Returns:
            {"emails", "company_name", "website", "employee_name",
             "employee_title", "verification_summary"}

        Raises:
            AgentError: 400 when no name is given
        """
        first_name = (payload.get('firstName') or '').strip()
        last_name = (payload.get('lastName') or '').strip()
        company = (payload.get('company') or '').strip()
        domain = (payload.get('domain') or payload.get('website') or '').strip()
        company_name = (payload.get('company_name') or company).strip()
        role = (payload.get('role') or '').strip()
        employee_name = f"{first_name} {last_name}".strip()

        if not employee_name:
            raise AgentError("firstName or lastName is required", status_code=400)

        if employee_name != "Unknown":
            cached = self._cached_emails(employee_name)
            if cached:
                logger.info(f"Found existing emails in DB for {employee_name}")
                return cached

        agent_result = self.run_tools(self._build_prompt(first_name, last_name, company or company_name, domain))
        email_result = self._parse(agent_result.text)

        candidates = [e for e in email_result['emails'] if isinstance(e, str)]
        verified = self.toolbox.verifier.verify_many(candidates) if candidates else []

        llm_title = email_result.get('employee_title')
        title = llm_title.strip() if isinstance(llm_title, str) and llm_title.strip() else role

        if verified:
            self._save(employee_name, company_name, domain, title, verified)

        limited = verified[:MAX_EMAILS]
        result = {
            "emails": limited,
            "company_name": company_name,
            "website": domain,
            "employee_name": employee_name,
            "employee_title": title,
            "verification_summary": f"{len(limited)} out of {len(candidates)} emails verified",
        }
        if "error" in email_result:
            result["error"] = email_result["error"]
            result["rawText"] = email_result["rawText"]
        return result
