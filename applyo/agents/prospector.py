"""
Prospector Agent

Suggests companies that match a candidate's background and preferences.
"""

import logging
from typing import Any, Dict

from applyo.agents.base import BaseAgent
from applyo.exceptions import LLMResponseError
from applyo.llm import parse_llm_json

logger = logging.getLogger(__name__)


class Prospector(BaseAgent):
    """Finds ten real companies matching a professional summary."""

    name = "prospector"
    model_setting = "orchestrator_model"
    tool_names = ["searchWeb"]

    def _build_prompt(self, summary: str, preferences: str, location: str) -> str:
        location_block = f"<location>{location}</location>" if location else ""
        return f"""You are given a short professional summary (100-200 words) describing the user's background, interests, and skills.

Your task:

1. Understand the candidate.
  - Infer their core skills, tech stack, likely roles, preferred environments, and target industries.
  - Use reasonable inference if something is not explicitly stated.
  - If a location is provided, factor it into industries/companies.

2. Use the searchWeb tool (up to 5 times) to find real companies that strongly match the candidate's inferred profile AND their stated preferences.
  - Prefer startups and growth-stage companies.
  - You may use additional tool calls to find each company's correct official domain.
  - Prioritize the user's stated preferences above everything else.

3. Return exactly 10 companies in JSON format only, with this schema:

{{
  "companies": [
    {{
      "company": "Company Name",
      "summary": "One-sentence factual summary in plain language.",
      "reason": "One brief sentence explaining why this company matches the candidate.",
      "company_website": "official domain only"
    }}
  ]
}}

Rules:
- EXACTLY 10 companies.
- No markdown. No commentary. No code fences. Output only the JSON object.
- Keep sentences short, clear, and factual.
- No extra keys or formatting.
- Do not return an empty result; always summarize and use tool data before responding.

Inputs:
<user_summary>{summary}</user_summary>
<user_preferences>{preferences}</user_preferences>
{location_block}"""

    def run(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Args:
            payload: {"summary", "preferences", "location"}

        Returns:
            {"companies": [{company, summary, reason, company_website}]}
        """
        summary = (payload.get('summary') or '').strip()
        preferences = (payload.get('preferences') or '').strip()
        location = (payload.get('location') or '').strip()

        agent_result = self.run_tools(self._build_prompt(summary, preferences, location))

        try:
            result = parse_llm_json(agent_result.text)
        except LLMResponseError as e:
            logger.error(f"Failed to parse JSON: {e}")
            logger.debug(f"Raw text response: {agent_result.text}")
            return {
                "companies": [],
                "error": "Failed to parse response",
                "rawText": agent_result.text,
                "parseError": str(e),
            }

        if not isinstance(result.get('companies'), list):
            result['companies'] = []
        logger.info(f"Prospector returned {len(result['companies'])} companies")
        return result
