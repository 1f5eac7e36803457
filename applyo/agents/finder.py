"""
Finder Agent

Answers research questions from the vector index in markdown.
"""

import logging
from typing import Any, Dict

from applyo.agents.base import BaseAgent
from applyo.exceptions import AgentError, ConfigurationError

logger = logging.getLogger(__name__)

EMPTY_ANSWER = (
    "I apologize, but I wasn't able to generate a response. "
    "Please try again with a different query."
)


class Finder(BaseAgent):
    """Semantic research over stored companies and employees."""

    name = "finder"
    model_setting = "finder_model"
    tool_names = ["vectorizeSearch"]

    def _build_prompt(self, query: str) -> str:
        return f"""You are a smart research assistant that helps users find information about companies and employees. Users call to you with the intent to either find companies that align with their interests,
or to find emails at specific companies. The goal is for the user to find these emails to reach out to for internship opportunities.

**Phase 1: Analyze & Configure Search**
1. **Determine "type":**
   - "people at X", "emails for X", "employees" -> use "type='employees'"
   - "companies like X", "startups in Y", "industry search" -> use "type='companies'"
   - Specific company name (e.g., "Anthropic", "Artificial Societies") -> use "type='both'" (to get profile + emails)
   - Ambiguous -> use "type='both'"

2. **Determine "limit":**
   - **ALWAYS use "limit: 5" to "10"**, even for single company queries.
   - Vector search is fuzzy. The exact match might be result #3, so fetch a batch and filter later.

**Phase 2: Strict Filtering (Internal Thought Process)**
- **For Specific Entity Queries (e.g., "Artificial Societies"):**
  - Scan the results. Is there an exact or near-exact name match?
  - **IF YES:** Discard all other results. ONLY report on that one company. Do not show "similar" companies unless the user asked for comparisons.
  - **IF NO:** Report that the specific company wasn't found, and offer the similar matches found as alternatives.
- **For Broad Queries (e.g., "AI companies"):**
  - Keep all relevant results.

**Phase 3: Synthesize Response (CRITICAL - YOU MUST DO THIS)**
After using the vectorizeSearch tool, you MUST generate a final markdown response that synthesizes your findings. Do not stop after calling the tool - you must provide a complete answer.

- **Company Info:** Name, one-sentence description, location, tech stack.
- **Emails/People:** consistently check "employees" array and list names + emails.
- **Format:** Clean, concise, conversational markdown. No formatting clutter.
- **IMPORTANT:** After using any tools, you MUST write a complete markdown response summarizing your findings. Never stop without providing a final answer.

User query: {query}"""

    def run(self, payload: Dict[str, Any]) -> str:
        """
        Research a query and answer in markdown.

        Raises:
            AgentError: 400 without a query, 500 on an empty answer or failure
        """
        query = (payload.get('query') or '').strip()
        if not query:
            raise AgentError("Query is required", status_code=400)

        try:
            agent_result = self.run_tools(self._build_prompt(query))
        except ConfigurationError:
            raise
        except Exception as e:
            logger.error(f"Researcher agent error: {e}", exc_info=True)
            raise AgentError(f"Error: Failed to complete research. {e}", status_code=500) from e

        text = agent_result.text.strip()
        if not text:
            logger.error(f"Empty response from AI model after {agent_result.steps} step(s)")
            raise AgentError(EMPTY_ANSWER, status_code=500)

        return text
