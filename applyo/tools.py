"""
Agent Tools Module

Functions the agents can call while reasoning:
- searchWeb: fast web search
- peopleFinder: leadership lookup for a company
- emailFinder: candidate emails for a person, verified
- vectorizeSearch: semantic search over stored companies and employees
"""

import logging
from typing import Any, Dict, List, Literal, Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.tools import StructuredTool
from pydantic import BaseModel, Field

from applyo.config import settings
from applyo.llm import extract_structured, get_chat_model
from applyo.search import WebSearchClient, format_context
from applyo.utils import dedupe
from applyo.vector_index import VectorIndex
from applyo.verification import EmailVerifier

logger = logging.getLogger(__name__)


# ============ INPUT SCHEMAS ============

class PeopleFinderInput(BaseModel):
    company: str = Field(description="Company name")
    website: Optional[str] = Field(default=None, description="Company website domain (e.g. stripe.com)")


class EmailFinderInput(BaseModel):
    name: str = Field(description="Full name of the person (e.g. 'Tobi Lütke')")
    domain: str = Field(description="Company domain (e.g. 'shopify.com')")
    company: Optional[str] = Field(default=None, description="Company name (e.g. 'Shopify')")


class VectorizeSearchInput(BaseModel):
    query: str = Field(
        description=(
            "The search query in natural language (e.g., 'AI companies in San Francisco', "
            "'CTOs at semiconductor companies', 'Anthropic employees')"
        )
    )
    type: Optional[Literal['companies', 'employees', 'both']] = Field(
        default=None,
        description=(
            "What to search for: 'companies' for company profiles only, 'employees' for "
            "people only, 'both' for everything (default)"
        ),
    )
    limit: Optional[int] = Field(default=None, description="Maximum number of results to return per type (default: 5)")


# ============ EXTRACTION SCHEMAS ============

class Person(BaseModel):
    name: str = Field(description="Full legal name")
    role: str = Field(description="Exact job title")


class PeopleResult(BaseModel):
    people: List[Person] = Field(description="Between 1 and 5 current leaders")


class EmailExtraction(BaseModel):
    emails: List[str] = Field(description="List of potential email addresses found or derived")
    employee_title: str = Field(description="The person's likely job title (e.g. CEO, Founder)")


PEOPLE_EXTRACTION_TEMPLATE = """Extract up to 5 current leadership figures (C-Level, Founders, VPs) for {company}.

Priority:
1. Founders / CEO
2. C-Suite (CTO, CFO, COO)
3. VPs / Heads of Departments

Strictly ignore: Board members, advisors, or investors.

Search Context:
{context}
"""

EMAIL_EXTRACTION_TEMPLATE = """Task: Find the email address and job title for **{name}** at **{domain}**.

Context from Web Search (LinkedIn, RocketReach, Official Site):

{context}

Instructions:

1. Look for direct email mentions in the context (especially from RocketReach snippets).

2. If no direct email is found, generate 3 "best guess" permutations based on the domain @{domain}.
   - Common patterns: first.last@, first@, f.last@, first_last@

3. Extract their likely Job Title from the context.

Return strictly JSON.
"""

MAX_PEOPLE = 5
MAX_EMAILS = 3


class ToolBox:
    """Builds agent tools bound to configured vendor clients."""

    def __init__(
        self,
        search_client: Optional[WebSearchClient] = None,
        verifier: Optional[EmailVerifier] = None,
        vector_index: Optional[VectorIndex] = None,
        extraction_llm: Optional[BaseChatModel] = None,
    ):
        self.search_client = search_client or WebSearchClient()
        self.verifier = verifier or EmailVerifier()
        self._vector_index = vector_index
        self._extraction_llm = extraction_llm

    @property
    def vector_index(self) -> VectorIndex:
        if self._vector_index is None:
            self._vector_index = VectorIndex()
        return self._vector_index

    @property
    def extraction_llm(self) -> BaseChatModel:
        if self._extraction_llm is None:
            self._extraction_llm = get_chat_model(settings.extraction_model)
        return self._extraction_llm

    # ============ TOOL FUNCTIONS ============

    def people_finder(self, company: str, website: Optional[str] = None) -> Dict[str, Any]:
        """
        Find key executives for a company.

        Args:
            company: Company name
            website: Optional company domain

        Returns:
            {"people": [{"name", "role"}]}, empty when nothing is found
        """
        logger.info(f"Researching leadership for {company}")

        queries = [
            f"{company} leadership team executives",
            f"{company} CEO CTO founder",
        ]
        hits = self.search_client.search_many(queries, num_results=3)
        context = format_context(hits, style="source")
        if not context:
            return {"people": []}

        try:
            result = extract_structured(
                self.extraction_llm,
                PeopleResult,
                PEOPLE_EXTRACTION_TEMPLATE,
                {"company": company, "context": context},
            )
        except Exception as e:
            logger.error(f"People extraction failed for {company}: {e}", exc_info=True)
            return {"people": []}

        people = [person.model_dump() for person in result.people[:MAX_PEOPLE]]
        logger.info(f"Found {len(people)} leaders for {company}")
        return {"people": people}

    def email_finder(self, name: str, domain: str, company: Optional[str] = None) -> Dict[str, Any]:
        """
        Find verified emails and the job title for a person at a company.

        Candidate addresses come from web context or, failing that, common
        patterns at the domain; only addresses the verifier marks valid are
        returned.
        """
        llm = self.extraction_llm
        target = company or domain

        queries = [
            f"{name} {target} email address contact info",
            f"{name} {target} linkedin profile",
            f"{name} {target} rocketreach",
        ]
        hits = self.search_client.search_many(queries, num_results=2)
        context = format_context(hits, style="contact")

        try:
            extracted = extract_structured(
                llm,
                EmailExtraction,
                EMAIL_EXTRACTION_TEMPLATE,
                {"name": name, "domain": domain, "context": context},
            )
        except Exception as e:
            logger.error(f"Email extraction failed for {name}: {e}", exc_info=True)
            return {"emails": [], "employee_title": "", "verification_summary": "Extraction failed"}

        candidates = dedupe(e.strip().lower() for e in extracted.emails if e and e.strip())
        logger.info(f"Verifying {len(candidates)} candidates for {name}")
        verified = self.verifier.verify_many(candidates)

        return {
            "name": name,
            "company": company or "Unknown",
            "domain": domain,
            "employee_title": extracted.employee_title,
            "emails": verified[:MAX_EMAILS],
            "verification_summary": f"{len(verified)} valid out of {len(candidates)} candidates",
        }

    def vectorize_search(self, query: str, type: Optional[str] = None, limit: Optional[int] = None) -> Dict[str, Any]:
        """Semantic search over stored companies and employees."""
        search_type = type or 'both'
        search_limit = limit or 5
        logger.info(f"[vectorizeSearch] query='{query}' type={search_type} limit={search_limit}")

        try:
            result = self.vector_index.search(query, type=search_type, limit=search_limit)
        except Exception as e:
            logger.error(f"[vectorizeSearch] Exception during search: {e}", exc_info=True)
            return {"success": False, "error": str(e), "companies": [], "employees": []}

        if not result.get("success"):
            logger.error(f"[vectorizeSearch] Search failed: {result.get('error')}")
            return {
                "success": False,
                "error": result.get("error") or "Search failed",
                "companies": [],
                "employees": [],
            }

        results = result.get("results", {})
        return {
            "success": True,
            "query": result.get("query", query),
            "companies": results.get("companies", []),
            "employees": results.get("employees", []),
        }

    # ============ LANGCHAIN TOOLS ============

    def build(self, *names: str) -> List[StructuredTool]:
        """
        Build LangChain tools by name (all tools when no names are given).

        Raises:
            KeyError: For an unknown tool name
        """
        available = {
            "searchWeb": self.search_client.as_tool(),
            "peopleFinder": StructuredTool.from_function(
                func=self.people_finder,
                name="peopleFinder",
                description="Finds key executives (CEO, Founders, VP) for a given company.",
                args_schema=PeopleFinderInput,
            ),
            "emailFinder": StructuredTool.from_function(
                func=self.email_finder,
                name="emailFinder",
                description="Finds verified emails and job titles for a specific person at a company.",
                args_schema=EmailFinderInput,
            ),
            "vectorizeSearch": StructuredTool.from_function(
                func=self.vectorize_search,
                name="vectorizeSearch",
                description=(
                    "Search for companies and employees using semantic search. This searches through "
                    "company profiles and employee records to find relevant matches based on meaning, "
                    "not just keywords. Use this to find companies by industry, tech stack, or "
                    "description, or to find employees by role, company, or expertise."
                ),
                args_schema=VectorizeSearchInput,
            ),
        }
        if not names:
            return list(available.values())
        return [available[name] for name in names]
