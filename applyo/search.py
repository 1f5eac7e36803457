"""
Web Search Module

Thin client over the Exa search API used by every agent that needs
fresh web context (company metadata, leadership pages, contact snippets).
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, asdict
from typing import Dict, List, Optional, Sequence

import requests
from langchain_core.tools import StructuredTool
from pydantic import BaseModel, Field

from applyo.config import settings
from applyo.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class SearchWebInput(BaseModel):
    query: str = Field(description="Specific keywords to search for.")


@dataclass
class SearchHit:
    """Represents a single web search result."""
    title: str
    url: str
    content: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


class WebSearchClient:
    """Searches the web through Exa and returns trimmed page text."""

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None):
        """
        Initialize the client.

        Args:
            api_key: Exa API key, defaults to settings.exa_api_key
            base_url: Exa API base URL, defaults to settings.exa_base_url
        """
        self.api_key = api_key or settings.exa_api_key
        self.base_url = (base_url or settings.exa_base_url).rstrip('/')
        self.timeout = settings.http_timeout
        self.session = requests.Session()

    def _require_key(self):
        if not self.api_key:
            raise ConfigurationError("Search tool - EXA_API_KEY is missing")

    def search(
        self,
        query: str,
        num_results: Optional[int] = None,
        max_characters: Optional[int] = None,
    ) -> List[SearchHit]:
        """
        Run a fast search and return result text.

        Args:
            query: Specific keywords to search for
            num_results: Number of results (default settings.search_num_results)
            max_characters: Text characters kept per result

        Returns:
            List of SearchHit; empty when the search fails

        Raises:
            ConfigurationError: If no API key is configured
        """
        self._require_key()

        payload = {
            "query": query,
            "type": "fast",
            "useAutoprompt": False,
            "numResults": num_results or settings.search_num_results,
            "contents": {
                "text": {"maxCharacters": max_characters or settings.search_max_characters},
            },
        }

        try:
            response = self.session.post(
                f"{self.base_url}/search",
                json=payload,
                headers={"x-api-key": self.api_key, "Content-Type": "application/json"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Search failed for '{query}': {e}")
            return []

        hits = []
        for result in data.get("results") or []:
            hits.append(SearchHit(
                title=result.get("title") or "No title",
                url=result.get("url") or "",
                content=result.get("text") or "",
            ))

        logger.debug(f"Search '{query}' returned {len(hits)} results")
        return hits

    def search_many(
        self,
        queries: Sequence[str],
        num_results: Optional[int] = None,
        max_characters: Optional[int] = None,
    ) -> List[SearchHit]:
        """
        Run several searches concurrently and concatenate their hits.

        Hits keep the order of the queries. A failing query contributes
        nothing.
        """
        self._require_key()
        if not queries:
            return []

        def run(query: str) -> List[SearchHit]:
            try:
                return self.search(query, num_results=num_results, max_characters=max_characters)
            except requests.RequestException as e:
                logger.error(f"Search query failed for '{query}': {e}")
                return []

        with ThreadPoolExecutor(max_workers=min(len(queries), settings.max_workers)) as pool:
            batches = list(pool.map(run, queries))

        return [hit for batch in batches for hit in batch]

    def as_tool(self) -> StructuredTool:
        """Expose search as the `searchWeb` agent tool."""

        def search_web(query: str) -> Dict[str, List[Dict[str, str]]]:
            return {"results": [hit.to_dict() for hit in self.search(query)]}

        return StructuredTool.from_function(
            func=search_web,
            name="searchWeb",
            description="Fast web search. Use specific queries (e.g. 'Apple revenue 2024', 'Stripe headquarters').",
            args_schema=SearchWebInput,
        )


def format_context(hits: Sequence[SearchHit], style: str = "source") -> str:
    """
    Join search hits into a context block for a prompt.

    Styles:
        source:  "Source: <title>\\nContent: <text>" joined by "---" blocks
        contact: "Title/URL/Content" joined by "---"
        snippet: "source url/content" entries
    """
    if style == "contact":
        return "\n---\n".join(
            f"Title: {hit.title}\nURL: {hit.url}\nContent: {hit.content}" for hit in hits
        )
    if style == "snippet":
        return "\n".join(
            f"source url: {hit.url}\ncontent: {hit.content}\n---" for hit in hits
        )
    return "\n\n---\n\n".join(
        f"Source: {hit.title}\nContent: {hit.content}" for hit in hits
    )
