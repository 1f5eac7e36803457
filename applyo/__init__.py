"""
Applyo Lead Enrichment Backend

LLM agents that find companies, their executives and verified email
addresses, plus outreach templates and email sending over an HTTP API.
"""

__version__ = "0.1.0"
__author__ = "Applyo Team"
__all__ = [
    "config",
    "database",
    "companies",
    "llm",
    "search",
    "verification",
    "tools",
    "vector_index",
    "agents",
    "templates",
    "mailer",
    "auth",
    "api",
    "utils",
]
