"""
Request-handling agents.
"""

from applyo.agents.base import BaseAgent
from applyo.agents.email_finder import EmailFinder
from applyo.agents.finder import Finder
from applyo.agents.orchestrator import Orchestrator
from applyo.agents.people_finder import PeopleFinder
from applyo.agents.prospector import Prospector

__all__ = [
    'BaseAgent',
    'EmailFinder',
    'Finder',
    'Orchestrator',
    'PeopleFinder',
    'Prospector',
]
