"""
Base class for request-handling agents.
"""

import logging
from typing import Any, Dict, List, Optional

from langchain_core.language_models import BaseChatModel

from applyo.config import settings
from applyo.database import DatabaseManager, get_db_manager
from applyo.llm import AgentResult, get_chat_model, run_tool_agent
from applyo.tools import ToolBox
from applyo.utils import timeit

logger = logging.getLogger(__name__)


class BaseAgent:
    """
    Common plumbing for agents: model construction, tool selection and
    database access.

    Subclasses set `model_setting`, `tool_names` and `steps_setting` and implement
    `run(payload)`.
    """

    name = "agent"
    model_setting = "orchestrator_model"
    temperature: Optional[float] = None
    tool_names: List[str] = []
    steps_setting = "finder_max_steps"

    def __init__(
        self,
        toolbox: Optional[ToolBox] = None,
        db: Optional[DatabaseManager] = None,
        llm: Optional[BaseChatModel] = None,
    ):
        self._toolbox = toolbox
        self.db = db or get_db_manager()
        self._llm = llm

    @property
    def toolbox(self) -> ToolBox:
        if self._toolbox is None:
            self._toolbox = ToolBox()
        return self._toolbox

    @property
    def llm(self) -> BaseChatModel:
        if self._llm is None:
            self._llm = get_chat_model(getattr(settings, self.model_setting), self.temperature)
        return self._llm

    @timeit
    def run_tools(self, prompt: str) -> AgentResult:
        """Run the tool-calling loop with this agent's tools."""
        steps = getattr(settings, self.steps_setting)
        logger.info(f"[{self.name}] running with tools {self.tool_names} (max {steps} steps)")
        result = run_tool_agent(self.llm, self.toolbox.build(*self.tool_names), prompt, steps)
        logger.info(f"[{self.name}] finished after {result.steps} step(s), {len(result.tool_calls)} tool call(s)")
        return result

    def run(self, payload: Dict[str, Any]) -> Any:
        raise NotImplementedError
