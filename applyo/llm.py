"""
LLM Module

Shared plumbing for the agents:
- JSON extraction and repair of model output
- Chat model construction (OpenAI through LangChain)
- A tool-calling loop bounded by a step count
- Schema-constrained extraction
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage, ToolMessage
from langchain_core.prompts import ChatPromptTemplate
from langchain_core.tools import BaseTool
from langchain_openai import ChatOpenAI
from pydantic import BaseModel

from applyo.config import settings
from applyo.exceptions import ConfigurationError, LLMResponseError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json / ``` markdown fence."""
    clean = text.strip()
    if clean.startswith("```json"):
        clean = re.sub(r"^```json\s*", "", clean)
        clean = re.sub(r"\s*```$", "", clean)
    elif clean.startswith("```"):
        clean = re.sub(r"^```\s*", "", clean)
        clean = re.sub(r"\s*```$", "", clean)
    return clean


def parse_llm_json(text: Optional[str]) -> Dict[str, Any]:
    """
    Parse a JSON object out of model output.

    Handles markdown fences and prose around the object by taking the span
    from the first "{" to the last "}".

    Args:
        text: Raw model output

    Returns:
        Parsed JSON object

    Raises:
        LLMResponseError: If the text is empty or holds no valid JSON object
    """
    if not text or not text.strip():
        raise LLMResponseError("Empty response from AI model", raw_text=text or "")

    clean = strip_code_fences(text)
    match = JSON_OBJECT.search(clean)
    if match:
        clean = match.group(0)

    if not clean.strip():
        raise LLMResponseError("No valid JSON found in response", raw_text=text)

    try:
        # NaN and Infinity are not valid JSON values; treat them as missing
        data = json.loads(clean, parse_constant=lambda _: None)
    except json.JSONDecodeError as e:
        raise LLMResponseError(f"JSON decode error: {e}", raw_text=text) from e

    if not isinstance(data, dict):
        raise LLMResponseError("Response JSON is not an object", raw_text=text)
    return data


def get_chat_model(model: str, temperature: Optional[float] = None) -> BaseChatModel:
    """
    Build an OpenAI chat model.

    Args:
        model: OpenAI model name
        temperature: Sampling temperature, defaults to settings.llm_temperature

    Raises:
        ConfigurationError: If OPENAI_API_KEY is not set
    """
    if not settings.openai_api_key:
        raise ConfigurationError("OPENAI_API_KEY is missing")

    return ChatOpenAI(
        model=model,
        api_key=settings.openai_api_key,
        temperature=settings.llm_temperature if temperature is None else temperature,
        timeout=settings.llm_timeout,
        max_retries=2,
    )


@dataclass
class AgentResult:
    """Outcome of a tool-calling run."""
    text: str
    steps: int
    tool_calls: List[Dict[str, Any]] = field(default_factory=list)


def message_text(message: BaseMessage) -> str:
    """Plain text of a chat message, joining content blocks."""
    content = message.content
    if isinstance(content, str):
        return content
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


def _tool_output(output: Any) -> str:
    if isinstance(output, str):
        return output
    return json.dumps(output, default=str, ensure_ascii=False)


def run_tool_agent(
    llm: BaseChatModel,
    tools: Sequence[BaseTool],
    prompt: str,
    max_steps: int,
) -> AgentResult:
    """
    Let the model call tools until it answers in text or runs out of steps.

    Each model call is one step. Tool errors and unknown tool names are
    reported back to the model as tool messages rather than raised.

    Args:
        llm: Chat model supporting tool calling
        tools: Tools the model may call
        prompt: User prompt
        max_steps: Maximum number of model calls

    Returns:
        AgentResult with the final message text
    """
    tools_by_name = {tool.name: tool for tool in tools}
    runnable = llm.bind_tools(list(tools)) if tools else llm

    messages: List[BaseMessage] = [HumanMessage(content=prompt)]
    calls_made: List[Dict[str, Any]] = []
    steps = 0

    while True:
        response = runnable.invoke(messages)
        steps += 1
        messages.append(response)

        tool_calls = getattr(response, "tool_calls", None) or []
        if not tool_calls or steps >= max_steps:
            if tool_calls:
                logger.warning(f"Agent stopped at step limit ({max_steps}) with pending tool calls")
            break

        for call in tool_calls:
            name = call.get("name")
            args = call.get("args") or {}
            logger.info(f"[TOOL_CALL] {name} {args}")
            calls_made.append({"name": name, "args": args})

            tool = tools_by_name.get(name)
            if tool is None:
                output = {"error": f"Unknown tool: {name}"}
            else:
                try:
                    output = tool.invoke(args)
                except Exception as e:
                    logger.error(f"Tool {name} failed: {e}", exc_info=True)
                    output = {"error": str(e)}

            logger.debug(f"[TOOL_RESULT] {name} {str(output)[:500]}")
            messages.append(ToolMessage(
                content=_tool_output(output),
                tool_call_id=call.get("id") or name,
                name=name,
            ))

    return AgentResult(text=message_text(response), steps=steps, tool_calls=calls_made)


def extract_structured(
    llm: BaseChatModel,
    schema: Type[ModelT],
    template: str,
    variables: Dict[str, Any],
) -> ModelT:
    """
    Fill a prompt template and have the model answer in a pydantic schema.

    Args:
        llm: Chat model
        schema: Pydantic model describing the answer
        template: ChatPromptTemplate source (literal braces doubled)
        variables: Template variables

    Returns:
        Validated schema instance
    """
    prompt = ChatPromptTemplate.from_template(template)
    chain = prompt | llm.with_structured_output(schema)
    result = chain.invoke(variables)
    if isinstance(result, dict):
        result = schema(**result)
    return result
