from typing import Any, Callable, Dict, List, Optional
import json

from leena_core.domain.exceptions import ProviderFailure, ValidationError
from leena_core.domain.models import SearchRequest
from leena_core.providers.base import SearchClient
from .definitions import ToolCall, ToolDef, ToolParam, ToolResult


ToolFunc = Callable[[Dict[str, Any]], str]
WEB_SEARCH = "web_search"
SEARCH_SYSTEM_PROMPT = "Be precise and concise."


class ToolExecutor:
    def __init__(self, tools: Dict[str, ToolFunc]):
        self._tools = tools
        self._cache: Dict[tuple, str] = {}

    def execute(self, call: ToolCall) -> ToolResult:
        key = (call.name, json.dumps(call.arguments, sort_keys=True, ensure_ascii=False))
        if key in self._cache:
            result = self._cache[key]
        else:
            func = self._tools.get(call.name)
            if not func:
                raise ValidationError(code="UNKNOWN_TOOL", message=f"Tool not registered: {call.name}")
            result = func(call.arguments)
            self._cache[key] = result
        return ToolResult(call_id=call.id, content=result)


def make_web_search_tool(
    search_client: SearchClient,
    model: str,
    timeout: Optional[Callable[[], Optional[float]]] = None,
) -> ToolFunc:
    """Bind the search provider as the `web_search` tool.

    `timeout` is consulted right before each search so the call inherits
    whatever is left of the caller's deadline.
    """

    def _run(args: Dict[str, Any]) -> str:
        query = args.get("query")
        if not isinstance(query, str) or not query.strip():
            raise ProviderFailure(code="BAD_TOOL_INPUT", message="web_search requires a non-empty query")
        req = SearchRequest(
            model=model,
            system=SEARCH_SYSTEM_PROMPT,
            query=query,
            timeout=timeout() if timeout else None,
        )
        return search_client.complete(req).text

    return _run


def web_search_tool_def() -> ToolDef:
    return ToolDef(
        name=WEB_SEARCH,
        description="Search the web for current information on a given topic",
        params={
            "query": ToolParam(
                name="query",
                description="The search query to run",
                required=True,
                schema={"type": "string"},
            )
        },
    )


def default_tool_defs() -> List[ToolDef]:
    return [web_search_tool_def()]
