"""Tool data structures.

These dataclasses describe tool calling on both sides of the relay:
- ToolDef / ToolParam declare a tool to the model.
- ToolCall / ToolResult carry one model-issued invocation and its text result.
"""

from dataclasses import dataclass
from typing import Any, Dict, List


@dataclass
class ToolParam:
    """Definition of a single tool parameter."""

    name: str
    description: str
    required: bool
    schema: Dict[str, Any]


@dataclass
class ToolDef:
    """A tool the model may call."""

    name: str
    description: str
    params: Dict[str, ToolParam]

    def input_schema(self) -> Dict[str, Any]:
        """JSON schema of the tool input, as declared to the provider."""

        properties: Dict[str, Any] = {}
        required: List[str] = []
        for name, param in self.params.items():
            prop = dict(param.schema or {"type": "string"})
            if param.description:
                prop["description"] = param.description
            properties[name] = prop
            if param.required:
                required.append(name)
        return {"type": "object", "properties": properties, "required": required}


@dataclass
class ToolCall:
    """One tool invocation requested by the model."""

    id: str
    name: str
    arguments: Dict[str, Any]


@dataclass
class ToolResult:
    """Text result of a tool invocation."""

    call_id: str
    content: str
