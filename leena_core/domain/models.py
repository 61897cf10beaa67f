"""Shared conversation and provider data models.

Provider responses are modelled as an ordered sequence of tagged content
segments:

- TextSegment: plain text produced by the model.
- ToolUseSegment: the model asks to invoke a declared tool.
- ToolResultSegment: a tool result sent back to the model, correlated by id.

Provider adapters translate their wire JSON to and from these types; the
relays never touch raw provider payloads.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Tuple, Union, TYPE_CHECKING

from leena_core.domain.exceptions import ProviderFailure

if TYPE_CHECKING:
    from leena_core.tools.definitions import ToolDef


# Conversation roles accepted from the browser
Role = Literal["user", "assistant"]


@dataclass(frozen=True)
class TextSegment:
    text: str
    type: Literal["text"] = "text"


@dataclass(frozen=True)
class ToolUseSegment:
    """A model-issued tool invocation.

    `id` is opaque; it must be echoed in the matching ToolResultSegment.
    """

    id: str
    name: str
    input: Dict[str, Any] = field(default_factory=dict)
    type: Literal["tool_use"] = "tool_use"


@dataclass(frozen=True)
class ToolResultSegment:
    tool_use_id: str
    content: str
    type: Literal["tool_result"] = "tool_result"


ContentSegment = Union[TextSegment, ToolUseSegment, ToolResultSegment]


@dataclass(frozen=True)
class Message:
    """One conversation turn. Immutable once sent."""

    role: Role
    content: Tuple[ContentSegment, ...]

    @classmethod
    def text(cls, role: Role, text: str) -> "Message":
        return cls(role=role, content=(TextSegment(text=text),))

    def plain_text(self) -> Optional[str]:
        """Return the text when the turn is a single text segment, else None."""

        if len(self.content) == 1 and isinstance(self.content[0], TextSegment):
            return self.content[0].text
        return None


@dataclass
class ChatUsage:
    """Token usage reported by the provider."""

    input_tokens: int
    output_tokens: int

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


@dataclass
class ChatRequest:
    """A single call to the LLM provider.

    `model` is the logical model name, mapped to the vendor model id by the
    provider registry. `timeout` overrides the configured HTTP timeout when
    the caller is working against a deadline.
    """

    model: str
    system: str
    messages: List[Message]
    max_tokens: int
    temperature: float = 1.0
    tools: Optional[List["ToolDef"]] = None
    timeout: Optional[float] = None


@dataclass
class ChatResult:
    """Parsed provider response.

    - content: ordered content segments.
    - stop_reason: e.g. "end_turn" or "tool_use".
    - raw: original response JSON, kept for debugging.
    """

    provider: str
    model: str
    content: List[ContentSegment]
    stop_reason: Optional[str] = None
    usage: Optional[ChatUsage] = None
    raw: Optional[dict] = None

    def first_text(self) -> str:
        """Return the first text segment.

        Raises ProviderFailure when the response carries no text segment.
        """

        for segment in self.content:
            if isinstance(segment, TextSegment):
                return segment.text
        raise ProviderFailure(
            code="EMPTY_RESPONSE",
            message=f"{self.provider} response has no text segment",
            provider=self.provider,
            stop_reason=self.stop_reason,
        )

    def tool_uses(self, name: Optional[str] = None) -> List[ToolUseSegment]:
        return [
            seg
            for seg in self.content
            if isinstance(seg, ToolUseSegment) and (name is None or seg.name == name)
        ]


@dataclass
class SearchRequest:
    """A single call to the search provider."""

    model: str
    system: str
    query: str
    timeout: Optional[float] = None


@dataclass
class SearchResult:
    provider: str
    model: str
    text: str
    usage: Optional[ChatUsage] = None
    raw: Optional[dict] = None
